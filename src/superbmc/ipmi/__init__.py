"""
IPMI Communication Package for Superbmc

This package provides the raw IPMI transport to a Supermicro BMC and the
operations built on it.

Key Components:
- IPMICommander: Raw request/response exchange through ipmitool
- BMCClient: Device identity, chassis control, I2C master write-read,
  boot device selection and power supply telemetry
- MasterRequest / MasterResponse: I2C master write-read frames
- BootSequencer: Lock-protected boot device change

Example Usage:
    >>> from superbmc.ipmi import IPMICommander, BMCClient, BootDevice
    >>>
    >>> client = BMCClient(IPMICommander(host="10.0.0.5", username="ADMIN", password="secret"))
    >>> client.set_boot_device(BootDevice.PXE)
    >>> info = client.get_power_supply_info(0x78)
    >>> print(info.status, info.output_power)

Note:
    This package requires ipmitool, and root/sudo access for in-band use.
"""

from .commander import (
    IPMICommander,
    IPMIError,
    IPMIConnectionError,
    IPMICommandError,
    MalformedFrameError,
)
from .raw import MasterRequest, MasterResponse
from .boot import BootDevice, BootSequencer, BootSequenceState
from .client import BMCClient, ChassisControl, DeviceID

__all__ = [
    'IPMICommander',
    'IPMIError',
    'IPMIConnectionError',
    'IPMICommandError',
    'MalformedFrameError',
    'MasterRequest',
    'MasterResponse',
    'BootDevice',
    'BootSequencer',
    'BootSequenceState',
    'BMCClient',
    'ChassisControl',
    'DeviceID',
]
