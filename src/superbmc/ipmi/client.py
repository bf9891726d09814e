"""
BMC Client Module

High level operations on top of the raw IPMI transport: device identity,
chassis power control, I2C master write-read, boot device selection and
power supply telemetry.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Optional

from .boot import BootDevice, BootSequencer
from .commander import (
    IPMICommander,
    IPMICommandError,
    MalformedFrameError,
    NETFN_APP,
    NETFN_CHASSIS,
)
from .raw import CMD_MASTER_WRITE_READ, MasterRequest, MasterResponse

if TYPE_CHECKING:
    from ..pmbus.models import ModelClassifier

logger = logging.getLogger(__name__)

CMD_GET_DEVICE_ID = 0x01
CMD_CHASSIS_CONTROL = 0x02


class ChassisControl(Enum):
    """Chassis control actions"""
    POWER_DOWN = 0x00
    POWER_UP = 0x01
    POWER_CYCLE = 0x02
    HARD_RESET = 0x03
    PULSE_DIAG = 0x04
    SOFT_SHUTDOWN = 0x05


@dataclass(frozen=True)
class DeviceID:
    """Get Device ID response"""
    device_id: int
    device_revision: int
    firmware_major: int
    firmware_minor: int
    ipmi_version: str
    manufacturer_id: int
    product_id: int

    @classmethod
    def decode(cls, data: bytes) -> "DeviceID":
        if len(data) < 11:
            raise MalformedFrameError(f"Device ID response too short: {len(data)} bytes")
        return cls(
            device_id=data[0],
            device_revision=data[1] & 0x0F,
            firmware_major=data[2] & 0x7F,
            firmware_minor=(data[3] >> 4) * 10 + (data[3] & 0x0F),  # BCD
            ipmi_version=f"{data[4] & 0x0F}.{data[4] >> 4}",
            manufacturer_id=int.from_bytes(data[6:9], "little") & 0xFFFFF,
            product_id=int.from_bytes(data[9:11], "little"),
        )


def _strip_completion_code(frame: bytes, what: str) -> bytes:
    if not frame:
        raise MalformedFrameError(f"Empty {what} response")
    if frame[0] != 0:
        raise IPMICommandError(
            f"{what} failed with completion code 0x{frame[0]:02x}",
            completion_code=frame[0]
        )
    return frame[1:]


class BMCClient:
    """High level BMC operations

    Example:
        >>> client = BMCClient(IPMICommander(host="10.0.0.5"))
        >>> client.set_boot_device(BootDevice.PXE)
        >>> client.get_power_supply_info(0x78).status
        ['OK']
    """

    def __init__(self, commander: IPMICommander, bus: int = 0x07,
                 classifier: Optional["ModelClassifier"] = None):
        """Initialize the client

        Args:
            commander: Raw IPMI transport
            bus: Private bus the power supplies sit on
            classifier: Power supply model table; built-in table when omitted
        """
        self.commander = commander
        self.bus = bus
        self.classifier = classifier

    def _power_supply_reader(self, bus: Optional[int] = None):
        # Imported here, the pmbus package imports this one
        from ..pmbus.reader import PowerSupplyReader
        return PowerSupplyReader(self, bus=self.bus if bus is None else bus, classifier=self.classifier)

    def device_id(self) -> DeviceID:
        """Get the BMC's device identity"""
        frame = self.commander.send(NETFN_APP, CMD_GET_DEVICE_ID)
        return DeviceID.decode(_strip_completion_code(frame, "Get Device ID"))

    def chassis_control(self, control: ChassisControl) -> None:
        """Send a chassis power control command"""
        frame = self.commander.send(NETFN_CHASSIS, CMD_CHASSIS_CONTROL, bytes([control.value]))
        _strip_completion_code(frame, "Chassis Control")
        logger.info(f"Chassis control {control.name} sent")

    def master_write_read(self, bus: int, address: int, response_size: int,
                          *data: int) -> MasterResponse:
        """Write bytes to an I2C device behind the BMC and read its response

        Args:
            bus: Bus identifier
            address: Device address
            response_size: Number of bytes to read back
            data: Bytes to write first

        Returns:
            MasterResponse with a zero completion code

        Raises:
            MalformedFrameError: If the response frame is too short
            IPMICommandError: If the completion code is non-zero
        """
        request = MasterRequest(bus, address, response_size, bytes(data))
        frame = self.commander.send(NETFN_APP, CMD_MASTER_WRITE_READ, request.encode())
        return MasterResponse.decode(frame).check()

    def set_boot_device(self, device: BootDevice) -> None:
        """Select the device the host boots from next"""
        BootSequencer(self.commander).run(device)

    def get_power_supply_info(self, address: int, bus: Optional[int] = None):
        """Read the full telemetry set from the power supply at address"""
        return self._power_supply_reader(bus).read(address)
