"""
Power Supply Telemetry Module

This module reads PMBus telemetry from Supermicro power supply modules
through the BMC's I2C master write-read command and assembles it into a
single PowerSupplyReading.

Reads are issued one at a time in a fixed order. The model number is read
before the status byte and fan speeds because it decides how they are
decoded, and VOUT_MODE is read before READ_VOUT because it carries the
exponent for the output voltage.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..ipmi.commander import MalformedFrameError
from .linear import decode_vout, linear_data_format, linear_data_format_legacy
from .models import ModelClassifier, ModelProfile, StatusScheme, select_status_scheme
from .status import decode_status

logger = logging.getLogger(__name__)

# Private bus the power supplies sit on
DEFAULT_BUS = 0x07

# PMBus commands
PMBUS_VOUT_MODE = 0x20
PMBUS_STATUS_BYTE = 0x78
PMBUS_READ_VIN = 0x88
PMBUS_READ_IIN = 0x89
PMBUS_READ_VOUT = 0x8B
PMBUS_READ_IOUT = 0x8C
PMBUS_READ_TEMPERATURE_1 = 0x8D
PMBUS_READ_TEMPERATURE_2 = 0x8E
PMBUS_READ_FAN_SPEED_1 = 0x90
PMBUS_READ_FAN_SPEED_2 = 0x91
PMBUS_READ_POUT = 0x96
PMBUS_READ_PIN = 0x97
PMBUS_REVISION = 0x98
CURRENT_SHARING_CONTROL = 0xFC

# Vendor string blocks: (first command, max length)
SERIAL_NUMBER_BLOCK = (0xD0, 15)
MODEL_NUMBER_BLOCK = (0xE0, 13)
REVISION_BLOCK = (0xF3, 3)

PRINTABLE_MIN = 0x1F
PRINTABLE_MAX = 0x7E


@dataclass
class PowerSupplyReading:
    """One complete set of telemetry from a power supply module.

    Attributes:
        serial_number: Serial number string
        module_number: Model number string
        revision: Hardware revision string
        pmbus_revision: PMBUS_REVISION byte
        cur_sharing_control: Current sharing mode description
        status: Status labels, e.g. ["OK"]
        input_voltage: AC input voltage (V)
        input_current: AC input current (A)
        output_voltage: DC output voltage (V)
        output_current: DC output current (A)
        temperature1: Temperature sensor 1 (°C)
        temperature2: Temperature sensor 2 (°C)
        fan1: Fan 1 speed (RPM)
        fan2: Fan 2 speed (RPM)
        input_power: AC input power (W)
        output_power: DC output power (W)
        status_scheme: Bit layout used to decode the status byte
    """
    serial_number: str = ""
    module_number: str = ""
    revision: str = ""
    pmbus_revision: int = 0
    cur_sharing_control: str = ""
    status: List[str] = field(default_factory=list)
    input_voltage: float = 0.0
    input_current: float = 0.0
    output_voltage: float = 0.0
    output_current: float = 0.0
    temperature1: float = 0.0
    temperature2: float = 0.0
    fan1: float = 0.0
    fan2: float = 0.0
    input_power: float = 0.0
    output_power: float = 0.0
    status_scheme: StatusScheme = StatusScheme.STANDARD

    @property
    def status_supported(self) -> bool:
        return self.status_scheme != StatusScheme.UNSUPPORTED

    def to_dict(self) -> Dict[str, Any]:
        """Serialize using the established JSON key set"""
        # "serial_numner" and "module_numner" are the published key names
        return {
            "serial_numner": self.serial_number,
            "module_numner": self.module_number,
            "revision": self.revision,
            "pmbus_revision": self.pmbus_revision,
            "cur_sharing_control": self.cur_sharing_control,
            "status": list(self.status),
            "input_voltage": self.input_voltage,
            "input_current": self.input_current,
            "output_voltage": self.output_voltage,
            "output_current": self.output_current,
            "temperature1": self.temperature1,
            "temperature2": self.temperature2,
            "fan1": self.fan1,
            "fan2": self.fan2,
            "input_power": self.input_power,
            "output_power": self.output_power,
        }


class PowerSupplyReader:
    """Reads PMBus telemetry from power supplies behind the BMC"""

    def __init__(self, client, bus: int = DEFAULT_BUS,
                 classifier: Optional[ModelClassifier] = None):
        """Initialize the reader

        Args:
            client: Object providing master_write_read(bus, address, size, *data)
            bus: Private bus number of the power supplies
            classifier: Model table; defaults to the built-in one
        """
        self.client = client
        self.bus = bus
        self.classifier = classifier or ModelClassifier()

    def _read(self, address: int, size: int, command: int) -> bytes:
        response = self.client.master_write_read(self.bus, address, size, command)
        if len(response.data) < size:
            raise MalformedFrameError(
                f"PMBus command 0x{command:02x} at 0x{address:02x} returned "
                f"{len(response.data)} bytes, expected {size}"
            )
        return response.data[:size]

    def _read_byte(self, address: int, command: int) -> int:
        return self._read(address, 1, command)[0]

    def _read_string(self, address: int, block) -> str:
        first, length = block
        chars = []
        for offset in range(length):
            value = self._read_byte(address, first + offset)
            if value < PRINTABLE_MIN or value > PRINTABLE_MAX:
                break
            chars.append(chr(value))
        return "".join(chars)

    def get_serial_number(self, address: int) -> str:
        return self._read_string(address, SERIAL_NUMBER_BLOCK)

    def get_model_number(self, address: int) -> str:
        return self._read_string(address, MODEL_NUMBER_BLOCK)

    def get_revision_number(self, address: int) -> str:
        return self._read_string(address, REVISION_BLOCK)

    def get_pmbus_revision(self, address: int) -> int:
        return self._read_byte(address, PMBUS_REVISION)

    def get_current_sharing_control(self, address: int) -> str:
        """Describe the unit's current sharing mode

        Returns:
            "Not supported", "Active - Active", "Active - Standby" or "Unknown"
        """
        low, high = self._read(address, 2, CURRENT_SHARING_CONTROL)
        if (low == 0 and high == 0) or (low == 0xFF and high == 0xFF):
            return "Not supported"
        mode = low & 0x0F
        if mode == 0:
            return "Active - Active"
        if mode <= 9:
            return "Unknown"
        return "Active - Standby"

    def get_vout_mode(self, address: int) -> int:
        return self._read_byte(address, PMBUS_VOUT_MODE)

    def get_status(self, address: int) -> int:
        return self._read_byte(address, PMBUS_STATUS_BYTE)

    def _read_linear(self, address: int, command: int) -> float:
        return linear_data_format(self._read(address, 2, command))

    def get_input_voltage(self, address: int) -> float:
        return self._read_linear(address, PMBUS_READ_VIN)

    def get_input_current(self, address: int) -> float:
        return self._read_linear(address, PMBUS_READ_IIN)

    def get_output_voltage(self, address: int, vout_mode: int) -> float:
        return decode_vout(self._read(address, 2, PMBUS_READ_VOUT), vout_mode)

    def get_output_current(self, address: int) -> float:
        return self._read_linear(address, PMBUS_READ_IOUT)

    def get_temperature1(self, address: int) -> float:
        return self._read_linear(address, PMBUS_READ_TEMPERATURE_1)

    def get_temperature2(self, address: int) -> float:
        return self._read_linear(address, PMBUS_READ_TEMPERATURE_2)

    def _read_fan(self, address: int, command: int, legacy: bool) -> float:
        data = self._read(address, 2, command)
        if legacy:
            return linear_data_format_legacy(data)
        return linear_data_format(data)

    def get_fan1(self, address: int, legacy: bool = False) -> float:
        return self._read_fan(address, PMBUS_READ_FAN_SPEED_1, legacy)

    def get_fan2(self, address: int, legacy: bool = False) -> float:
        return self._read_fan(address, PMBUS_READ_FAN_SPEED_2, legacy)

    def get_input_power(self, address: int) -> float:
        return self._read_linear(address, PMBUS_READ_PIN)

    def get_output_power(self, address: int) -> float:
        return self._read_linear(address, PMBUS_READ_POUT)

    def read(self, address: int) -> PowerSupplyReading:
        """Read all telemetry from one power supply.

        The first failing read aborts the whole reading; nothing is retried
        and no partial result is returned.

        Args:
            address: I2C address of the power supply (e.g. 0x78)

        Returns:
            PowerSupplyReading

        Raises:
            IPMIError: From the first read that failed

        Examples:
            >>> reader = PowerSupplyReader(client)
            >>> reading = reader.read(0x78)
            >>> reading.status
            ['OK']
        """
        logger.debug(f"Reading power supply at 0x{address:02x} on bus 0x{self.bus:02x}")
        reading = PowerSupplyReading()
        reading.serial_number = self.get_serial_number(address)
        reading.module_number = self.get_model_number(address)
        reading.revision = self.get_revision_number(address)
        reading.pmbus_revision = self.get_pmbus_revision(address)
        reading.cur_sharing_control = self.get_current_sharing_control(address)
        vout_mode = self.get_vout_mode(address)
        status = self.get_status(address)

        profile: ModelProfile = self.classifier.classify(reading.module_number)
        decoded = decode_status(select_status_scheme(profile, address), status)
        if not decoded.supported:
            logger.warning(f"Status byte 0x{status:02x} at 0x{address:02x} not decoded for this address range")
        reading.status_scheme = decoded.scheme
        reading.status = decoded.labels

        reading.input_voltage = self.get_input_voltage(address)
        reading.input_current = self.get_input_current(address)
        reading.output_voltage = self.get_output_voltage(address, vout_mode)
        reading.output_current = self.get_output_current(address)
        reading.temperature1 = self.get_temperature1(address)
        reading.temperature2 = self.get_temperature2(address)
        reading.fan1 = self.get_fan1(address, profile.legacy_fan)
        reading.fan2 = self.get_fan2(address, profile.legacy_fan)
        reading.input_power = self.get_input_power(address)
        reading.output_power = self.get_output_power(address)

        logger.info(f"Power supply 0x{address:02x}: {reading.module_number} {reading.status}")
        return reading
