"""
Raw I2C master write-read frames.

Request:  [bus][address][response size][data...]
Response: [completion code][data...]
"""

from dataclasses import dataclass

from .commander import IPMICommandError, MalformedFrameError

# Master Write-Read command (netfn app)
CMD_MASTER_WRITE_READ = 0x52


def _check_byte(name: str, value: int) -> None:
    if not 0 <= value <= 0xFF:
        raise ValueError(f"{name} must fit in one byte, got {value}")


@dataclass(frozen=True)
class MasterRequest:
    """Master write-read request addressed to a device on a private bus"""
    bus: int
    address: int
    response_size: int
    data: bytes = b""

    def __post_init__(self):
        _check_byte("bus", self.bus)
        _check_byte("address", self.address)
        _check_byte("response_size", self.response_size)
        object.__setattr__(self, "data", bytes(self.data))

    def encode(self) -> bytes:
        return bytes([self.bus, self.address, self.response_size]) + self.data

    @classmethod
    def decode(cls, frame: bytes) -> "MasterRequest":
        if len(frame) < 3:
            raise MalformedFrameError(f"Request frame too short: {len(frame)} bytes")
        return cls(frame[0], frame[1], frame[2], bytes(frame[3:]))


@dataclass(frozen=True)
class MasterResponse:
    """Master write-read response"""
    completion_code: int
    data: bytes = b""

    def __post_init__(self):
        _check_byte("completion_code", self.completion_code)
        object.__setattr__(self, "data", bytes(self.data))

    def encode(self) -> bytes:
        # The outbound form carries an explicit length byte
        _check_byte("data length", len(self.data))
        return bytes([self.completion_code, len(self.data)]) + self.data

    @classmethod
    def decode(cls, frame: bytes) -> "MasterResponse":
        if len(frame) < 2:
            raise MalformedFrameError(f"Response frame too short: {len(frame)} bytes")
        return cls(frame[0], bytes(frame[1:]))

    @property
    def ok(self) -> bool:
        return self.completion_code == 0

    def check(self) -> "MasterResponse":
        """Return self, or raise IPMICommandError on a non-zero completion code"""
        if not self.ok:
            raise IPMICommandError(
                f"Master write-read failed with completion code 0x{self.completion_code:02x}",
                completion_code=self.completion_code
            )
        return self
