"""
STATUS_BYTE decoding for the two known bit layouts.
"""

from dataclasses import dataclass, field
from typing import List, Tuple

from .models import StatusScheme

# Supermicro layout
STATUS_OK = 0x01
STATUS_OVER_TEMPERATURE = 0x02
STATUS_UNDER_VOLTAGE = 0x04
STATUS_OVER_CURRENT = 0x08
STATUS_OVER_VOLTAGE = 0x10
STATUS_OFF = 0x40

# PMBus layout
STATUS12_CML = 0x02
STATUS12_OVER_TEMPERATURE = 0x04
STATUS12_UNDER_VOLTAGE = 0x08
STATUS12_OVER_CURRENT = 0x10
STATUS12_OVER_VOLTAGE = 0x20
STATUS12_OFF = 0x40
STATUS12_BUSY = 0x80

NON_STANDARD_BITS: Tuple[Tuple[int, str], ...] = (
    (STATUS_OK, "OK"),
    (STATUS_OVER_TEMPERATURE, "Over Temperature Fault"),
    (STATUS_UNDER_VOLTAGE, "Under Voltage Fault"),
    (STATUS_OVER_CURRENT, "Over Current Fault"),
    (STATUS_OVER_VOLTAGE, "Over Voltage Fault"),
    (STATUS_OFF, "OFF"),
)

# "OK" is derived separately for this layout
STANDARD_BITS: Tuple[Tuple[int, str], ...] = (
    (STATUS12_OVER_TEMPERATURE, "Over Temperature Fault"),
    (STATUS12_UNDER_VOLTAGE, "Under Voltage Fault"),
    (STATUS12_OVER_CURRENT, "Over Current Fault"),
    (STATUS12_OVER_VOLTAGE, "Over Voltage Fault"),
    (STATUS12_OFF, "OFF"),
    (STATUS12_BUSY, "Busy"),
)


@dataclass(frozen=True)
class StatusDecode:
    """Decoded STATUS_BYTE

    Attributes:
        scheme: Bit layout the byte was decoded with
        labels: One label per set bit, in table order
    """
    scheme: StatusScheme
    labels: List[str] = field(default_factory=list)

    @property
    def supported(self) -> bool:
        return self.scheme != StatusScheme.UNSUPPORTED


def _standard_ok(status: int) -> bool:
    if status == 0 or status & STATUS_OK:
        return True
    return bool(status & STATUS12_CML) and not status & STATUS12_OFF


def decode_status(scheme: StatusScheme, status: int) -> StatusDecode:
    """Turn a STATUS_BYTE into human readable labels.

    Args:
        scheme: Layout selected for the unit
        status: Raw STATUS_BYTE

    Returns:
        StatusDecode; for StatusScheme.UNSUPPORTED the label list is empty
    """
    if scheme == StatusScheme.UNSUPPORTED:
        return StatusDecode(scheme)

    labels: List[str] = []
    if scheme == StatusScheme.NON_STANDARD:
        table = NON_STANDARD_BITS
    else:
        table = STANDARD_BITS
        if _standard_ok(status):
            labels.append("OK")

    labels.extend(label for bit, label in table if status & bit)
    return StatusDecode(scheme, labels)
