"""
PMBus numeric decoding.

Power supplies report readings as two byte words, low byte first. Most
readings use the Linear format (11 bit signed mantissa, 5 bit signed
exponent). Older Supermicro units report fan speed in a fixed-scale legacy
form instead, and READ_VOUT is scaled by the exponent held in VOUT_MODE.
"""

from typing import Sequence


def _word(data: Sequence[int]) -> int:
    if len(data) < 2:
        raise ValueError(f"PMBus word needs 2 bytes, got {len(data)}")
    return (data[1] << 8) | data[0]


def _sign_extend_5(value: int) -> int:
    value &= 0x1F
    return value - 32 if value & 0x10 else value


def linear_data_format(data: Sequence[int]) -> float:
    """Decode a Linear format word: ``Y * 2**N``

    Args:
        data: Low byte, high byte

    Returns:
        Decoded reading

    Examples:
        >>> linear_data_format([0xFF, 0x07])
        -1.0
        >>> linear_data_format([0x60, 0xF8])   # Y=96, N=-1
        48.0
    """
    word = _word(data)
    mantissa = word & 0x7FF
    exponent = _sign_extend_5(word >> 11)
    if mantissa > 1023:
        mantissa -= 2048
    return float(mantissa) * 2.0 ** exponent


def linear_data_format_legacy(data: Sequence[int]) -> float:
    """Decode the fixed-scale form used by older power supplies (fan speed)"""
    word = _word(data)
    return float((word * 30) & 0x3FFF) / 0.262


def vout_mode_exponent(vout_mode: int) -> int:
    """Exponent held in the low 5 bits of VOUT_MODE"""
    return _sign_extend_5(vout_mode)


def decode_vout(data: Sequence[int], vout_mode: int) -> float:
    """Decode READ_VOUT using a previously read VOUT_MODE byte.

    A zero mode byte means the unit did not report one; the reading is then
    decoded as a plain Linear word.
    """
    if vout_mode:
        return float(_word(data)) * 2.0 ** vout_mode_exponent(vout_mode)
    return linear_data_format(data)
