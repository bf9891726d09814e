"""
Power Supply Model Classification Module

Supermicro ships a number of power supply modules whose STATUS_BYTE does not
follow the PMBus layout and whose fan readings use an older encoding. This
module holds the table of those models and classifies a model number once
per reading, so that every field of the reading is decoded the same way.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Tuple

# Matched as substrings of the reported model number
NON_STANDARD_MODELS: Tuple[str, ...] = (
    "PWS-721P",
    "PWS-703P",
    "PWS-704P",
    "PWS-1K41P",
    "PWS-1K41F",
    "PWS-1K21P",
    "PWS-1K62P",
    "PWS-504P-RR",
    "PWS-920P-1R",
    "PWS-1K11P",
)

# Matched against the whole model number
NON_STANDARD_EXACT: Tuple[str, ...] = (
    "PWS-920P-1R2",
)

LEGACY_FAN_MARKER = "721"

# PMBus addresses at or above this use a status layout that is not decoded
HIGH_ADDRESS_THRESHOLD = 0xB0


class StatusScheme(Enum):
    """How a unit's STATUS_BYTE is interpreted"""
    STANDARD = "standard"
    NON_STANDARD = "non_standard"
    UNSUPPORTED = "unsupported"


@dataclass(frozen=True)
class ModelProfile:
    """Decode rules for one power supply model

    Attributes:
        model_number: Model number as read from the unit
        non_standard: Uses the Supermicro status bit layout
        legacy_fan: Fan speed uses the legacy fixed-scale encoding
    """
    model_number: str
    non_standard: bool
    legacy_fan: bool


class ModelClassifier:
    """Classifies power supply model numbers against a fixed model table"""

    def __init__(self, non_standard: Iterable[str] = NON_STANDARD_MODELS,
                 exact: Iterable[str] = NON_STANDARD_EXACT,
                 legacy_marker: str = LEGACY_FAN_MARKER):
        self.non_standard = tuple(non_standard)
        self.exact = tuple(exact)
        self.legacy_marker = legacy_marker

    def is_non_standard(self, model_number: str) -> bool:
        if any(model in model_number for model in self.non_standard):
            return True
        return model_number in self.exact

    def is_legacy_fan(self, model_number: str) -> bool:
        return bool(self.legacy_marker) and self.legacy_marker in model_number

    def classify(self, model_number: str) -> ModelProfile:
        return ModelProfile(
            model_number=model_number,
            non_standard=self.is_non_standard(model_number),
            legacy_fan=self.is_legacy_fan(model_number),
        )


def select_status_scheme(profile: ModelProfile, address: int,
                         high_address: int = HIGH_ADDRESS_THRESHOLD) -> StatusScheme:
    """Pick the STATUS_BYTE interpretation for a unit"""
    if profile.non_standard:
        return StatusScheme.NON_STANDARD
    if address >= high_address:
        return StatusScheme.UNSUPPORTED
    return StatusScheme.STANDARD
