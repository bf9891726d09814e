"""
Tests for power supply model classification
"""

import pytest

from superbmc.pmbus.models import (
    HIGH_ADDRESS_THRESHOLD,
    NON_STANDARD_MODELS,
    ModelClassifier,
    ModelProfile,
    StatusScheme,
    select_status_scheme,
)


@pytest.fixture
def classifier():
    return ModelClassifier()


class TestModelClassifier:
    """Test the built-in model table"""

    @pytest.mark.parametrize("model", ["PWS-721P", "PWS-920P-1R2", "PWS-1K41P-1R", "PWS-504P-RR"])
    def test_non_standard(self, classifier, model):
        assert classifier.is_non_standard(model)

    @pytest.mark.parametrize("model", ["PWS-2K04A-1R", "PWS-1K28P-SQ", "", "ABC"])
    def test_standard(self, classifier, model):
        assert not classifier.is_non_standard(model)

    def test_legacy_fan(self, classifier):
        assert classifier.is_legacy_fan("PWS-721P-1R")
        assert not classifier.is_legacy_fan("PWS-920P-1R2")

    def test_classify(self, classifier):
        profile = classifier.classify("PWS-721P-1R")
        assert profile == ModelProfile("PWS-721P-1R", non_standard=True, legacy_fan=True)

    def test_table_is_explicit_data(self):
        """A classifier only knows the models it was given"""
        custom = ModelClassifier(non_standard=("PWS-TEST",), exact=(), legacy_marker="")
        assert custom.is_non_standard("PWS-TEST-1R")
        assert not custom.is_non_standard("PWS-721P")
        assert not custom.is_legacy_fan("PWS-721P")

    def test_exact_match_is_whole_string(self):
        custom = ModelClassifier(non_standard=(), exact=("PWS-920P-1R2",))
        assert custom.is_non_standard("PWS-920P-1R2")
        assert not custom.is_non_standard("PWS-920P-1R2X")

    def test_default_table(self):
        assert len(NON_STANDARD_MODELS) == 10


class TestStatusScheme:
    """Test status layout selection"""

    def test_non_standard_wins_over_address(self):
        profile = ModelProfile("PWS-721P", True, True)
        assert select_status_scheme(profile, 0xB0) == StatusScheme.NON_STANDARD

    def test_high_address_unsupported(self):
        profile = ModelProfile("PWS-2K04A-1R", False, False)
        assert select_status_scheme(profile, HIGH_ADDRESS_THRESHOLD) == StatusScheme.UNSUPPORTED
        assert select_status_scheme(profile, 0xB2) == StatusScheme.UNSUPPORTED

    def test_standard_below_threshold(self):
        profile = ModelProfile("PWS-2K04A-1R", False, False)
        assert select_status_scheme(profile, 0x78) == StatusScheme.STANDARD
        assert select_status_scheme(profile, 0xAF) == StatusScheme.STANDARD
