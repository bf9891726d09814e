"""
PMBus package for Superbmc

This package decodes telemetry from Supermicro power supply modules read
over the BMC's private I2C bus.
"""

from .linear import linear_data_format, linear_data_format_legacy, decode_vout
from .models import ModelClassifier, ModelProfile, StatusScheme, select_status_scheme
from .status import StatusDecode, decode_status
from .reader import PowerSupplyReader, PowerSupplyReading

__all__ = [
    'linear_data_format',
    'linear_data_format_legacy',
    'decode_vout',
    'ModelClassifier',
    'ModelProfile',
    'StatusScheme',
    'select_status_scheme',
    'StatusDecode',
    'decode_status',
    'PowerSupplyReader',
    'PowerSupplyReading',
]
