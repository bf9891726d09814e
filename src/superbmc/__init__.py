"""
Superbmc - Supermicro BMC power supply telemetry and boot control
"""

import logging

__version__ = "0.1.0"

logging.getLogger('superbmc').addHandler(logging.NullHandler())
