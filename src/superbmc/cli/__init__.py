"""
CLI package for Superbmc

This package provides the command-line interface for reading power
supply telemetry and controlling the BMC.
"""

from .interface import main

__all__ = ['main']
