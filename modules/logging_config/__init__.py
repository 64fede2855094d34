"""
Logging Configuration Module
============================

Responsibility:
- Coloured console output for interactive runs.
- Rotating UTF-8 log file for every run.
"""

from .logging_config import LoggingConfigurator, ColoredFormatter

__all__ = ['LoggingConfigurator', 'ColoredFormatter']
