"""
pgauto - Resource-aware PostgreSQL auto-configuration.

Detects the memory and CPU actually available to the database process,
derives a consistent set of tuning parameters and hands them to PostgreSQL
at startup.
"""

__version__ = "1.0.0"
__author__ = "Server Management Team"
