"""
Version information for the CV assessment service.

This file is the single source of truth for version numbers.
The package re-exports it; keep setup.py in step.
"""

__version__ = "0.3.0"
__version_info__ = (0, 3, 0)
