"""
CV assessment service.

Scores candidate CVs against structured job-description requirements and
keeps assessment sessions consistent as requirements and candidates change.
"""

from version import __version__

__all__ = ["__version__"]
