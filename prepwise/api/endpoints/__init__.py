"""
API endpoint modules for PrepWise
"""

from prepwise.api.endpoints import assessment, report, metadata

__all__ = ["assessment", "report", "metadata"]
