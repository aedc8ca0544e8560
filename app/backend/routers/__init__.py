"""
Routers package for FastAPI endpoints.

- receipts: Receipt upload and extraction
"""

from . import receipts

__all__ = ["receipts"]
