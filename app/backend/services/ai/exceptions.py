"""
Shared exceptions for AI service modules.
"""


class AIServiceError(Exception):
    """Raised when the vision model call fails or returns nothing usable."""

    pass
