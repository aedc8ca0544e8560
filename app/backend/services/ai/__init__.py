"""
AI service package for receipt data extraction.

This package provides:
- extraction: Prompt construction and the vision model call
- json_recovery: Recovery of the JSON object embedded in model output

The AIService class bundles the OpenAI client and model settings. It is
constructed once at process start and passed to whatever handles requests.
"""

import logging
from typing import Any

from openai import OpenAI

from ..image_service import ImageService
from ..multipart import ExtractedFile
from .exceptions import AIServiceError
from .extraction import extract_receipt_data as _extract_receipt_data
from .extraction import get_mock_receipt
from .json_recovery import RAW_RESPONSE_KEY, recover_json

logger = logging.getLogger(__name__)

__all__ = [
    "AIService",
    "AIServiceError",
    "RAW_RESPONSE_KEY",
    "build_ai_service",
    "get_mock_receipt",
    "recover_json",
]


class AIService:
    """
    Service for AI-powered receipt extraction.

    Uses an OpenAI vision-capable chat model. When no API key is available
    the service runs in mock mode and returns demo data.
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str = "gpt-4.1-mini",
        max_tokens: int = 4096,
        temperature: float = 0.1,
        image_service: ImageService | None = None,
        client: Any = None,
        use_mock: bool = False,
    ):
        """
        Initialize the AI service.

        Args:
            api_key: OpenAI API key. Mock mode is used when empty.
            model: OpenAI model to use (must support vision).
            max_tokens: Completion token limit per request.
            temperature: Sampling temperature.
            image_service: Image preparation service.
            client: Pre-built OpenAI-compatible client (mainly for tests).
            use_mock: If True, return demo data instead of calling OpenAI.
        """
        self.api_key = api_key
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.image_service = image_service or ImageService()
        self.use_mock = use_mock or (client is None and not api_key)

        if self.use_mock:
            self.client = client
            logger.warning(
                "AI Service running in MOCK MODE. Set OPENAI_API_KEY for real extraction."
            )
        else:
            self.client = client or OpenAI(api_key=api_key)

    async def extract_receipt_data(self, file: ExtractedFile) -> dict[str, Any]:
        """
        Extract key/value data from a receipt image.

        Delegates to the extraction module.
        """
        return await _extract_receipt_data(
            file,
            client=self.client,
            image_service=self.image_service,
            model=self.model,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
            use_mock=self.use_mock,
        )


def build_ai_service(settings: Any, api_key: str | None) -> AIService:
    """Create the AI service from application settings."""
    return AIService(
        api_key=api_key,
        model=settings.openai_model,
        max_tokens=settings.openai_max_tokens,
        temperature=settings.openai_temperature,
        image_service=ImageService(max_dimension=settings.max_image_dimension),
    )
