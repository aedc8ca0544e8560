"""
Receipt processing strategies.

A deployment either calls the vision model itself (direct) or proxies the
upload to another receipt service (forward). The choice is made once, from
configuration, when the application starts.
"""

import logging
from abc import ABC, abstractmethod

import httpx
from pydantic import ValidationError

from ..config import Settings
from ..models import ReceiptExtractionResponse
from .ai import AIService
from .multipart import extract_image

logger = logging.getLogger(__name__)

EXTRACT_PATH = "/receipt/extract"


class ReceiptForwardingError(Exception):
    """Raised when the downstream receipt service fails."""

    def __init__(self, message: str, status_code: int = 502):
        super().__init__(message)
        self.status_code = status_code


class ReceiptProcessor(ABC):
    """Turns a raw multipart upload into extracted receipt data."""

    mode: str = ""

    @abstractmethod
    async def process(
        self, body: bytes, content_type: str | None
    ) -> ReceiptExtractionResponse:
        """
        Process a raw multipart/form-data request body.

        Args:
            body: The request body, already base64-decoded if needed.
            content_type: The request's Content-Type header value.
        """


class DirectReceiptProcessor(ReceiptProcessor):
    """Extracts the image from the body and calls the vision model."""

    mode = "direct"

    def __init__(self, ai_service: AIService):
        self.ai_service = ai_service

    async def process(
        self, body: bytes, content_type: str | None
    ) -> ReceiptExtractionResponse:
        image = extract_image(body, content_type)
        logger.info("Processing receipt image, size: %d bytes", image.size)

        extracted_data = await self.ai_service.extract_receipt_data(image)
        return ReceiptExtractionResponse(
            extracted_data=extracted_data,
            processing_status="Success",
        )


class ForwardingReceiptProcessor(ReceiptProcessor):
    """Passes the upload through unchanged to another receipt service."""

    mode = "forward"

    def __init__(self, forward_url: str, timeout: float = 30.0, transport=None):
        """
        Args:
            forward_url: Base URL of the downstream service.
            timeout: Request timeout in seconds.
            transport: Optional httpx transport (mainly for tests).
        """
        self.forward_url = forward_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    @property
    def target_url(self) -> str:
        return f"{self.forward_url}{EXTRACT_PATH}"

    async def process(
        self, body: bytes, content_type: str | None
    ) -> ReceiptExtractionResponse:
        headers = {"Content-Type": content_type} if content_type else {}
        logger.info("Forwarding %d byte receipt upload to %s", len(body), self.target_url)

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self.transport
            ) as client:
                response = await client.post(self.target_url, content=body, headers=headers)
        except httpx.HTTPError as e:
            logger.error("Receipt forwarding failed: %s", e)
            raise ReceiptForwardingError(f"Receipt service unreachable: {e}") from e

        if response.is_error:
            detail = _error_detail(response)
            logger.warning(
                "Receipt service returned %d: %s", response.status_code, detail
            )
            raise ReceiptForwardingError(detail, status_code=response.status_code)

        try:
            return ReceiptExtractionResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            logger.error("Invalid response from receipt service: %s", e)
            raise ReceiptForwardingError(f"Invalid response from receipt service: {e}") from e


def _error_detail(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(payload, dict):
        for key in ("detail", "error", "message"):
            if payload.get(key):
                return str(payload[key])
    return str(payload)


def build_receipt_processor(settings: Settings, ai_service: AIService) -> ReceiptProcessor:
    """
    Select the processing strategy from settings.

    Raises:
        ValueError: If forward mode is configured without a forward URL.
    """
    if settings.processing_mode == "forward":
        if not settings.forward_url:
            raise ValueError("FORWARD_URL must be set when PROCESSING_MODE is 'forward'")
        logger.info("Receipt processing mode: forward to %s", settings.forward_url)
        return ForwardingReceiptProcessor(
            settings.forward_url, timeout=settings.forward_timeout_seconds
        )

    logger.info("Receipt processing mode: direct (model %s)", ai_service.model)
    return DirectReceiptProcessor(ai_service)
