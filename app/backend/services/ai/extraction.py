"""
Receipt data extraction from a single image.

Sends the receipt image and an extraction prompt to an OpenAI vision model
and turns the free-form reply into a key/value mapping.
"""

import logging
from datetime import datetime
from typing import Any

from ..image_service import ImageService
from ..multipart import ExtractedFile
from .exceptions import AIServiceError
from .json_recovery import recover_json

logger = logging.getLogger(__name__)


# =============================================================================
# Extraction Prompt
# =============================================================================

EXTRACTION_PROMPT = """You are an expert at analyzing receipts and invoices. Please carefully examine this image and extract ALL visible text and data into a structured JSON format.

Extract the following information if available:
- Business information: name, address, phone number, website
- Transaction details: date, time, receipt/invoice number, order number
- All line items: product names, quantities, individual prices
- Financial details: subtotal, tax amounts, discounts, tips, final total
- Payment information: payment method, card details (if safe to include)
- Any additional text, numbers, or codes visible on the receipt

Guidelines:
1. For unclear or partially visible text, provide your best interpretation
2. Use descriptive keys (e.g., "item_1_name", "item_1_price", "item_1_quantity")
3. Keep all monetary values as strings with currency symbols if present
4. Include dates in ISO format (YYYY-MM-DD) when possible
5. If you see multiple similar items, number them sequentially
6. Extract any barcodes, QR codes, or reference numbers you can see

Return ONLY a valid JSON object with descriptive string keys. Example format:
{
  "business_name": "Coffee Corner",
  "business_address": "123 Main Street, City, State 12345",
  "transaction_date": "2024-12-28",
  "transaction_time": "14:35",
  "receipt_number": "R12345",
  "item_1_name": "Large Cappuccino",
  "item_1_price": "$4.50",
  "subtotal": "$4.50",
  "tax": "$0.36",
  "total": "$4.86",
  "payment_method": "Credit Card"
}"""


def build_messages(file: ExtractedFile, image_service: ImageService) -> list[dict[str, Any]]:
    """Build the chat messages carrying the prompt and the receipt image."""
    return [
        {
            "role": "user",
            "content": [
                {"type": "text", "text": EXTRACTION_PROMPT},
                {
                    "type": "image_url",
                    "image_url": {
                        "url": image_service.to_data_url(file.data, file.mime_type),
                        "detail": "high",
                    },
                },
            ],
        }
    ]


def get_mock_receipt(now: datetime | None = None) -> dict[str, Any]:
    """Return demo receipt data used when no API key is configured."""
    now = now or datetime.now()
    return {
        "business_name": "Demo Coffee Shop",
        "date": now.strftime("%Y-%m-%d"),
        "time": now.strftime("%H:%M"),
        "total": "15.47",
        "item_1": "Large Coffee - $4.50",
        "item_2": "Blueberry Muffin - $3.25",
        "item_3": "Sandwich - $7.72",
        "subtotal": "15.47",
        "tax": "0.00",
        "payment_method": "Credit Card",
        "receipt_number": "12345",
        "note": "Mock data - configure OpenAI API key for real extraction",
    }


async def extract_receipt_data(
    file: ExtractedFile,
    client: Any,  # OpenAI client
    image_service: ImageService,
    model: str = "gpt-4.1-mini",
    max_tokens: int = 4096,
    temperature: float = 0.1,
    use_mock: bool = False,
) -> dict[str, Any]:
    """
    Extract receipt fields from an image.

    Args:
        file: The uploaded receipt image.
        client: OpenAI client instance.
        image_service: Used to build the image data URL.
        model: Vision-capable model name.
        max_tokens: Completion token limit.
        temperature: Sampling temperature.
        use_mock: If True, return demo data without calling OpenAI.

    Returns:
        The recovered key/value mapping. If the reply is not valid JSON the
        mapping holds the reply text under ``raw_response``.

    Raises:
        AIServiceError: If the model call fails or returns no content.
    """
    if use_mock:
        logger.info("OpenAI API key not configured, returning mock data")
        return get_mock_receipt()

    logger.info(
        "Processing receipt image: %d bytes (%s) with model %s",
        file.size,
        file.mime_type,
        model,
    )

    try:
        response = client.chat.completions.create(
            model=model,
            messages=build_messages(file, image_service),
            max_tokens=max_tokens,
            temperature=temperature,
        )
    except Exception as e:
        logger.exception("Receipt extraction request failed")
        raise AIServiceError(f"Receipt extraction failed: {e}") from e

    content = response.choices[0].message.content if response.choices else None
    if not content:
        logger.warning("No content received from OpenAI API")
        raise AIServiceError("No content received from OpenAI API")

    extracted = recover_json(content)
    logger.info("Successfully extracted %d field(s) from receipt", len(extracted))
    return extracted
