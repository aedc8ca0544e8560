"""
AWS Lambda entry point (API Gateway proxy integration).

API Gateway hands the function the request body as a single string, base64
encoded for binary uploads, with no multipart decoding. The body is passed
as raw bytes to the same receipt processor the FastAPI app uses.
"""

import asyncio
import base64
import binascii
import json
import logging
from typing import Any

from .config import get_settings
from .credentials import SecretRetrievalError, load_openai_api_key
from .models import ErrorResponse, HelloResponse
from .services.ai import AIServiceError, build_ai_service
from .services.multipart import MissingBoundaryError, NoFilePartError
from .services.processing import (
    ReceiptForwardingError,
    ReceiptProcessor,
    build_receipt_processor,
)

# Configure logging
logging.basicConfig(
    level=get_settings().log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)
logger.setLevel(get_settings().log_level)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET,HEAD,OPTIONS,POST,PUT,DELETE",
    "Access-Control-Allow-Headers": "*",
}


def init_processor() -> ReceiptProcessor:
    """Build the receipt processor. Called once per Lambda cold start."""
    settings = get_settings()
    ai_service = build_ai_service(settings, load_openai_api_key(settings))
    return build_receipt_processor(settings, ai_service)


PROCESSOR: ReceiptProcessor | None = None


def get_processor() -> ReceiptProcessor:
    """
    Return the cached processor, building it if the cold start attempt failed.

    Raises:
        SecretRetrievalError: If the OpenAI API key still cannot be loaded.
    """
    global PROCESSOR
    if PROCESSOR is None:
        PROCESSOR = init_processor()
    return PROCESSOR


try:
    PROCESSOR = init_processor()
except SecretRetrievalError as e:
    logger.error("Receipt processor unavailable at cold start: %s", e)


def _response(status_code: int, body: dict[str, Any]) -> dict[str, Any]:
    return {
        "statusCode": status_code,
        "headers": {**CORS_HEADERS, "Content-Type": "application/json"},
        "body": json.dumps(body, default=str),
    }


def _error(status_code: int, error: str, message: str | None = None) -> dict[str, Any]:
    return _response(
        status_code,
        ErrorResponse(error=error, message=message).model_dump(exclude_none=True),
    )


def get_header(headers: dict[str, str] | None, name: str) -> str | None:
    """Case-insensitive header lookup (API Gateway does not normalize case)."""
    if not headers:
        return None
    name = name.lower()
    for key, value in headers.items():
        if key.lower() == name:
            return value
    return None


def decode_body(event: dict[str, Any]) -> bytes:
    """
    Return the request body as bytes.

    Raises:
        ValueError: If a base64-flagged body is not valid base64.
    """
    body = event.get("body") or ""
    if event.get("isBase64Encoded"):
        try:
            return base64.b64decode(body, validate=True)
        except binascii.Error as e:
            raise ValueError(f"Invalid base64 request body: {e}") from e
    return body.encode("utf-8")


def _route_path(event: dict[str, Any]) -> str:
    proxy = (event.get("pathParameters") or {}).get("proxy")
    if proxy is None:
        proxy = event.get("path") or ""
    return proxy.strip("/")


def handle_hello() -> dict[str, Any]:
    hello = HelloResponse(message="Hello World from the receipt extraction Lambda!")
    return _response(200, hello.model_dump(mode="json"))


def handle_receipt_extract(event: dict[str, Any], processor: ReceiptProcessor) -> dict[str, Any]:
    """Run the receipt processor on an API Gateway event."""
    try:
        body = decode_body(event)
    except ValueError as e:
        logger.warning("Rejected upload: %s", e)
        return _error(400, "Invalid request body encoding")

    if not body:
        return _error(400, "Request body is required")

    content_type = get_header(event.get("headers"), "Content-Type")
    try:
        result = asyncio.run(processor.process(body, content_type))
    except MissingBoundaryError as e:
        logger.warning("Rejected upload: %s", e)
        return _error(400, "Invalid Content-Type header")
    except NoFilePartError:
        return _error(400, "No image file provided")
    except ReceiptForwardingError as e:
        return _error(e.status_code, "Failed to process receipt", str(e))
    except AIServiceError as e:
        logger.error("Error processing receipt: %s", e)
        return _error(500, "Failed to process receipt", str(e))
    except Exception as e:
        logger.exception("Unexpected error processing receipt")
        return _error(500, "Failed to process receipt", str(e))

    logger.info("Successfully extracted data from receipt")
    return _response(200, result.model_dump(mode="json", by_alias=True))


def lambda_handler(
    event: dict[str, Any],
    context: Any,
    processor: ReceiptProcessor | None = None,
) -> dict[str, Any]:
    """
    API Gateway proxy handler.

    Args:
        event: API Gateway proxy event.
        context: Lambda context.
        processor: Overrides the processor built at cold start.
    """
    request_id = getattr(context, "aws_request_id", "unknown")
    method = event.get("httpMethod", "GET")
    logger.info("Request %s: %s %s", request_id, method, event.get("path"))

    try:
        if method == "OPTIONS":
            return _response(200, {"ok": True})

        path = _route_path(event)
        lowered = path.lower()
        if lowered.startswith("hello"):
            return handle_hello()
        if lowered.startswith("receipt/extract"):
            if processor is None:
                try:
                    processor = get_processor()
                except SecretRetrievalError as e:
                    logger.error("Cannot load OpenAI API key: %s", e)
                    return _error(500, "Failed to process receipt", str(e))
            return handle_receipt_extract(event, processor)

        return _error(404, "Not Found")
    except Exception as e:
        logger.exception("Unhandled error")
        return _error(500, "Internal server error", str(e))
