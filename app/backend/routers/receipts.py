"""
Router for receipt extraction.

The route reads the raw request body and runs it through the raw-byte
multipart extractor rather than FastAPI's form parsing, so it behaves the
same as the Lambda entry point.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status

from ..models import ReceiptExtractionResponse
from ..services.ai import AIServiceError
from ..services.multipart import MissingBoundaryError, NoFilePartError
from ..services.processing import ReceiptForwardingError, ReceiptProcessor

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/receipt", tags=["receipts"])


def get_receipt_processor(request: Request) -> ReceiptProcessor:
    """Return the processor built at application startup."""
    return request.app.state.receipt_processor


@router.post("/extract", response_model=ReceiptExtractionResponse)
async def extract_receipt(
    request: Request,
    processor: ReceiptProcessor = Depends(get_receipt_processor),
) -> ReceiptExtractionResponse:
    """
    Extract data from an uploaded receipt image.

    Expects a multipart/form-data body with one file part holding the image.
    """
    body = await request.body()
    if not body:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Request body is required",
        )

    try:
        return await processor.process(body, request.headers.get("content-type"))
    except MissingBoundaryError as e:
        logger.warning("Rejected upload: %s", e)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid Content-Type header",
        )
    except NoFilePartError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No image file provided",
        )
    except (AIServiceError, ReceiptForwardingError):
        # Translated by the application's exception handlers
        raise
    except Exception as e:
        logger.exception("Unexpected error processing receipt")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to process receipt: {e}",
        )
