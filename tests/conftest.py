"""Pytest configuration and fixtures."""

import io
import os
from typing import Callable, Generator

import pytest
from fastapi.testclient import TestClient

# Force mock mode and direct processing regardless of the developer's env
os.environ["OPENAI_API_KEY"] = ""
os.environ["OPENAI_API_KEY_SECRET"] = ""
os.environ["PROCESSING_MODE"] = "direct"

from app.backend.main import app  # noqa: E402

BOUNDARY = "----ReceiptFormBoundary7MA4YWxkTrZu0gW"


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    """Create a test client for the FastAPI application."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def boundary() -> str:
    return BOUNDARY


@pytest.fixture
def sample_png_bytes() -> bytes:
    """A small, valid PNG image."""
    from PIL import Image

    buffer = io.BytesIO()
    Image.new("RGB", (40, 60), color="white").save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def sample_jpeg_bytes() -> bytes:
    """A small, valid JPEG image."""
    from PIL import Image

    buffer = io.BytesIO()
    Image.new("RGB", (40, 60), color="blue").save(buffer, format="JPEG")
    return buffer.getvalue()


@pytest.fixture
def build_multipart() -> Callable[..., bytes]:
    """
    Factory for multipart/form-data bodies.

    The body holds an optional text field followed by one file part. Line
    endings for the part headers and for the boundary lines can be chosen
    separately so mixed conventions can be exercised.
    """

    def _build(
        payload: bytes,
        boundary: str = BOUNDARY,
        header_newline: bytes = b"\r\n",
        boundary_newline: bytes | None = None,
        filename: str = "receipt.png",
        content_type: str = "image/png",
        text_field: bool = True,
    ) -> bytes:
        nl = header_newline
        bnl = boundary_newline if boundary_newline is not None else header_newline
        marker = b"--" + boundary.encode()

        body = b""
        if text_field:
            body += marker + nl
            body += b'Content-Disposition: form-data; name="note"' + nl + nl
            body += b"lunch receipt" + bnl
        body += marker + nl
        body += (
            b'Content-Disposition: form-data; name="file"; filename="'
            + filename.encode()
            + b'"'
            + nl
        )
        body += b"Content-Type: " + content_type.encode() + nl + nl
        body += payload + bnl
        body += marker + b"--" + bnl
        return body

    return _build
