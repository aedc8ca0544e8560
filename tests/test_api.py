"""Tests for FastAPI endpoints."""

from fastapi.testclient import TestClient

from app.backend.main import app
from app.backend.services.ai import AIService, AIServiceError
from app.backend.services.processing import (
    DirectReceiptProcessor,
    ReceiptForwardingError,
    ReceiptProcessor,
)


class TestHealthEndpoints:
    """Tests for health check endpoints."""

    def test_root_endpoint(self, client: TestClient):
        """Test root endpoint returns health status."""
        response = client.get("/")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert "version" in data

    def test_health_endpoint(self, client: TestClient):
        """Test /health endpoint returns health status."""
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_hello_endpoint(self, client: TestClient):
        response = client.get("/hello")
        assert response.status_code == 200
        data = response.json()
        assert "Hello World" in data["message"]
        assert "timestamp" in data


class TestReceiptExtractEndpoint:
    """Tests for POST /receipt/extract."""

    def test_startup_builds_direct_processor(self, client: TestClient):
        """Test that the lifespan handler wires a mock-mode direct processor."""
        processor = app.state.receipt_processor
        assert isinstance(processor, DirectReceiptProcessor)
        assert processor.ai_service.use_mock is True

    def test_extract_success_mock(
        self, client: TestClient, build_multipart, boundary, sample_png_bytes
    ):
        """Test a well-formed upload returns demo data in mock mode."""
        response = client.post(
            "/receipt/extract",
            content=build_multipart(sample_png_bytes),
            headers={"Content-Type": f"multipart/form-data; boundary={boundary}"},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["processingStatus"] == "Success"
        assert data["extractedData"]["business_name"] == "Demo Coffee Shop"
        assert "processedAt" in data

    def test_extract_accepts_client_multipart(self, client: TestClient, sample_jpeg_bytes):
        """Test an upload encoded by the HTTP client itself."""
        response = client.post(
            "/receipt/extract",
            files={"file": ("receipt.jpg", sample_jpeg_bytes, "image/jpeg")},
        )
        assert response.status_code == 200
        assert response.json()["processingStatus"] == "Success"

    def test_extract_rejects_empty_body(self, client: TestClient, boundary):
        response = client.post(
            "/receipt/extract",
            content=b"",
            headers={"Content-Type": f"multipart/form-data; boundary={boundary}"},
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Request body is required"

    def test_extract_rejects_missing_boundary(
        self, client: TestClient, build_multipart, sample_png_bytes
    ):
        response = client.post(
            "/receipt/extract",
            content=build_multipart(sample_png_bytes),
            headers={"Content-Type": "multipart/form-data"},
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid Content-Type header"

    def test_extract_rejects_body_without_file(self, client: TestClient, boundary):
        body = (
            f"--{boundary}\r\n"
            'Content-Disposition: form-data; name="note"\r\n'
            "\r\n"
            "no file here\r\n"
            f"--{boundary}--\r\n"
        ).encode()
        response = client.post(
            "/receipt/extract",
            content=body,
            headers={"Content-Type": f"multipart/form-data; boundary={boundary}"},
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "No image file provided"


class FailingProcessor(ReceiptProcessor):
    """Processor that raises a preset error."""

    def __init__(self, error: Exception):
        self.error = error

    async def process(self, body, content_type):
        raise self.error


class TestReceiptExtractErrors:
    """Tests for error translation in the extract route."""

    def _post(self, client: TestClient, boundary: str):
        return client.post(
            "/receipt/extract",
            content=b"anything",
            headers={"Content-Type": f"multipart/form-data; boundary={boundary}"},
        )

    def test_ai_service_error_is_503(self, client: TestClient, boundary):
        app.state.receipt_processor = FailingProcessor(AIServiceError("model down"))
        response = self._post(client, boundary)
        assert response.status_code == 503
        assert response.json()["detail"] == "model down"

    def test_forwarding_error_relays_status(self, client: TestClient, boundary):
        app.state.receipt_processor = FailingProcessor(
            ReceiptForwardingError("upstream said no", status_code=422)
        )
        response = self._post(client, boundary)
        assert response.status_code == 422
        assert response.json()["detail"] == "upstream said no"

    def test_unexpected_error_is_500(self, client: TestClient, boundary):
        app.state.receipt_processor = FailingProcessor(RuntimeError("boom"))
        response = self._post(client, boundary)
        assert response.status_code == 500
        assert "boom" in response.json()["detail"]

    def test_processor_can_be_replaced(self, client: TestClient, build_multipart, boundary):
        """Test that the route uses whatever processor the app holds."""
        app.state.receipt_processor = DirectReceiptProcessor(AIService(use_mock=True))
        response = client.post(
            "/receipt/extract",
            content=build_multipart(b"GIF89a..."),
            headers={"Content-Type": f"multipart/form-data; boundary={boundary}"},
        )
        assert response.status_code == 200


class TestCORS:
    """Tests for CORS configuration."""

    def test_cors_allows_angular_dev_server(self, client: TestClient):
        """Test that the frontend dev origin is allowed."""
        response = client.get(
            "/health",
            headers={"Origin": "http://localhost:4200"},
        )
        assert response.status_code == 200
        assert (
            response.headers.get("access-control-allow-origin")
            == "http://localhost:4200"
        )
