"""
Services package for the receipt extraction application.

Contains:
- multipart: Raw-byte multipart/form-data extraction
- image_service: Image format sniffing and preparation
- ai: OpenAI integration for receipt data extraction
- processing: Direct and forwarding receipt processing strategies
"""

from .image_service import ImageService, sniff_image_type
from .multipart import ExtractedFile, extract_file_part, locate_boundary

__all__ = [
    "ExtractedFile",
    "ImageService",
    "extract_file_part",
    "locate_boundary",
    "sniff_image_type",
]
