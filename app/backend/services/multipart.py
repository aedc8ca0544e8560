"""
Raw-byte multipart/form-data extraction.

Used when the handler receives an undifferentiated request body (API Gateway
proxy events, or a raw ASGI body) and no framework multipart decoder is
available. The body may contain arbitrary binary image data, so it is never
decoded as text: only the boundary markers and header separators are located
as byte patterns.
"""

import logging
from dataclasses import dataclass

from .image_service import sniff_image_type

logger = logging.getLogger(__name__)

BOUNDARY_TOKEN = "boundary="
FILENAME_MARKER = b"filename="
FILENAME_SKIP = 10
CRLF_SEPARATOR = b"\r\n\r\n"
LF_SEPARATOR = b"\n\n"


class MultipartError(ValueError):
    """Base class for multipart extraction failures."""

    pass


class MissingBoundaryError(MultipartError):
    """Raised when the content type carries no boundary token."""

    pass


class NoFilePartError(MultipartError):
    """Raised when a multipart body contains no file-bearing part."""

    pass


@dataclass(frozen=True)
class ExtractedFile:
    """
    A file payload copied out of a multipart body.

    Attributes:
        data: The part payload bytes.
        mime_type: Image MIME type inferred from the leading bytes.
    """

    data: bytes
    mime_type: str

    @property
    def size(self) -> int:
        return len(self.data)


def locate_boundary(content_type: str | None) -> str:
    """
    Extract the boundary token from a Content-Type header value.

    The search for ``boundary=`` is case-insensitive. Everything after it is
    the token, with a single pair of surrounding double quotes removed.

    Args:
        content_type: The raw header value, or None if the header was absent.

    Returns:
        The boundary token (without quotes or ``--`` prefix).

    Raises:
        MissingBoundaryError: If no boundary token is present.
    """
    if not content_type:
        raise MissingBoundaryError("Content-Type header is missing")

    index = content_type.lower().find(BOUNDARY_TOKEN)
    if index == -1:
        raise MissingBoundaryError("Content-Type header has no boundary parameter")

    boundary = content_type[index + len(BOUNDARY_TOKEN):]
    if len(boundary) >= 2 and boundary.startswith('"') and boundary.endswith('"'):
        boundary = boundary[1:-1]

    if not boundary:
        raise MissingBoundaryError("Content-Type header has an empty boundary")

    return boundary


def find_bytes(source: bytes, pattern: bytes, start: int = 0) -> int | None:
    """Return the offset of the first ``pattern`` at or after ``start``, or None."""
    position = source.find(pattern, start)
    return position if position >= 0 else None


def _nearest(crlf_pos: int | None, lf_pos: int | None) -> tuple[int, bool] | None:
    """
    Pick the nearer of a CRLF-style and an LF-style match.

    CRLF wins when it is at or before the LF match. Returns the chosen
    offset and whether it was the CRLF form.
    """
    if crlf_pos is not None and (lf_pos is None or crlf_pos <= lf_pos):
        return crlf_pos, True
    if lf_pos is not None:
        return lf_pos, False
    return None


def extract_file_part(body: bytes, boundary: str) -> ExtractedFile | None:
    """
    Return the payload of the first file-bearing part in a multipart body.

    Scans for ``filename=``, splits the part headers from the payload at the
    first blank line (CRLF or LF), and ends the payload at the next boundary
    marker. Both line-ending conventions are accepted and may be mixed within
    one body.

    Args:
        body: The full request body.
        boundary: Boundary token from the Content-Type header.

    Returns:
        The extracted file, or None when no non-empty file part is found.
    """
    boundary_bytes = boundary.encode("utf-8")
    crlf_boundary = b"\r\n--" + boundary_bytes
    lf_boundary = b"\n--" + boundary_bytes
    closing_boundary = b"--" + boundary_bytes + b"--"

    position = 0
    while position < len(body):
        filename_pos = find_bytes(body, FILENAME_MARKER, position)
        if filename_pos is None:
            break

        separator = _nearest(
            find_bytes(body, CRLF_SEPARATOR, filename_pos),
            find_bytes(body, LF_SEPARATOR, filename_pos),
        )
        if separator is not None:
            header_end, is_crlf = separator
            data_start = header_end + (len(CRLF_SEPARATOR) if is_crlf else len(LF_SEPARATOR))

            next_boundary = _nearest(
                find_bytes(body, crlf_boundary, data_start),
                find_bytes(body, lf_boundary, data_start),
            )
            if next_boundary is not None:
                data_end = next_boundary[0]
            else:
                closing_pos = find_bytes(body, closing_boundary, data_start)
                data_end = closing_pos if closing_pos is not None else len(body)

            if data_end > data_start:
                data = bytes(body[data_start:data_end])
                logger.info(
                    "Extracted file part: %d bytes, from position %d to %d",
                    len(data),
                    data_start,
                    data_end,
                )
                return ExtractedFile(data=data, mime_type=sniff_image_type(data))

        position = filename_pos + FILENAME_SKIP

    return None


def extract_image(body: bytes, content_type: str | None) -> ExtractedFile:
    """
    Locate the boundary and extract the uploaded image in one step.

    Raises:
        MissingBoundaryError: If the content type has no boundary.
        NoFilePartError: If the body holds no file part.
    """
    boundary = locate_boundary(content_type)
    extracted = extract_file_part(body, boundary)
    if extracted is None:
        logger.warning("No file part found in %d byte multipart body", len(body))
        raise NoFilePartError("No image file provided")
    return extracted
