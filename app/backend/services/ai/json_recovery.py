"""
Recovery of a JSON object embedded in free-form model output.

Vision models often wrap the requested JSON in prose ("Sure! Here is the
data: {...} Hope that helps!"). The span from the first ``{`` to the last
``}`` is decoded; anything that cannot be decoded is preserved verbatim under
``raw_response`` instead of being discarded.
"""

import json
import logging
from typing import Any

logger = logging.getLogger(__name__)

RAW_RESPONSE_KEY = "raw_response"


def _fallback(text: str) -> dict[str, Any]:
    return {RAW_RESPONSE_KEY: text}


def recover_json(text: str) -> dict[str, Any]:
    """
    Best-effort extraction of a JSON object from model text.

    The span is chosen by absolute first ``{`` and absolute last ``}``, not
    by balanced-brace matching. Brace characters in prose around the object
    can therefore select the wrong span, in which case decoding fails and
    the fallback mapping is returned.

    Args:
        text: The full text reply from the model.

    Returns:
        The decoded object, or ``{"raw_response": text}`` if no object could
        be decoded. Never raises.
    """
    json_start = text.find("{")
    json_end = text.rfind("}")

    if json_start == -1 or json_end <= json_start:
        logger.warning("No JSON object found in model response (%d chars)", len(text))
        return _fallback(text)

    candidate = text[json_start : json_end + 1]
    try:
        decoded = json.loads(candidate)
    except json.JSONDecodeError as e:
        logger.warning("Failed to parse model response as JSON: %s", e)
        return _fallback(text)
    except RecursionError:
        # Deeply nested arrays/objects exhaust the decoder's stack
        logger.warning("Model response JSON is nested too deeply to decode")
        return _fallback(text)

    if not isinstance(decoded, dict):
        logger.warning("Model response JSON is %s, not an object", type(decoded).__name__)
        return _fallback(text)

    return decoded
