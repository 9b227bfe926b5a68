# campaigner_tui/campaigner_api/utils.py
#
#
# Imports
import base64
import binascii
import json
import logging
import time
from typing import Any, Dict, List, Optional
#
#######################################################################################################################
#
# Functions:

logger = logging.getLogger(__name__)


def extract_collection_items(payload: Any) -> List[Any]:
    """
    Accepts either a bare JSON array or an envelope of the form {"items": [...]}.
    Anything else yields an empty list.
    """
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict) and isinstance(payload.get("items"), list):
        return payload["items"]
    if payload is not None:
        logger.warning(f"Unexpected collection payload shape: {type(payload).__name__}")
    return []


def decode_token_payload(token: Optional[str]) -> Optional[Dict[str, Any]]:
    """
    Decodes the payload segment of a JWT without verifying its signature.
    The client only needs the claims for housekeeping (expiry, user id);
    verification is the server's job. Returns None for anything malformed.
    """
    if not token or not isinstance(token, str):
        return None
    parts = token.split(".")
    if len(parts) != 3:
        return None
    segment = parts[1]
    segment += "=" * (-len(segment) % 4)  # restore stripped base64 padding
    try:
        decoded = base64.urlsafe_b64decode(segment.encode("ascii"))
        payload = json.loads(decoded)
    except (binascii.Error, ValueError, UnicodeError) as e:
        logger.debug(f"Could not decode token payload: {e}")
        return None
    return payload if isinstance(payload, dict) else None


def is_token_expired(token: Optional[str], leeway_seconds: float = 0.0, now: Optional[float] = None) -> bool:
    """True when the token is missing, malformed, or its `exp` claim is in the past."""
    payload = decode_token_payload(token)
    if payload is None:
        return True
    exp = payload.get("exp")
    if exp is None:
        return False
    try:
        exp_value = float(exp)
    except (TypeError, ValueError):
        return True
    current = time.time() if now is None else now
    return current >= exp_value - leeway_seconds


def get_user_id_from_token(token: Optional[str]) -> Optional[int]:
    payload = decode_token_payload(token)
    if not payload:
        return None
    user_id = payload.get("user_id")
    if isinstance(user_id, bool):
        return None
    try:
        user_id = int(user_id)
    except (TypeError, ValueError):
        return None
    return user_id if user_id > 0 else None

#
# End of utils.py
#######################################################################################################################
