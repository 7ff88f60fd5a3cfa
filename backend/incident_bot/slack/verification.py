"""
Slack request signature verification.

Slack signs ``v0:{timestamp}:{raw body}`` with HMAC-SHA256 using the app's
signing secret and sends ``v0={hexdigest}`` in ``X-Slack-Signature``.
Requests whose timestamp is more than the tolerance away from now, in
either direction, are rejected.
"""

import hashlib
import hmac
import time
from typing import Optional

from incident_bot.core.exceptions import InvalidSignatureError

SIGNATURE_VERSION = "v0"


def compute_signature(signing_secret: str, timestamp: str, body: bytes) -> str:
    base = f"{SIGNATURE_VERSION}:{timestamp}:".encode("utf-8") + body
    digest = hmac.new(signing_secret.encode("utf-8"), base, hashlib.sha256).hexdigest()
    return f"{SIGNATURE_VERSION}={digest}"


def verify_slack_signature(
    signing_secret: str,
    timestamp: Optional[str],
    body: bytes,
    signature: Optional[str],
    tolerance_seconds: int = 300,
    now: Optional[float] = None,
) -> None:
    """
    Raises:
        InvalidSignatureError: On a missing header, stale or future
            timestamp, or digest mismatch
    """
    if not signing_secret:
        raise InvalidSignatureError("signing secret not configured")
    if not timestamp or not signature:
        raise InvalidSignatureError("missing signature headers")

    try:
        request_time = int(timestamp)
    except ValueError:
        raise InvalidSignatureError("malformed timestamp")

    current_time = time.time() if now is None else now
    if abs(current_time - request_time) > tolerance_seconds:
        raise InvalidSignatureError("stale timestamp")

    expected = compute_signature(signing_secret, timestamp, body)
    if not hmac.compare_digest(expected, signature):
        raise InvalidSignatureError("signature mismatch")
