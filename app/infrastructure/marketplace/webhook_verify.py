from __future__ import annotations

import hashlib
import hmac
import logging
import time

logger = logging.getLogger(__name__)

# Confirmation events older than this are treated as replays
MAX_EVENT_AGE_SECONDS = 300


def _signed_message(timestamp: str, body: bytes) -> bytes:
    return timestamp.encode("utf-8") + b"." + body


def sign_body(body: bytes, secret: str, timestamp: int | str) -> str:
    """Signature header value for a confirmation event sent at ``timestamp`` (unix seconds)."""
    digest = hmac.new(secret.encode("utf-8"), _signed_message(str(timestamp), body), hashlib.sha256)
    return f"sha256={digest.hexdigest()}"


def verify_marketplace_signature(
    body: bytes,
    signature_header: str | None,
    timestamp_header: str | None,
    secret: str | None,
    env: str,
    now: float | None = None,
    max_age_seconds: int = MAX_EVENT_AGE_SECONDS,
) -> bool:
    """
    Check ``X-Marketplace-Signature`` against ``<timestamp>.<body>``.

    The timestamp must be within ``max_age_seconds`` of ``now`` in either
    direction. Unsigned calls are accepted only in dev/local.
    """
    if not signature_header:
        if env.lower() in {"dev", "local"}:
            logger.warning("Unsigned marketplace event accepted in dev mode")
            return True
        logger.warning("Rejected unsigned marketplace event")
        return False

    if not secret:
        logger.error("MARKETPLACE_WEBHOOK_SECRET is not configured")
        return False

    try:
        sent_at = int(timestamp_header or "")
    except ValueError:
        logger.warning("Rejected marketplace event with bad timestamp", extra={"reason": timestamp_header})
        return False

    age = (time.time() if now is None else now) - sent_at
    if abs(age) > max_age_seconds:
        logger.warning("Rejected stale marketplace event", extra={"reason": f"age={int(age)}s"})
        return False

    scheme, _, received = signature_header.partition("=")
    if scheme.lower() != "sha256" or not received:
        return False

    expected = sign_body(body, secret, sent_at).partition("=")[2]
    return hmac.compare_digest(expected, received)
