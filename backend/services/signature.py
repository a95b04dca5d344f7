# services/signature.py
# ============================================================================
# NUDE STOREFRONT v1.0 — WEBHOOK SIGNATURE VERIFIER
# ============================================================================
# Header format: "ts=<timestamp>,v1=<hex hmac>"
# Signed payload: "<timestamp>.<raw body>", HMAC-SHA256 keyed by the secret
# ============================================================================

import hashlib
import hmac
from typing import Dict, Optional, Union

SIGNATURE_HEADER = "x-signature"


def parse_signature_header(header: str) -> Dict[str, str]:
    """Split "k1=v1,k2=v2" into a dict. Pairs without '=' are dropped."""
    parts: Dict[str, str] = {}
    for part in header.split(","):
        key, sep, value = part.strip().partition("=")
        if sep:
            parts.setdefault(key.strip(), value.strip())
    return parts


def compute_signature(timestamp: str, body: Union[str, bytes], secret: str) -> str:
    if isinstance(body, bytes):
        body = body.decode("utf-8")
    payload = f"{timestamp}.{body}".encode("utf-8")
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()


def verify_signature(
    signature_header: Optional[str],
    body: Union[str, bytes],
    secret: Optional[str],
) -> bool:
    """
    Check a webhook signature header against the shared secret.

    No secret configured means verification is off and every request
    passes. With a secret, a missing header or a header without both
    `ts` and `v1` fails.
    """
    if not secret:
        return True
    if not signature_header:
        return False

    parts = parse_signature_header(signature_header)
    timestamp = parts.get("ts")
    signature = parts.get("v1")
    if not timestamp or not signature:
        return False

    try:
        expected = compute_signature(timestamp, body, secret)
        return hmac.compare_digest(expected.encode("ascii"), signature.encode("ascii"))
    except (TypeError, ValueError):
        # non-ascii signature or undecodable body
        return False


__all__ = [
    "SIGNATURE_HEADER",
    "parse_signature_header",
    "compute_signature",
    "verify_signature",
]
