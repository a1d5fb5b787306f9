"""
HMAC-SHA1 signing and verification of inbound hook payloads.
"""

import binascii
import hashlib
import hmac
import logging
from typing import Callable

from pydantic import ValidationError

from hookgate.schemas import SenderIdentity
from hookgate.secret_store import SecretResolutionError, resolve_secrets

logger = logging.getLogger(__name__)

SIGNATURE_PREFIX = "sha1="

# Zero-argument provider of the raw secret store content
SecretSource = Callable[[], bytes]


def compute_signature(payload: bytes, secret: bytes) -> str:
    """Return the "sha1=<hex>" signature of payload under secret."""
    digest = hmac.new(secret, payload, hashlib.sha1).hexdigest()
    return SIGNATURE_PREFIX + digest


def validate_payload(payload: bytes, signature_header: str, secret_source: SecretSource) -> bool:
    """
    Check that a payload was signed with a secret configured for its repository.

    The repository is read from the payload itself. Every candidate secret
    resolved for it is tried in order and compared in constant time.

    Args:
        payload: Raw request body bytes
        signature_header: Signature header value, "sha1=<hex>"
        secret_source: Returns the current secret store content; called once

    Returns:
        True if any candidate secret produces the received signature.
        Every failure, whatever the cause, is reported as False.
    """
    try:
        identity = SenderIdentity.model_validate_json(payload)
    except ValidationError as e:
        logger.info(f"Couldn't parse the event payload: {e.error_count()} error(s)")
        return False

    if not signature_header or not signature_header.startswith(SIGNATURE_PREFIX):
        return False

    try:
        received = binascii.unhexlify(signature_header[len(SIGNATURE_PREFIX):])
    except ValueError:
        return False

    try:
        candidates = resolve_secrets(identity.repository_full_name, secret_source())
    except SecretResolutionError as e:
        logger.error(f"Couldn't resolve the hmac secret: {e}")
        return False

    for key in candidates:
        expected = hmac.new(key, payload, hashlib.sha1).digest()
        if hmac.compare_digest(received, expected):
            return True

    return False
