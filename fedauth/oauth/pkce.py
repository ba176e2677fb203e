"""
Proof Key for Code Exchange (RFC 7636) helpers.
"""

import hashlib
import secrets

from ..util.encoding import url_safe_encode


VERIFIER_BYTES = 60
CHALLENGE_METHOD = "S256"


def generate_code_verifier(num_bytes: int = VERIFIER_BYTES) -> str:
    """Generate a URL-safe, unpadded code verifier from random bytes."""
    return url_safe_encode(secrets.token_bytes(num_bytes))


def generate_code_challenge(verifier: str) -> str:
    """Derive the S256 code challenge for ``verifier``."""
    digest = hashlib.sha256(verifier.encode('ascii')).digest()
    return url_safe_encode(digest)
