"""PKCE (:rfc:`7636`) code verifier and challenge generation.

The verifier is a high-entropy secret kept by the client until the token
exchange; the challenge is its one-way S256 transform, sent with the
authorization request. Nothing here touches the network or any state.
"""

from __future__ import annotations

import base64
import hashlib
import secrets
import string
from dataclasses import dataclass, field

from spotify_web_api.exceptions import ConfigurationError

# RFC 7636 section 4.1: unreserved characters, 66 in total.
VERIFIER_ALPHABET = string.ascii_letters + string.digits + "-._~"
MIN_VERIFIER_LENGTH = 43
MAX_VERIFIER_LENGTH = 128
CHALLENGE_METHOD = "S256"


@dataclass(frozen=True)
class PkcePair:
    """A code verifier and the challenge derived from it."""

    verifier: str = field(repr=False)
    challenge: str


def code_challenge(verifier: str) -> str:
    """Return ``BASE64URL(SHA256(verifier))`` without padding."""
    digest = hashlib.sha256(verifier.encode("ascii")).digest()
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


def generate_pkce_pair(length: int = MAX_VERIFIER_LENGTH) -> PkcePair:
    """Generate a fresh PKCE verifier/challenge pair.

    Args:
        length: Verifier length, between 43 and 128 characters.

    Returns:
        A :class:`PkcePair` whose challenge uses the ``S256`` method.

    Raises:
        ConfigurationError: If *length* is outside [43, 128].
    """
    if not MIN_VERIFIER_LENGTH <= length <= MAX_VERIFIER_LENGTH:
        raise ConfigurationError(
            f"PKCE verifier length must be between {MIN_VERIFIER_LENGTH} and "
            f"{MAX_VERIFIER_LENGTH}, got {length}"
        )
    verifier = "".join(secrets.choice(VERIFIER_ALPHABET) for _ in range(length))
    return PkcePair(verifier=verifier, challenge=code_challenge(verifier))
