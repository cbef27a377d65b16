"""PKCE (Proof Key for Code Exchange) primitives for OAuth 2.0 clients.

Implements the RFC 7636 code verifier and S256 code challenge that prevent
authorization code interception attacks.
"""

from __future__ import annotations

import base64
import hashlib
import random
import secrets
import string

# RFC 7636 Section 4.1 unreserved characters
VERIFIER_ALPHABET = string.ascii_letters + string.digits + "-._~"

# Maximum allowed length. 128 draws from 66 symbols is ~773 bits of entropy.
VERIFIER_LENGTH = 128

CODE_CHALLENGE_METHOD = "S256"

_system_random = secrets.SystemRandom()


def generate_verifier(rng: random.Random | None = None) -> str:
    """Generate a code verifier.

    RFC 7636 Section 4.1: code verifier must be 43-128 characters long
    and use only unreserved characters:
        [A-Z] / [a-z] / [0-9] / "-" / "." / "_" / "~"

    Args:
        rng: Random generator to draw from. Defaults to the operating
            system's cryptographic source; pass a seeded ``random.Random``
            only in tests.

    Returns:
        A VERIFIER_LENGTH-character code verifier
    """
    rng = rng or _system_random
    return "".join(rng.choice(VERIFIER_ALPHABET) for _ in range(VERIFIER_LENGTH))


def derive_challenge(code_verifier: str) -> str:
    """Derive the code challenge from a code verifier using the S256 method.

    RFC 7636 Section 4.2: For S256, the code challenge is:
    BASE64URL-ENCODE(SHA256(ASCII(code_verifier)))

    Args:
        code_verifier: The code verifier to hash

    Returns:
        Base64url-encoded SHA256 hash of the code verifier, without padding
    """
    digest = hashlib.sha256(code_verifier.encode("ascii")).digest()

    return base64.urlsafe_b64encode(digest).decode("ascii").rstrip("=")
