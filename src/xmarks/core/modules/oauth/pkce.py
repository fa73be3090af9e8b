"""PKCE and state token helpers (RFC 7636)."""

import base64
import hashlib
import secrets

STATE_BYTES = 16
VERIFIER_LENGTH = 64


def generate_state() -> str:
    """Random opaque state token, hex encoded."""
    return secrets.token_hex(STATE_BYTES)


def generate_code_verifier() -> str:
    """64 random hex characters, within the 43-128 range the RFC allows."""
    return secrets.token_hex(VERIFIER_LENGTH // 2)


def generate_code_challenge(verifier: str) -> str:
    """S256 challenge: base64url(SHA-256(verifier)) without padding."""
    digest = hashlib.sha256(verifier.encode("ascii")).digest()
    return base64.urlsafe_b64encode(digest).decode("ascii").rstrip("=")
