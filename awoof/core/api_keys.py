"""Vendor API Keys — generation and PBKDF2 hashing for transaction-reporting keys.

Invariants:
    - Plaintext keys are `awoof_` + 64 hex chars and are never stored
    - Stored form is "<hash_hex>:<salt_hex>" (PBKDF2-HMAC-SHA256, 100k iterations, 32-byte key)
    - verify_api_key() is constant-time and never raises on malformed stored values
    - key_lookup() is the first 12 hex chars after the prefix: stored in clear and
      indexed so authentication verifies one candidate hash, not every active key

Design Decisions:
    - hashlib.pbkdf2_hmac over bcrypt: keys are already high-entropy, and the stored
      format stays compatible with rows written by earlier deployments
"""

import hashlib
import hmac
import secrets

API_KEY_PREFIX = "awoof_"
PBKDF2_ITERATIONS = 100_000
PBKDF2_KEY_LENGTH = 32
SALT_BYTES = 16
LOOKUP_LENGTH = 12
API_KEY_LENGTH = len(API_KEY_PREFIX) + 64


def generate_api_key() -> str:
    return f"{API_KEY_PREFIX}{secrets.token_hex(32)}"


def key_lookup(api_key: str) -> str | None:
    """Non-secret index value for ``api_key``; None when it cannot be one of ours."""
    if len(api_key) != API_KEY_LENGTH or not api_key.startswith(API_KEY_PREFIX):
        return None
    return api_key[len(API_KEY_PREFIX):len(API_KEY_PREFIX) + LOOKUP_LENGTH]


def hash_api_key(api_key: str, salt: bytes | None = None) -> str:
    salt = salt if salt is not None else secrets.token_bytes(SALT_BYTES)
    digest = hashlib.pbkdf2_hmac(
        "sha256", api_key.encode("utf-8"), salt, PBKDF2_ITERATIONS, PBKDF2_KEY_LENGTH,
    )
    return f"{digest.hex()}:{salt.hex()}"


def verify_api_key(api_key: str, stored: str) -> bool:
    hash_hex, sep, salt_hex = stored.partition(":")
    if not sep or not hash_hex or not salt_hex:
        return False
    try:
        salt = bytes.fromhex(salt_hex)
    except ValueError:
        return False
    candidate = hash_api_key(api_key, salt).partition(":")[0]
    return hmac.compare_digest(candidate, hash_hex)
