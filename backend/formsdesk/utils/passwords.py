"""Password hashing.

Stored hashes are self-describing: ``<iterations>:<salt-hex>:<key-hex>``.
Verification reads the iteration count from the stored value, so raising
``PBKDF2_ITERATIONS`` later does not invalidate existing hashes.
"""
import hashlib
import hmac
import secrets

PBKDF2_ITERATIONS = 100_000
PBKDF2_DIGEST = "sha512"
SALT_BYTES = 16
KEY_BYTES = 64  # 512-bit derived key


def _derive(password: str, salt: bytes, iterations: int, key_length: int) -> bytes:
    return hashlib.pbkdf2_hmac(PBKDF2_DIGEST, password.encode("utf-8"), salt, iterations, dklen=key_length)


def hash_password(password: str) -> str:
    """Hash a password with a fresh random salt"""
    salt = secrets.token_bytes(SALT_BYTES)
    key = _derive(password, salt, PBKDF2_ITERATIONS, KEY_BYTES)
    return f"{PBKDF2_ITERATIONS}:{salt.hex()}:{key.hex()}"


def verify_password(password: str, stored_hash: str) -> bool:
    """Check a plaintext password against a stored hash.

    Returns False for a wrong password and for a stored hash that cannot be
    parsed; it never raises for bad input.
    """
    parts = (stored_hash or "").split(":")
    if len(parts) != 3:
        return False

    iterations_str, salt_hex, expected_hex = parts
    try:
        iterations = int(iterations_str, 10)
        salt = bytes.fromhex(salt_hex)
        expected = bytes.fromhex(expected_hex)
    except ValueError:
        return False

    if iterations < 1 or not salt or not expected:
        return False

    computed = _derive(password, salt, iterations, len(expected))
    return hmac.compare_digest(computed, expected)
