"""
Places Backend: Password Hashing
==================================

What:  PBKDF2-HMAC-SHA256 hashing for user passwords.
How:   A random 16-byte salt per password; stored as "salt_hex$hash_hex".
Who:   UserService.signup hashes; verify_password is kept for a future login.
"""

import hashlib
import hmac
import os

ITERATIONS = 100_000


def hash_password(password: str) -> str:
    """Hash a password with a fresh salt; returns "salt$hash" in hex."""
    salt = os.urandom(16)
    dk = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, ITERATIONS)
    return f"{salt.hex()}${dk.hex()}"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Constant-time check of a password against a stored "salt$hash" string."""
    try:
        salt_hex, hash_hex = hashed_password.split("$", 1)
        salt = bytes.fromhex(salt_hex)
        stored_hash = bytes.fromhex(hash_hex)
    except ValueError:
        return False
    dk = hashlib.pbkdf2_hmac("sha256", plain_password.encode("utf-8"), salt, ITERATIONS)
    return hmac.compare_digest(dk, stored_hash)
