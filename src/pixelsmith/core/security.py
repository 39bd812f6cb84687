"""Password hashing for stored user accounts.

Passwords are never stored or compared in plain text.  Argon2 (salted,
memory-hard) is used through passlib's ``CryptContext`` so the scheme can be
rotated later without touching call sites.
"""

from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")


def hash_password(plain: str) -> str:
    """Hash a plain text password.

    Args:
        plain: Password as typed by the user.

    Returns:
        Encoded hash including algorithm parameters and salt.
    """
    return pwd_context.hash(plain)


def verify_password(plain: str, hashed: str) -> bool:
    """Check a plain text password against a stored hash.

    Malformed or foreign hashes are treated as a mismatch.
    """
    try:
        return pwd_context.verify(plain, hashed)
    except (ValueError, TypeError):
        return False
