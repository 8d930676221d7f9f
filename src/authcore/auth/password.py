"""Password hashing utilities.

Learn: Uses bcrypt for secure password hashing. bcrypt automatically
handles salting and is resistant to rainbow table attacks.
The work factor defaults to 10 (configurable via AUTHCORE_BCRYPT_ROUNDS);
each extra round doubles the cost.

These functions are CPU-bound and blocking. Async callers run them
through asyncio.to_thread so hashing never stalls the event loop.
"""

import bcrypt

DEFAULT_ROUNDS = 10

# bcrypt only looks at the first 72 bytes of input.
_MAX_PASSWORD_BYTES = 72


def _encode(password: str) -> bytes:
    return password.encode("utf-8")[:_MAX_PASSWORD_BYTES]


def hash_password(password: str, rounds: int = DEFAULT_ROUNDS) -> str:
    """Hash a password with bcrypt.

    Learn: bcrypt includes a random salt automatically and produces
    hashes starting with "$2b$". Two calls with the same password give
    different hashes. Passwords are truncated to 72 bytes (bcrypt's limit).
    """
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(_encode(password), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Constant-time check of a password against its bcrypt hash.

    Returns False (never raises) for malformed hashes.
    """
    try:
        return bcrypt.checkpw(_encode(password), password_hash.encode("utf-8"))
    except (ValueError, TypeError):
        return False
