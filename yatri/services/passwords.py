"""bcrypt helpers for staff passwords."""
import bcrypt

from yatri.config import get_settings

# bcrypt only reads the first 72 bytes; newer releases reject longer input
# instead of truncating it.
_BCRYPT_MAX_BYTES = 72


def _encode(password: str) -> bytes:
    return password.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def hash_password(password: str, rounds: int | None = None) -> str:
    """Return a bcrypt hash suitable for the ``staff.password`` column."""

    cost = rounds if rounds is not None else get_settings().password_salt_rounds
    return bcrypt.hashpw(_encode(password), bcrypt.gensalt(rounds=cost)).decode("ascii")


def verify_password(password: str, hashed: str) -> bool:
    """Check a plaintext password against a stored hash."""

    try:
        return bcrypt.checkpw(_encode(password), hashed.encode("ascii"))
    except ValueError:
        # Malformed or non-bcrypt hash in the table.
        return False
