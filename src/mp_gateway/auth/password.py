"""Password hashing with the ``bcrypt`` library."""

import bcrypt

from config.settings import settings

# bcrypt ignores (and newer releases reject) input beyond 72 bytes
MAX_PASSWORD_BYTES = 72


def hash_password(plain: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(plain.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))


def needs_rehash(hashed: str) -> bool:
    """True when the stored hash used a different cost than BCRYPT_ROUNDS.

    Hashes look like ``$2b$12$<salt+digest>``; the third field is the cost.
    """
    parts = hashed.split("$")
    if len(parts) < 4 or not parts[2].isdigit():
        return True
    return int(parts[2]) != settings.BCRYPT_ROUNDS
