"""
Salted one-way password hashing through passlib.

Hashes use passlib's ``pbkdf2_sha256`` scheme, stored in its modular
crypt format (``$pbkdf2-sha256$<rounds>$<salt>$<checksum>``).  The round
count is part of each stored hash, so it can be raised later without
invalidating existing accounts.
"""

from passlib.context import CryptContext


def build_password_context(rounds: int) -> CryptContext:
    return CryptContext(
        schemes=["pbkdf2_sha256"],
        deprecated="auto",
        pbkdf2_sha256__default_rounds=rounds,
    )


def verify_password(context: CryptContext, password: str, stored_hash: str) -> bool:
    try:
        return context.verify(password, stored_hash)
    except ValueError:
        # Unrecognised or malformed hash.
        return False
