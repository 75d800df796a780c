from __future__ import annotations

import secrets

import bcrypt

UPPERCASE = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
LOWERCASE = "abcdefghijklmnopqrstuvwxyz"
DIGITS = "0123456789"
SPECIAL_CHARS = "!@#$%^&*()-_=+[]{}|;:,.<>?"

# bcrypt only ever looks at the first 72 bytes of a password.
_BCRYPT_MAX_BYTES = 72


def _pw_bytes(password: str) -> bytes:
    return str(password or "").encode("utf-8")[:_BCRYPT_MAX_BYTES]


class PasswordHasher:
    """bcrypt hashing plus the password policy shared by registration and reset."""

    def __init__(self, *, rounds: int = 12):
        self.rounds = int(rounds)

    def hash_password(self, password: str) -> str:
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(_pw_bytes(password), salt).decode("utf-8")

    def verify_password(self, password: str, hashed: str) -> bool:
        if not password or not hashed:
            return False
        try:
            return bcrypt.checkpw(_pw_bytes(password), str(hashed).encode("utf-8"))
        except ValueError:
            # Malformed stored hash.
            return False

    @staticmethod
    def is_password_strong(password: str) -> bool:
        pw = str(password or "")
        if not pw.strip() or len(pw) < 8:
            return False
        return (
            any(ch.isupper() for ch in pw)
            and any(ch.islower() for ch in pw)
            and any(ch.isdigit() for ch in pw)
            and any(not ch.isalnum() for ch in pw)
        )

    @staticmethod
    def generate_random_password(length: int = 12) -> str:
        """
        Random password with at least one upper, lower, digit and special char.
        """
        if length < 4:
            raise ValueError("length must be at least 4")

        pool = UPPERCASE + LOWERCASE + DIGITS + SPECIAL_CHARS
        chars = [
            secrets.choice(UPPERCASE),
            secrets.choice(LOWERCASE),
            secrets.choice(DIGITS),
            secrets.choice(SPECIAL_CHARS),
        ]
        chars.extend(secrets.choice(pool) for _ in range(length - 4))
        secrets.SystemRandom().shuffle(chars)
        return "".join(chars)
