"""Password hashing, strength scoring and temporary password generation."""

import re
import secrets
from dataclasses import dataclass, field

import bcrypt

from calmato.core.config import settings

# bcrypt only looks at the first 72 bytes of its input.
BCRYPT_MAX_BYTES = 72

# Min/max lengths for names and passwords accepted at registration.
NAME_MIN_LEN = 1
NAME_MAX_LEN = 100
PASSWORD_MIN_LEN = 8
PASSWORD_MAX_LEN = 72

LOWERCASE = "abcdefghijklmnopqrstuvwxyz"
UPPERCASE = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
DIGITS = "0123456789"
SYMBOLS = "!@#$%^&*()_+-=[]{};':\"\\|,.<>/?"
# Subset used for generated passwords: easy to type and shell-safe when quoted.
TEMPORARY_SYMBOLS = "!@#$%^&*"

_REQUIREMENT_PATTERNS = {
    "lowercase": re.compile(r"[a-z]"),
    "uppercase": re.compile(r"[A-Z]"),
    "number": re.compile(r"[0-9]"),
    "special": re.compile("[" + re.escape(SYMBOLS) + "]"),
}


@dataclass(frozen=True)
class PasswordStrength:
    """Outcome of check_password_strength: score 0-100 in steps of 20."""

    score: int
    requirements: dict[str, bool] = field(default_factory=dict)

    @property
    def missing(self) -> list[str]:
        return [name for name, ok in self.requirements.items() if not ok]

    @property
    def is_strong(self) -> bool:
        return not self.missing


def _encode(plain_password: str) -> bytes:
    return plain_password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(plain_password: str, rounds: int | None = None) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    salt = bcrypt.gensalt(rounds=rounds or settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(_encode(plain_password), salt).decode("utf-8")


def verify_password(plain_password: str, hashed: str) -> bool:
    """
    Verify a plain password against a stored hash.

    A stored value that is not a bcrypt hash raises ValueError: that is a
    data bug, not a failed login.
    """
    return bcrypt.checkpw(_encode(plain_password), hashed.encode("utf-8"))


def check_password_strength(plain_password: str) -> PasswordStrength:
    """Score a password against the length and character-class requirements."""
    requirements = {"length": len(plain_password) >= PASSWORD_MIN_LEN}
    for name, pattern in _REQUIREMENT_PATTERNS.items():
        requirements[name] = bool(pattern.search(plain_password))
    score = sum(requirements.values()) * 20
    return PasswordStrength(score=score, requirements=requirements)


def generate_temporary_password(length: int = 12) -> str:
    """Random password holding at least one lowercase, uppercase, digit and symbol."""
    if length < 4:
        raise ValueError("Temporary password length must be at least 4")
    rng = secrets.SystemRandom()
    chars = [rng.choice(pool) for pool in (LOWERCASE, UPPERCASE, DIGITS, TEMPORARY_SYMBOLS)]
    alphabet = LOWERCASE + UPPERCASE + DIGITS + TEMPORARY_SYMBOLS
    chars.extend(rng.choice(alphabet) for _ in range(length - 4))
    rng.shuffle(chars)
    return "".join(chars)
