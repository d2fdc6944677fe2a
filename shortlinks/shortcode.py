"""Short code generation and custom alias validation."""

import re
import secrets
import string
from typing import Optional


# Base62 characters (alphanumeric, case-sensitive)
BASE62_CHARS = string.ascii_letters + string.digits  # a-zA-Z0-9

DEFAULT_CODE_LENGTH = 6

ALIAS_MIN_LENGTH = 3
ALIAS_MAX_LENGTH = 20
ALIAS_PATTERN = re.compile(r"[a-zA-Z0-9_-]+")


def generate(length: int = DEFAULT_CODE_LENGTH) -> str:
    """Generate a random base62 short code.

    Uses the ``secrets`` module so codes are not predictable from
    previously issued ones.

    Args:
        length: Number of characters in the code

    Returns:
        Random short code of exactly ``length`` characters

    Raises:
        ValueError: If length is not positive
    """
    if length < 1:
        raise ValueError("Code length must be at least 1")
    return "".join(secrets.choice(BASE62_CHARS) for _ in range(length))


def is_valid_alias(alias: str) -> bool:
    """Check a custom alias against the length and charset policy.

    An alias is valid when it is 3-20 characters long and contains only
    letters, digits, hyphens and underscores.
    """
    if not isinstance(alias, str):
        return False
    if not ALIAS_MIN_LENGTH <= len(alias) <= ALIAS_MAX_LENGTH:
        return False
    return ALIAS_PATTERN.fullmatch(alias) is not None


class ShortCodeGenerator:
    """Generate short codes for links."""

    BASE62_CHARS = BASE62_CHARS

    def __init__(self, default_length: int = DEFAULT_CODE_LENGTH):
        """Initialize short code generator.

        Args:
            default_length: Default length for generated codes
        """
        if default_length < 1:
            raise ValueError("Default code length must be at least 1")
        self.default_length = default_length

    def generate_random(self, length: Optional[int] = None) -> str:
        """Generate a random short code.

        Args:
            length: Length of the code (uses default if not specified)

        Returns:
            Random short code
        """
        return generate(length or self.default_length)

    @staticmethod
    def is_valid_alias(alias: str) -> bool:
        return is_valid_alias(alias)

    @staticmethod
    def is_valid_format(code: str) -> bool:
        """Check if code only uses characters a lookup key may contain."""
        return bool(code) and all(c in BASE62_CHARS or c in "-_" for c in code)
