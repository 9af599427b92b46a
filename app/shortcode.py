import re
import secrets
import string

ALPHABET = string.digits + string.ascii_lowercase + string.ascii_uppercase
CODE_LENGTH = 6

SHORT_CODE_PATTERN = re.compile(r"[0-9A-Za-z_-]{4,64}")


def generate_code(length: int = CODE_LENGTH) -> str:
    return "".join(secrets.choice(ALPHABET) for _ in range(length))


def is_valid(code) -> bool:
    """Accepts 4-64 ASCII letters, digits, hyphens and underscores."""
    return isinstance(code, str) and SHORT_CODE_PATTERN.fullmatch(code) is not None
