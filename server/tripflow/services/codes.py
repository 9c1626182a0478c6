"""Human readable document codes (BK-, INV-, MNF-, PAY-, ...)."""

import secrets
import string

CODE_ALPHABET = string.ascii_uppercase + string.digits


def generate_code(prefix: str, length: int = 8) -> str:
    """Generate a random code such as ``BK-7Q2M9XKA``."""
    return f"{prefix}-" + "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))
