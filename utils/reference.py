import secrets
import string
from datetime import datetime
from typing import Optional

from utils.clock import utcnow

_ALPHABET = string.ascii_uppercase + string.digits


def generate_reference_number(prefix: str, suffix_length: int = 6, now: Optional[datetime] = None) -> str:
    """Human-readable booking reference, e.g. PEX-EL-2026-K3F9QZ."""
    year = (now or utcnow()).year
    suffix = "".join(secrets.choice(_ALPHABET) for _ in range(suffix_length))
    return f"{prefix}-{year}-{suffix}"
