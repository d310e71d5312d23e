import re

_NON_DIAL_CHARS = re.compile(r"[^\d+]")


def normalize_phone(value: str, default_country_code: str = "+234") -> str:
    """Return an E.164-style number: "0803 123 4567" -> "+2348031234567"."""
    digits = _NON_DIAL_CHARS.sub("", value or "")
    if not digits:
        return ""
    if digits.startswith("+"):
        return digits
    if digits.startswith("0"):
        return default_country_code + digits[1:]
    return "+" + digits


_E164 = re.compile(r"^\+\d{7,15}$")


def is_valid_phone(value: str) -> bool:
    """True for an already-normalized number such as "+2348031234567"."""
    return bool(value) and _E164.match(value) is not None
