"""
Normalizers for duplicate detection inputs.

Company names are compared case- and accent-insensitively; phone numbers and
tax IDs (AFM) are compared as bare digit strings.
"""

import re

_NON_DIGITS = re.compile(r"\D")

# Greek vowels with tonos/dialytika -> base letter. Lowercase forms are what
# normalize_text actually hits; uppercase forms cover callers that skip lower().
GREEK_ACCENT_MAP = {
    'ά': 'α', 'έ': 'ε', 'ή': 'η', 'ί': 'ι', 'ϊ': 'ι', 'ΐ': 'ι',
    'ό': 'ο', 'ύ': 'υ', 'ϋ': 'υ', 'ΰ': 'υ', 'ώ': 'ω',
    'Ά': 'Α', 'Έ': 'Ε', 'Ή': 'Η', 'Ί': 'Ι', 'Ϊ': 'Ι',
    'Ό': 'Ο', 'Ύ': 'Υ', 'Ϋ': 'Υ', 'Ώ': 'Ω',
}
_ACCENT_TABLE = str.maketrans(GREEK_ACCENT_MAP)

# Greek mobile numbers are always 10 digits starting with 69
MOBILE_PREFIX = "69"
MOBILE_LENGTH = 10


def normalize_text(text: str) -> str:
    """Lowercase, trim and strip Greek accents. Never raises."""
    if not text:
        return ""
    return text.lower().strip().translate(_ACCENT_TABLE)


def digits_only(value: str) -> str:
    if not value:
        return ""
    return _NON_DIGITS.sub("", value)


def normalize_tax_id(tax_id: str) -> str:
    """Keep only the digits of an AFM."""
    return digits_only(tax_id)


def normalize_phone(phone: str) -> str:
    """
    Reduce a phone number to its digits.

    Mobile numbers (69...) longer than 10 digits are cut to 10, which drops
    extensions and trailing typing noise. Everything else keeps all digits.
    """
    digits = digits_only(phone)
    if digits.startswith(MOBILE_PREFIX) and len(digits) >= MOBILE_LENGTH:
        return digits[:MOBILE_LENGTH]
    return digits
