"""
Validation utilities module
Contains regex patterns and validation functions for passenger contact data
"""

import re

# Regex patterns
PHONE_RGX = r"^(\+|00)?[0-9]{8,15}$"
PHONE_NOISE_RGX = r"[\s\-()]"
EMAIL_RGX = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


def clean_phone(s: str) -> str:
    """Strip spaces, dashes and parentheses from a phone number"""
    return re.sub(PHONE_NOISE_RGX, "", s or "")


def is_whatsapp_number(s: str) -> bool:
    """
    Validate a WhatsApp number

    Accepts an optional leading '+' or '00' followed by 8-15 digits once
    spaces, dashes and parentheses are removed.

    Args:
        s: String to validate

    Returns:
        True if valid phone number, False otherwise
    """
    if not s:
        return False
    return bool(re.match(PHONE_RGX, clean_phone(s)))


def is_email(s: str) -> bool:
    """Loose e-mail check, only used when the guest fills the optional field"""
    return bool(re.match(EMAIL_RGX, (s or "").strip()))


def whatsapp_digits(s: str) -> str:
    """
    Normalize a WhatsApp number for wa.me links

    '+62 812-3456' -> '628123456', '0812 3456' -> '628123456'
    """
    cleaned = clean_phone(s)
    if cleaned.startswith("+"):
        cleaned = cleaned[1:]
    elif cleaned.startswith("00"):
        cleaned = cleaned[2:]
    elif cleaned.startswith("0"):
        cleaned = "62" + cleaned[1:]
    return cleaned
