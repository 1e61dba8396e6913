"""Shared validation utilities"""

import re
import time
from typing import Optional

EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Returns:
        Lowercase, stripped email address

    Raises:
        ValueError: If email format is invalid
    """
    if email is None:
        return email
    email = email.strip().lower()
    if not EMAIL_PATTERN.match(email):
        raise ValueError("Invalid email address")
    return email


def validate_ng_phone(phone: Optional[str]) -> Optional[str]:
    """Accept local (080...) and international (+234...) Nigerian numbers with at least 10 digits."""
    if phone is None:
        return phone
    phone = phone.strip()
    if len(re.sub(r"\D", "", phone)) < 10:
        raise ValueError("Phone number must have at least 10 digits")
    return phone


def validate_account_number(value: str) -> str:
    digits = re.sub(r"\s", "", value)
    if not digits.isdigit() or len(digits) < 10:
        raise ValueError("Account number must be at least 10 digits")
    return digits


def validate_bvn(value: Optional[str]) -> Optional[str]:
    if value is None or value == "":
        return None
    if not re.fullmatch(r"\d{11}", value):
        raise ValueError("BVN must be exactly 11 digits")
    return value


def slugify(value: str) -> str:
    """'Ada's Glam Studio' -> 'ada-s-glam-studio'"""
    slug = re.sub(r"[^a-z0-9]+", "-", value.lower())
    return re.sub(r"-+", "-", slug).strip("-")


def unique_suffix() -> str:
    return str(int(time.time() * 1000))
