"""Phone number validation and hashing."""
import hashlib
import re

E164_PATTERN = re.compile(r"^\+[1-9]\d{6,14}$")
OTP_CODE_PATTERN = re.compile(r"^\d{6}$")
_NON_DIALABLE = re.compile(r"[^\d+]")


def normalize_phone_number(phone: str) -> str:
    """Keep only digits and '+'."""
    return _NON_DIALABLE.sub("", phone)


def hash_phone_number(phone: str) -> str:
    """
    One-way identifier for a phone number.

    SHA-256 hex digest of the normalized number. Clients compute the same
    digest, so ledger rows recorded against a contact's phone can be matched
    to a profile without either side exchanging raw numbers.
    """
    normalized = normalize_phone_number(phone)
    return hashlib.sha256(normalized.encode("utf-8")).hexdigest()


def is_e164(phone: str | None) -> bool:
    return bool(phone) and E164_PATTERN.match(phone) is not None


def is_valid_otp_code(code: str | None) -> bool:
    return bool(code) and OTP_CODE_PATTERN.match(code) is not None
