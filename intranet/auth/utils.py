import hashlib
import hmac
import re
import secrets
from typing import Optional
from intranet.config.settings import config_settings

COUNTRY_CODE = "233"
_GHANA_PHONE_RE = re.compile(r"^233[0-9]{9}$")


def format_ghana_phone(phone: str) -> str:
    """
    Canonical form used as the key everywhere.
    Accepts: 0241234567, 241234567, +233241234567, 233 24 123 4567
    Returns: 233241234567
    """
    cleaned = re.sub(r"\D", "", phone or "")
    if cleaned.startswith("0"):
        cleaned = COUNTRY_CODE + cleaned[1:]
    if not cleaned.startswith(COUNTRY_CODE):
        cleaned = COUNTRY_CODE + cleaned
    return cleaned


def normalize_phone(phone: str) -> Optional[str]:
    """Canonical phone, or None when it is not a valid Ghana mobile number."""
    if not phone or not phone.strip():
        return None
    formatted = format_ghana_phone(phone)
    if not _GHANA_PHONE_RE.match(formatted):
        return None
    return formatted


def generate_code(length: int = config_settings.OTP_LENGTH) -> str:
    upper = 10**length
    lower = 10 ** (length - 1)
    return str(secrets.randbelow(upper - lower) + lower)


def hash_code(phone: str, code: str, secret: str = config_settings.SESSION_SECRET) -> str:
    return hmac.new(secret.encode(), f"{phone}:{code}".encode(), hashlib.sha256).hexdigest()


def verify_code_hash(phone: str, code: str, expected_hash: str) -> bool:
    return hmac.compare_digest(hash_code(phone, code), expected_hash)


def generate_plain_token(nbytes: int = 48) -> str:
    return secrets.token_urlsafe(nbytes)

def make_session_token_plain() -> str:
    return generate_plain_token(32)

def hash_token(plain:str)->str:
    hash_func=getattr(hashlib,config_settings.TOKEN_HASH_ALGO)
    return hash_func(plain.encode()).hexdigest()
