from typing import Optional
from fastapi import Request
from email_validator import EmailNotValidError, validate_email
from intranet.rate_limiting.utils import client_ip


def normalize_email_address(email: str) -> str:
    """
    Validate and return normalized email (lowercased, normalized by email-validator).
    Raises ValueError if invalid.
    """
    try:
        v = validate_email(email, check_deliverability=False)
        return v.normalized.lower()
    except EmailNotValidError as e:
        raise ValueError(str(e))


def actor_ip(request: Request) -> Optional[str]:
    # admin actions are attributable; only the public suggestion path is anonymous
    ip = client_ip(request)
    return ip[:64] if ip else None


def admin_out(admin) -> dict:
    return {
        "public_id": str(admin.public_id),
        "name": admin.name,
        "phone": admin.phone,
        "email": admin.email,
        "role": admin.role,
        "department": admin.department,
        "is_active": admin.is_active,
        "last_login_at": admin.last_login_at,
    }
