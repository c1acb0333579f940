"""
core/validation.py -- Field validation engine for player registration and login.

Every rule is a pure function from a raw JSON value to zero or one
ValidationError. Composite validators run every applicable rule against the
whole payload and collect all violations (no short-circuit), so a client gets
the complete error list in one response.

Error copy is endpoint-specific: registration and login apply the
same email rule but clients assert on different literal messages. Both sets
are kept verbatim.

Layer rule: core/ is the kernel. No imports from api/ or auth/.
"""

import math
import re
from typing import Any, Callable, Mapping, Optional

from core.models import EMAIL_PATTERN, SEX_VALUES, USA, ValidationError, ValidationResult

_EMAIL_RE = re.compile(EMAIL_PATTERN)
_UPPER_RE = re.compile(r"[A-Z]")
_LOWER_RE = re.compile(r"[a-z]")
_DIGIT_RE = re.compile(r"[0-9]")
_SPECIAL_RE = re.compile(r"[!@#$%^&*()_+\-=\[\]{};':\"\\|,.<>/?]")

NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 50
PASSWORD_MIN_LENGTH = 8
POSITION_MIN_LENGTH = 2
GPA_MIN = 0.0
GPA_MAX = 4.0

# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------

REGISTRATION_EMAIL_MESSAGE = "Please enter a valid email address"
REGISTRATION_PASSWORD_MESSAGE = (
    "Password must be at least 8 characters and contain uppercase, lowercase, number, and special character"
)
LOGIN_EMAIL_MESSAGE = "Invalid email format"
LOGIN_PASSWORD_MESSAGE = "Password must be at least 8 characters"
GPA_RANGE_MESSAGE = "GPA must be between 0.0 and 4.0"

_REQUIRED_MESSAGES = {
    "firstName": "First name is required",
    "lastName": "Last name is required",
    "email": "Email is required",
    "password": "Password is required",
    "sex": "Sex is required",
    "sport": "Sport is required",
    "position": "Position is required",
    "gpa": "GPA is required",
    "country": "Country is required",
}


# ---------------------------------------------------------------------------
# Value helpers
# ---------------------------------------------------------------------------


def normalize_email(email: str) -> str:
    """Trim surrounding whitespace and lowercase. This is the uniqueness key."""
    return email.strip().lower()


def _text(value: Any) -> Optional[str]:
    """Return the value if it is a non-blank string, else None."""
    if isinstance(value, str) and value.strip():
        return value
    return None


def _number(value: Any) -> Optional[float]:
    """Coerce a JSON number or numeric string to a finite float, else None."""
    if isinstance(value, bool):
        return None
    if not isinstance(value, (int, float, str)):
        return None
    try:
        number = float(value.strip() if isinstance(value, str) else value)
    except (ValueError, OverflowError):
        # OverflowError: JSON integers wider than a double.
        return None
    return number if math.isfinite(number) else None


def _supplied(value: Any) -> bool:
    return value is not None and value != ""


def is_usa(country: Any) -> bool:
    return isinstance(country, str) and country.strip().upper() == USA


def is_valid_email(email: str) -> bool:
    return bool(_EMAIL_RE.match(email))


def is_strong_password(password: str) -> bool:
    return (
        len(password) >= PASSWORD_MIN_LENGTH
        and bool(_UPPER_RE.search(password))
        and bool(_LOWER_RE.search(password))
        and bool(_DIGIT_RE.search(password))
        and bool(_SPECIAL_RE.search(password))
    )


# ---------------------------------------------------------------------------
# Registration rules -- one per field
# ---------------------------------------------------------------------------


def _required(field_name: str, value: Any) -> Optional[ValidationError]:
    if _text(value) is None:
        return ValidationError(field_name, _REQUIRED_MESSAGES[field_name])
    return None


def _name_rule(label: str) -> Callable[[str, Any, Mapping[str, Any]], Optional[ValidationError]]:
    def rule(field_name: str, value: Any, payload: Mapping[str, Any]) -> Optional[ValidationError]:
        missing = _required(field_name, value)
        if missing:
            return missing
        if not NAME_MIN_LENGTH <= len(value.strip()) <= NAME_MAX_LENGTH:
            return ValidationError(
                field_name, f"{label} must be between {NAME_MIN_LENGTH} and {NAME_MAX_LENGTH} characters"
            )
        return None

    return rule


def _email_rule(field_name: str, value: Any, payload: Mapping[str, Any]) -> Optional[ValidationError]:
    missing = _required(field_name, value)
    if missing:
        return missing
    if not is_valid_email(value.strip()):
        return ValidationError(field_name, REGISTRATION_EMAIL_MESSAGE)
    return None


def _password_rule(field_name: str, value: Any, payload: Mapping[str, Any]) -> Optional[ValidationError]:
    missing = _required(field_name, value)
    if missing:
        return missing
    if not is_strong_password(value):
        return ValidationError(field_name, REGISTRATION_PASSWORD_MESSAGE)
    return None


def _sex_rule(field_name: str, value: Any, payload: Mapping[str, Any]) -> Optional[ValidationError]:
    missing = _required(field_name, value)
    if missing:
        return missing
    if value not in SEX_VALUES:
        return ValidationError(field_name, 'Sex must be either "male" or "female"')
    return None


def _plain_required_rule(field_name: str, value: Any, payload: Mapping[str, Any]) -> Optional[ValidationError]:
    return _required(field_name, value)


def _position_rule(field_name: str, value: Any, payload: Mapping[str, Any]) -> Optional[ValidationError]:
    missing = _required(field_name, value)
    if missing:
        return missing
    if len(value.strip()) < POSITION_MIN_LENGTH:
        return ValidationError(field_name, f"Position must be at least {POSITION_MIN_LENGTH} characters")
    return None


def _gpa_rule(field_name: str, value: Any, payload: Mapping[str, Any]) -> Optional[ValidationError]:
    if not _supplied(value):
        return ValidationError(field_name, _REQUIRED_MESSAGES[field_name])
    gpa = _number(value)
    if gpa is None or not GPA_MIN <= gpa <= GPA_MAX:
        return ValidationError(field_name, GPA_RANGE_MESSAGE)
    return None


def _state_rule(field_name: str, value: Any, payload: Mapping[str, Any]) -> Optional[ValidationError]:
    country = _text(payload.get("country"))
    if country is not None and is_usa(country) and _text(value) is None:
        return ValidationError(field_name, "State is required when country is USA")
    return None


def _region_rule(field_name: str, value: Any, payload: Mapping[str, Any]) -> Optional[ValidationError]:
    country = _text(payload.get("country"))
    if country is not None and not is_usa(country) and _text(value) is None:
        return ValidationError(field_name, "Region is required when country is not USA")
    return None


def _scholarship_rule(field_name: str, value: Any, payload: Mapping[str, Any]) -> Optional[ValidationError]:
    if not _supplied(value):
        return None
    amount = _number(value)
    if amount is None or amount < 0:
        return ValidationError(field_name, "Scholarship amount must be a positive number")
    return None


# Ordered: the error list follows the registration payload field order.
REGISTRATION_RULES: dict[str, Callable[[str, Any, Mapping[str, Any]], Optional[ValidationError]]] = {
    "firstName": _name_rule("First name"),
    "lastName": _name_rule("Last name"),
    "email": _email_rule,
    "password": _password_rule,
    "sex": _sex_rule,
    "sport": _plain_required_rule,
    "position": _position_rule,
    "gpa": _gpa_rule,
    "country": _plain_required_rule,
    "state": _state_rule,
    "region": _region_rule,
    "scholarshipAmount": _scholarship_rule,
}


def validate(
    field_name: str, raw_value: Any, payload: Optional[Mapping[str, Any]] = None
) -> Optional[ValidationError]:
    """Validate a single registration field. Returns None when the value passes.

    payload supplies sibling fields for the cross-field rules (state and
    region depend on country). Unknown field names always pass.
    """
    rule = REGISTRATION_RULES.get(field_name)
    if rule is None:
        return None
    return rule(field_name, raw_value, payload or {})


def validate_player_registration(payload: Mapping[str, Any]) -> ValidationResult:
    """Run every registration rule and collect all violations."""
    result = ValidationResult()
    for field_name in REGISTRATION_RULES:
        result.add(validate(field_name, payload.get(field_name), payload))
    return result


# ---------------------------------------------------------------------------
# Login
# ---------------------------------------------------------------------------


def validate_login(payload: Mapping[str, Any]) -> ValidationResult:
    """Login-specific rules: email shape and minimum password length only.

    The raw email is checked untrimmed; a padded address is a format error.
    """
    result = ValidationResult()

    email = payload.get("email")
    if not isinstance(email, str) or not email:
        result.add(ValidationError("email", "Email is required"))
    elif not is_valid_email(email):
        result.add(ValidationError("email", LOGIN_EMAIL_MESSAGE))

    password = payload.get("password")
    if not isinstance(password, str) or not password:
        result.add(ValidationError("password", "Password is required"))
    elif len(password) < PASSWORD_MIN_LENGTH:
        result.add(ValidationError("password", LOGIN_PASSWORD_MESSAGE))

    return result
