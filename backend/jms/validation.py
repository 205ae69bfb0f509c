from __future__ import annotations
from datetime import datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

from jms.time_utils import parse_iso_datetime, to_utc_naive


MONEY_QUANT = Decimal("0.01")
WEIGHT_QUANT = Decimal("0.001")

# Largest amount accepted on any money field (Rs 99,99,99,999.99)
MAX_AMOUNT = Decimal("9999999999.99")


class ServiceError(Exception):
    """Base for every error a service surfaces to a caller."""
    status_code = 400

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        body = {"message": self.message}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(ServiceError, ValueError):
    """400-level input problem."""


class NotFoundError(ServiceError):
    """Referenced record does not exist."""
    status_code = 404


class InsufficientResourceError(ServiceError):
    """
    Stock, weight or balance shortfall.

    details always carry the resource name, the amount available and the
    amount requested.
    """

    def __init__(self, message: str, *, resource: str, available, requested, details: dict | None = None):
        merged = {
            "resource": resource,
            "available": _json_number(available),
            "requested": _json_number(requested),
        }
        merged.update(details or {})
        super().__init__(message, merged)
        self.resource = resource
        self.available = available
        self.requested = requested


class ConflictError(ServiceError, ValueError):
    """409-level business rule conflict (e.g., concurrent modification)."""
    status_code = 409


class InfrastructureError(ServiceError):
    """Store unreachable or timed out; not caller-fixable."""
    status_code = 503

    def __init__(self, message: str = "Service temporarily unavailable.", details: dict | None = None):
        super().__init__(message, details)


def _json_number(value):
    if isinstance(value, Decimal):
        return float(value)
    return value


def quantize_money(value: Decimal) -> Decimal:
    return value.quantize(MONEY_QUANT, rounding=ROUND_HALF_UP)


def quantize_weight(value: Decimal) -> Decimal:
    return value.quantize(WEIGHT_QUANT, rounding=ROUND_HALF_UP)


def format_amount(value: Decimal) -> str:
    """Render an amount without trailing zeros (1000.00 -> "1000", 12.50 -> "12.5")."""
    return format(value.normalize(), "f")


def coerce_decimal(
    value: Any,
    field: str,
    *,
    default: Decimal | None = None,
    minimum: Decimal | None = None,
    exclusive_minimum: bool = False,
    message: str | None = None,
) -> Decimal:
    """
    Parse a JSON number or numeric string into a Decimal.

    - None / "" -> default (ValidationError when no default)
    - booleans, NaN and infinities are rejected
    - floats go through str() so 0.1 stays 0.1
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        if default is not None:
            return default
        raise ValidationError(message or f"{field} is required")

    if isinstance(value, bool):
        raise ValidationError(message or f"{field} must be a number")

    try:
        if isinstance(value, Decimal):
            dec = value
        elif isinstance(value, (int, float)):
            dec = Decimal(str(value))
        elif isinstance(value, str):
            dec = Decimal(value.strip())
        else:
            raise ValidationError(message or f"{field} must be a number")
    except InvalidOperation:
        raise ValidationError(message or f"{field} must be a number")

    if not dec.is_finite():
        raise ValidationError(message or f"{field} must be a finite number")

    if minimum is not None:
        if exclusive_minimum and dec <= minimum:
            raise ValidationError(message or f"{field} must be > {minimum}")
        if not exclusive_minimum and dec < minimum:
            raise ValidationError(message or f"{field} must be >= {minimum}")

    if dec > MAX_AMOUNT:
        raise ValidationError(message or f"{field} cannot exceed {MAX_AMOUNT}")

    return dec


def coerce_int(value: Any, field: str, *, default: int | None = None, minimum: int | None = None) -> int:
    """Integers - strict validation to reject floats and scientific notation."""
    if value is None or (isinstance(value, str) and not value.strip()):
        if default is not None:
            return default
        raise ValidationError(f"{field} is required")

    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer")

    if isinstance(value, int):
        result = value
    elif isinstance(value, float):
        # JSON clients often send 2.0 for 2
        if not value.is_integer():
            raise ValidationError(f"{field} must be an integer, not a decimal")
        result = int(value)
    elif isinstance(value, str):
        stripped = value.strip()
        if "e" in stripped.lower():
            raise ValidationError(f"{field} must be a plain integer (scientific notation not allowed)")
        if "." in stripped:
            raise ValidationError(f"{field} must be an integer (no decimals)")
        try:
            result = int(stripped)
        except ValueError:
            raise ValidationError(f"{field} must be an integer")
    else:
        raise ValidationError(f"{field} must be an integer")

    if minimum is not None and result < minimum:
        raise ValidationError(f"{field} must be >= {minimum}")
    return result


def coerce_str(value: Any, field: str, *, max_length: int | None = None, required: bool = False) -> str | None:
    if value is None:
        if required:
            raise ValidationError(f"{field} is required")
        return None
    text = str(value).strip()
    if required and not text:
        raise ValidationError(f"{field} cannot be blank")
    if max_length and len(text) > max_length:
        raise ValidationError(f"{field} exceeds max length {max_length}")
    return text


def coerce_datetime(value: Any, field: str) -> datetime | None:
    """Datetimes (accept ISO-8601 strings; normalize to UTC)."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return to_utc_naive(value)
    if isinstance(value, str):
        try:
            dt = parse_iso_datetime(value)
        except ValueError:
            raise ValidationError(f"{field} must be an ISO-8601 date")
        return dt
    raise ValidationError(f"{field} must be an ISO-8601 date")
