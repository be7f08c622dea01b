"""
Storefront Backend — Declarative Field Validation
===================================================

What:  Rule tables describing what each request field must satisfy.
Why:   Field errors are reported together, keyed by field name, with one
       message per field, for create and update alike.
How:   A table is an ordered list of FieldRules. Each rule is an async
       callable `(value, db) -> Optional[str]` returning an error message or
       None. `validate_fields` walks the table:

           for each field (independently of the others):
               if optional and the value is absent → skip the field
               run its rules in order, stop at the first failure
           any failure → ValidationFailedError({field: first_message, ...})

    Rules are async because `category_exists` needs a database round-trip.

Example:
    >>> await validate_fields({"price": "123456"}, PRODUCT_UPDATE_RULES, db)
    ValidationFailedError: {"price": "Price must be less than 100000"}
"""

import math
import uuid
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from storefront.exceptions import ValidationFailedError
from storefront.models.category import Category

Rule = Callable[[Any, AsyncSession], Awaitable[Optional[str]]]


@dataclass(frozen=True)
class FieldRules:
    """
    Rules for one request field.

    Attributes:
        field:    key in the submitted data, also the key in the errors map
        rules:    evaluated in order; the first message returned wins
        optional: skip every rule when the value is absent (None)
    """

    field: str
    rules: Sequence[Rule]
    optional: bool = False


# ── Rule factories ────────────────────────────────────────────────────────

def _as_float(value: Any) -> Optional[float]:
    try:
        number = float(str(value).strip())
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def required(message: str) -> Rule:
    """None, empty and whitespace-only values fail. Always first in a field's rules."""
    async def rule(value: Any, db: AsyncSession) -> Optional[str]:
        if value is None or (isinstance(value, str) and not value.strip()):
            return message
        return None
    return rule


def numeric(message: str) -> Rule:
    """
    Value must parse as a finite number.

    Every later numeric rule assumes this one passed and parses without
    guarding.
    """
    async def rule(value: Any, db: AsyncSession) -> Optional[str]:
        return message if _as_float(value) is None else None
    return rule


def non_negative(message: str) -> Rule:
    async def rule(value: Any, db: AsyncSession) -> Optional[str]:
        return message if _as_float(value) < 0 else None
    return rule


def whole_number(message: str) -> Rule:
    """"5" and "5.0" pass; "5.5" fails."""
    async def rule(value: Any, db: AsyncSession) -> Optional[str]:
        return None if _as_float(value).is_integer() else message
    return rule


def max_decimals(places: int, message: str) -> Rule:
    """
    At most `places` digits after the decimal point.

    Runs before `max_digits`: the column stores NUMERIC(10, 2), so a value
    like 99999.995 would be rounded up to 100000.00 on write.
    """
    async def rule(value: Any, db: AsyncSession) -> Optional[str]:
        try:
            exponent = Decimal(str(value).strip()).normalize().as_tuple().exponent
        except InvalidOperation:
            return message
        return message if exponent < -places else None
    return rule


def max_digits(limit: int, message: str) -> Rule:
    """At most `limit` digits before the decimal point, i.e. |value| < 10**limit."""
    async def rule(value: Any, db: AsyncSession) -> Optional[str]:
        return message if abs(_as_float(value)) >= 10 ** limit else None
    return rule


def well_formed_id(message: str) -> Rule:
    """Value must be a UUID string."""
    async def rule(value: Any, db: AsyncSession) -> Optional[str]:
        return None if parse_uuid(value) is not None else message
    return rule


def category_exists(message: str) -> Rule:
    """Must run after `well_formed_id`."""
    async def rule(value: Any, db: AsyncSession) -> Optional[str]:
        category = await db.get(Category, parse_uuid(value))
        return message if category is None else None
    return rule


def parse_uuid(value: Any) -> Optional[uuid.UUID]:
    """Return the UUID, or None when the value is not one."""
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value).strip())
    except (TypeError, ValueError, AttributeError):
        return None


# ── Evaluation ────────────────────────────────────────────────────────────

async def validate_fields(
    data: Mapping[str, Any],
    table: Sequence[FieldRules],
    db: AsyncSession,
) -> None:
    """
    Evaluate `data` against `table`.

    Raises:
        ValidationFailedError: with field → first failing message, in table order
    """
    errors: Dict[str, str] = {}
    for entry in table:
        value = data.get(entry.field)
        if entry.optional and value is None:
            continue
        for rule in entry.rules:
            message = await rule(value, db)
            if message is not None:
                errors[entry.field] = message
                break

    if errors:
        raise ValidationFailedError(errors=errors)


def require_identifier(value: str, field: str = "id", message: str = "Invalid product ID") -> uuid.UUID:
    """Parse a path identifier or fail with a field-scoped validation error."""
    parsed = parse_uuid(value)
    if parsed is None:
        raise ValidationFailedError(errors={field: message})
    return parsed


# ── Tables ────────────────────────────────────────────────────────────────

def _product_rules(optional: bool) -> Sequence[FieldRules]:
    # On update a field may be omitted, but whatever is sent must still be valid;
    # `required` stays first so an empty value is reported as missing
    return (
        FieldRules("name", (required("Product name is required"),), optional),
        FieldRules("title", (required("Product title is required"),), optional),
        FieldRules("description", (required("Product description is required"),), optional),
        FieldRules(
            "category_id",
            (
                required("Category ID is required"),
                well_formed_id("Invalid category ID"),
                category_exists("Category not found"),
            ),
            optional,
        ),
        FieldRules(
            "price",
            (
                required("Price is required"),
                numeric("Price must be a number"),
                non_negative("Price must not be negative"),
                max_decimals(2, "Price must have at most 2 decimal places"),
                max_digits(5, "Price must be less than 100000"),
            ),
            optional,
        ),
        FieldRules(
            "quantity",
            (
                required("Quantity is required"),
                numeric("Quantity must be a number"),
                non_negative("Quantity must not be negative"),
                whole_number("Quantity must be a whole number"),
                max_digits(5, "Quantity must be less than 100000"),
            ),
            optional,
        ),
    )


PRODUCT_CREATE_RULES = _product_rules(optional=False)
PRODUCT_UPDATE_RULES = _product_rules(optional=True)

LOGIN_RULES = (
    FieldRules("email", (required("email is required"),)),
    FieldRules("password", (required("password is required"),)),
)
