"""Data models for the Heroku API client."""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Optional, Union

from .errors import InvalidInputError, SchemaViolation


def _require(data: Any, fields: tuple[str, ...], what: str) -> dict[str, Any]:
    """Check that ``data`` is a JSON object holding every name in ``fields``."""
    if not isinstance(data, dict):
        raise SchemaViolation(f"{what} is not a JSON object")
    missing = [name for name in fields if name not in data]
    if missing:
        raise SchemaViolation(f"{what} lacks {', '.join(missing)}")
    return data


def _to_int(value: Any, what: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise SchemaViolation(f"{what} is not an integer: {value!r}") from None


def validate_month(month: str) -> str:
    """Check a ``YYYY-MM`` month filter and return it unchanged.

    Raises:
        InvalidInputError: If ``month`` is not shaped like ``YYYY-MM``.
    """
    if (
        not isinstance(month, str)
        or len(month) != 7
        or not month.isascii()
        or month[4] != "-"
        or not month[:4].isdigit()
        or not month[5:].isdigit()
        or not 1 <= int(month[5:]) <= 12
    ):
        raise InvalidInputError(
            f"Month \"{month}\" must be given as YYYY-MM."
        )
    return month


# =============================================================================
# Dynos
# =============================================================================


@dataclass
class OneOffDyno:
    """A one-off dyno that was just started."""
    name: str

    @classmethod
    def from_dict(cls, data: Any) -> "OneOffDyno":
        data = _require(data, ("name",), "Dyno")
        return cls(name=data["name"])


def decode_dyno_list(data: Any) -> Union[list[Any], dict[str, Any]]:
    """Pass the dyno listing through as long as it is a JSON collection."""
    if not isinstance(data, (list, dict)):
        raise SchemaViolation("Dyno list is not a JSON collection")
    return data


# =============================================================================
# Formation
# =============================================================================


@dataclass
class Formation:
    """Scaling configuration of one process type.

    Attributes:
        type: Process type, e.g. "web" or "worker".
        quantity: Number of dynos running this process type.
        size: Dyno type the process type runs on.
    """
    type: str
    quantity: int
    size: str

    @classmethod
    def from_dict(cls, data: Any) -> "Formation":
        data = _require(data, ("type", "quantity", "size"), "Formation")
        return cls(
            type=data["type"],
            quantity=_to_int(data["quantity"], "Formation quantity"),
            size=data["size"],
        )


def decode_formation_quantity(data: Any) -> int:
    data = _require(data, ("quantity",), "Formation")
    return _to_int(data["quantity"], "Formation quantity")


# =============================================================================
# Account
# =============================================================================


@dataclass
class Invoice:
    """A monthly invoice of the account.

    Attributes:
        period_start: Start of the billed period, e.g. "2019-05-01T00:00:00Z".
        id: Unique invoice identifier.
        number: Human readable invoice number.
        period_end: End of the billed period.
        state: Payment state of the invoice.
        total: Total amount in cents.
        charges_total: Sum of all charges in cents.
        credits_total: Sum of all credits in cents.
        created_at: When the invoice was created.
        updated_at: When the invoice was last updated.
    """
    period_start: str
    id: Optional[str] = None
    number: Optional[int] = None
    period_end: Optional[str] = None
    state: Optional[int] = None
    total: Optional[float] = None
    charges_total: Optional[float] = None
    credits_total: Optional[float] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    period_start_date: date = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        try:
            self.period_start_date = datetime.strptime(
                self.period_start[:10], "%Y-%m-%d"
            ).date()
        except (TypeError, ValueError):
            raise SchemaViolation(
                f"Invoice period_start is not a date: {self.period_start!r}"
            ) from None

    @classmethod
    def from_dict(cls, data: Any) -> "Invoice":
        data = _require(data, ("period_start",), "Invoice")
        return cls(
            period_start=data["period_start"],
            id=data.get("id"),
            number=data.get("number"),
            period_end=data.get("period_end"),
            state=data.get("state"),
            total=data.get("total"),
            charges_total=data.get("charges_total"),
            credits_total=data.get("credits_total"),
            created_at=data.get("created_at"),
            updated_at=data.get("updated_at"),
        )

    def covers_month(self, month: str) -> bool:
        """Return True if the invoice bills the given ``YYYY-MM`` month."""
        return self.period_start.startswith(month + "-01")


def decode_invoices(data: Any) -> list[Invoice]:
    """Decode the invoice listing, oldest period first."""
    if not isinstance(data, list):
        raise SchemaViolation("Invoice list is not a JSON array")
    invoices = [Invoice.from_dict(item) for item in data]
    return sorted(invoices, key=lambda invoice: invoice.period_start_date)


@dataclass
class RateLimit:
    """Remaining API requests in the current rate-limit window."""
    remaining: int

    @classmethod
    def from_dict(cls, data: Any) -> "RateLimit":
        data = _require(data, ("remaining",), "Rate limit")
        return cls(remaining=_to_int(data["remaining"], "Rate limit remaining"))
