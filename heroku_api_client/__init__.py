"""Heroku API Client - HTTP client for the Heroku Platform API."""

from .client import ClientConfig, HerokuClient
from .dyno_types import (
    DynoType,
    available_dyno_types,
    memory_limit_mib,
    validate_dyno_type,
)
from .errors import (
    HerokuApiError,
    InvalidInputError,
    ApiFailure,
    QuotaExceededError,
    NameNotFoundError,
)
from .models import Formation, Invoice, RateLimit, validate_month

__version__ = "0.1.0"
__all__ = [
    "HerokuClient",
    "ClientConfig",
    "DynoType",
    "available_dyno_types",
    "memory_limit_mib",
    "validate_dyno_type",
    "validate_month",
    "HerokuApiError",
    "InvalidInputError",
    "ApiFailure",
    "QuotaExceededError",
    "NameNotFoundError",
    "Formation",
    "Invoice",
    "RateLimit",
]
