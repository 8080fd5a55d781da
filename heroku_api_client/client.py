"""HTTP client for the Heroku Platform API."""

from dataclasses import dataclass, field
import json as jsonlib
import logging
import time
from typing import Any, Callable, Optional, Union

import httpx

from .dyno_types import DynoType, validate_dyno_type
from .errors import (
    ApiFailure,
    HerokuApiError,
    InvalidInputError,
    NameNotFoundError,
    QuotaExceededError,
    SchemaViolation,
    TransportError,
)
from .models import (
    Formation,
    Invoice,
    OneOffDyno,
    RateLimit,
    decode_dyno_list,
    decode_formation_quantity,
    decode_invoices,
    validate_month,
)

BASE_URL = "https://api.heroku.com/"
ACCEPT_HEADER = "application/vnd.heroku+json; version=3"
DEFAULT_TIMEOUT = 3.0
# Listing dynos often needs more than 3 seconds to answer.
SLOW_ENDPOINT_TIMEOUT = 10.0

LOG_LEVELS = {"debug": logging.DEBUG, "info": logging.INFO}

QUOTA_EXCEEDED_STATUS = 422
QUOTA_EXCEEDED_ID = "cannot_update_above_limit"


@dataclass(frozen=True)
class ClientConfig:
    """Settings fixed for the lifetime of a client.

    Attributes:
        app: Name or id of the Heroku app all app-scoped calls target.
        api_key: Heroku API key; never logged.
        log_level: Minimum level the client logs at, "debug" or "info".
    """
    app: str
    api_key: str = field(repr=False)
    log_level: str = "info"

    def __post_init__(self):
        if not self.app:
            raise InvalidInputError("app is required and cannot be empty")
        if not self.api_key:
            raise InvalidInputError("api_key is required and cannot be empty")
        level = str(self.log_level).lower()
        if level not in LOG_LEVELS:
            raise InvalidInputError(
                f"Log level \"{self.log_level}\" not supported "
                f"(use one of {', '.join(LOG_LEVELS)})."
            )
        object.__setattr__(self, "log_level", level)

    @property
    def min_log_level(self) -> int:
        return LOG_LEVELS[self.log_level]


@dataclass(frozen=True)
class Operation:
    """Declarative description of a single API call.

    Attributes:
        description: What the call does, used in log messages and errors.
        method: HTTP method.
        path: Request path relative to the base URL.
        decode: Turns the decoded JSON body into the typed result, raising
            SchemaViolation if required fields are missing. None means the
            body is ignored.
        success_message: Builds the debug message logged on success.
        json: Optional JSON request body.
        timeout: Per-attempt timeout; None uses the client default.
        retryable: Whether failures may be retried at all.
        classify: Maps a transport failure to a terminal error that is
            raised immediately, or returns None to apply the retry policy.
        context: Structured fields attached to every log record.
    """
    description: str
    method: str
    path: str
    decode: Optional[Callable[[Any], Any]]
    success_message: Callable[[Any], str]
    json: Optional[dict] = None
    timeout: Optional[float] = None
    retryable: bool = True
    classify: Optional[Callable[[TransportError], Optional[HerokuApiError]]] = None
    context: dict = field(default_factory=dict)


class HerokuClient:
    """HTTP client for one Heroku app.

    Example:
        >>> with HerokuClient("my-app", api_key) as client:
        ...     name = client.run_one_off_dyno("php bin/console app:import")
        ...     dynos = client.get_dyno_list(attempts=3, retry_delay=1.0)
    """

    def __init__(
        self,
        app: str,
        api_key: str,
        *,
        log_level: str = "info",
        logger: Optional[logging.Logger] = None,
        base_url: str = BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        http_client: Optional[httpx.Client] = None,
    ):
        """Create a new Heroku client.

        Args:
            app: Name or id of the Heroku app.
            api_key: Heroku API key, sent as basic auth password.
            log_level: Minimum level to log at, "debug" or "info".
            logger: Logger to write to; defaults to the package logger.
            base_url: Base URL of the Platform API.
            timeout: Default request timeout in seconds.
            http_client: Preconfigured client to send requests with. It must
                carry its own base URL and authentication.
        """
        self.config = ClientConfig(app=app, api_key=api_key, log_level=log_level)
        self.timeout = timeout
        self._logger = logger or logging.getLogger("heroku_api_client")
        self._owns_client = http_client is None
        if http_client is None:
            http_client = httpx.Client(
                base_url=base_url,
                auth=("", api_key),
                headers={"Accept": ACCEPT_HEADER},
                timeout=timeout,
            )
        self._client = http_client

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()

    def close(self):
        """Close the HTTP client if this instance created it."""
        if self._owns_client:
            self._client.close()

    @property
    def app(self) -> str:
        return self.config.app

    def _log(self, level: int, message: str, fields: dict[str, Any]) -> None:
        if level < self.config.min_log_level:
            return
        self._logger.log(level, message, extra={"heroku": fields})

    def _request(
        self,
        method: str,
        path: str,
        *,
        json: Optional[dict] = None,
        timeout: float,
    ) -> httpx.Response:
        """Make an HTTP request, raising TransportError unless it succeeded."""
        try:
            response = self._client.request(method, path, json=json, timeout=timeout)
        except httpx.TimeoutException as e:
            raise TransportError(None, f"Request timed out: {e}") from e
        except httpx.HTTPError as e:
            raise TransportError(None, str(e)) from e

        if not response.is_success:
            raise TransportError(
                response.status_code, response.reason_phrase, response.text
            )
        return response

    def _attempt(self, op: Operation) -> Any:
        timeout = self.timeout if op.timeout is None else op.timeout
        response = self._request(op.method, op.path, json=op.json, timeout=timeout)
        if op.decode is None:
            return None
        try:
            data = response.json()
        except ValueError:
            raise SchemaViolation("response is not JSON", response.text) from None
        try:
            return op.decode(data)
        except SchemaViolation as e:
            e.body = response.text
            raise

    def _execute(
        self,
        op: Operation,
        attempts: int = 1,
        retry_delay: float = 0.0,
    ) -> Any:
        """Run an operation, retrying failures up to ``attempts`` times in total."""
        if isinstance(attempts, bool) or not isinstance(attempts, int) or attempts < 1:
            raise InvalidInputError(
                f"attempts must be an integer of at least 1, got {attempts!r}"
            )
        if retry_delay < 0:
            raise InvalidInputError(
                f"retry_delay cannot be negative, got {retry_delay}"
            )
        if not op.retryable:
            attempts = 1
        fields = {"app": self.config.app, "operation": op.description, **op.context}

        for attempts_left in range(attempts, 0, -1):
            try:
                result = self._attempt(op)
            except (TransportError, SchemaViolation) as failure:
                if isinstance(failure, TransportError) and op.classify is not None:
                    terminal = op.classify(failure)
                    if terminal is not None:
                        self._log(
                            logging.ERROR,
                            f"Heroku API-request to {op.description} failed "
                            f"({terminal.message}).",
                            fields,
                        )
                        raise terminal from failure

                if isinstance(failure, SchemaViolation):
                    detail = f"{failure.message}; response: {failure.body}"
                    status = None
                else:
                    detail = failure.message
                    if failure.body:
                        detail = f"{detail}; response: {failure.body}"
                    status = failure.status
                error = f"Heroku API-request to {op.description} failed ({detail})"

                if attempts_left > 1 and failure.is_retryable():
                    self._log(
                        logging.INFO,
                        error + "; will retry now.",
                        {**fields, "attempts_left": attempts_left - 1},
                    )
                    if retry_delay:
                        time.sleep(retry_delay)
                    continue

                self._log(logging.ERROR, error + ".", fields)
                raise ApiFailure(op.description, op.path, detail, status) from failure

            self._log(logging.DEBUG, op.success_message(result), fields)
            return result

    # =========================================================================
    # Dynos
    # =========================================================================

    def run_one_off_dyno(
        self,
        command: str,
        dyno_type: Union[DynoType, str] = DynoType.STANDARD_1X,
    ) -> str:
        """Start a detached one-off dyno executing ``command``.

        Starting work is not safe to repeat blindly, so this is never retried.

        Returns:
            The name of the new dyno, e.g. "run.1234".

        Raises:
            InvalidInputError: If ``dyno_type`` is unknown.
            ApiFailure: If the request fails or the response has no name.
        """
        dyno_type = validate_dyno_type(dyno_type)
        dyno = self._execute(Operation(
            description="run one-off dyno",
            method="POST",
            path=f"apps/{self.app}/dynos",
            json={"attach": False, "command": command, "size": dyno_type.value},
            decode=OneOffDyno.from_dict,
            success_message=lambda dyno: (
                f"One-off dyno \"{dyno.name}\" ({dyno_type.value}) has been "
                f"triggered to execute \"{command}\"."
            ),
            retryable=False,
            context={"command": command, "dyno_type": dyno_type.value},
        ))
        return dyno.name

    def get_dyno_list(
        self,
        attempts: int = 1,
        retry_delay: float = 0.0,
    ) -> Union[list[Any], dict[str, Any]]:
        """Return all dynos of the app as sent by Heroku.

        Args:
            attempts: Total number of attempts before giving up.
            retry_delay: Seconds to sleep between attempts.

        Raises:
            ApiFailure: If every attempt failed.
        """
        return self._execute(
            Operation(
                description="get dyno list",
                method="GET",
                path=f"apps/{self.app}/dynos",
                decode=decode_dyno_list,
                success_message=lambda dynos: f"Received list of {len(dynos)} dynos.",
                timeout=SLOW_ENDPOINT_TIMEOUT,
            ),
            attempts=attempts,
            retry_delay=retry_delay,
        )

    def delete_dyno(self, dyno_name: str, attempts: int = 1) -> None:
        """Stop and remove the dyno named ``dyno_name``.

        Raises:
            NameNotFoundError: If no such dyno exists; never retried.
            ApiFailure: If every attempt failed.
        """
        def classify(error: TransportError) -> Optional[HerokuApiError]:
            if error.status == 404:
                return NameNotFoundError(dyno_name)
            return None

        self._execute(
            Operation(
                description="delete dyno",
                method="DELETE",
                path=f"apps/{self.app}/dynos/{dyno_name}",
                decode=None,
                success_message=lambda _: f"Dyno \"{dyno_name}\" has been deleted.",
                timeout=SLOW_ENDPOINT_TIMEOUT,
                classify=classify,
                context={"dyno": dyno_name},
            ),
            attempts=attempts,
        )

    # =========================================================================
    # Formation
    # =========================================================================

    def get_formation_quantity(self, process_type: str, attempts: int = 1) -> int:
        """Return how many dynos run ``process_type``.

        Raises:
            ApiFailure: If every attempt failed or returned no quantity.
        """
        return self._execute(
            Operation(
                description="get formation quantity",
                method="GET",
                path=f"apps/{self.app}/formation/{process_type}",
                decode=decode_formation_quantity,
                success_message=lambda quantity: (
                    f"Formation \"{process_type}\" runs {quantity} dynos."
                ),
                timeout=SLOW_ENDPOINT_TIMEOUT,
                context={"process_type": process_type},
            ),
            attempts=attempts,
        )

    def update_formation(
        self,
        process_type: str,
        quantity: int,
        dyno_type: Union[DynoType, str],
    ) -> Formation:
        """Scale ``process_type`` to ``quantity`` dynos of ``dyno_type``.

        Single attempt only.

        Returns:
            The formation as confirmed by Heroku.

        Raises:
            InvalidInputError: If ``dyno_type`` is unknown or ``quantity`` is
                negative.
            QuotaExceededError: If Heroku refuses to scale above the limit.
            ApiFailure: If the request failed for any other reason.
        """
        dyno_type = validate_dyno_type(dyno_type)
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 0:
            raise InvalidInputError(
                f"Quantity must be a non-negative integer, got {quantity!r}."
            )

        def classify(error: TransportError) -> Optional[HerokuApiError]:
            if error.status != QUOTA_EXCEEDED_STATUS:
                return None
            try:
                body = jsonlib.loads(error.body)
            except ValueError:
                return None
            if isinstance(body, dict) and body.get("id") == QUOTA_EXCEEDED_ID:
                return QuotaExceededError(process_type, quantity, dyno_type.value)
            return None

        return self._execute(Operation(
            description="update formation",
            method="PATCH",
            path=f"apps/{self.app}/formation/{process_type}",
            json={"quantity": quantity, "size": dyno_type.value},
            decode=Formation.from_dict,
            success_message=lambda formation: (
                f"Formation \"{formation.type}\" has been updated to "
                f"{formation.quantity} x {formation.size}."
            ),
            timeout=SLOW_ENDPOINT_TIMEOUT,
            retryable=False,
            classify=classify,
            context={
                "process_type": process_type,
                "quantity": quantity,
                "dyno_type": dyno_type.value,
            },
        ))

    # =========================================================================
    # Account
    # =========================================================================

    def get_invoices(
        self, month: Optional[str] = None
    ) -> Union[list[Invoice], Invoice, None]:
        """Return the account's invoices, or the one for a single month.

        Args:
            month: Optional "YYYY-MM" filter.

        Returns:
            Without ``month``, all invoices ordered by period start. With
            ``month``, the invoice billing that month, or None if there is
            none (yet).

        Raises:
            InvalidInputError: If ``month`` is not shaped like "YYYY-MM".
            ApiFailure: If the request fails or an invoice has no period start.
        """
        if month is not None:
            validate_month(month)

        invoices = self._execute(Operation(
            description="get invoices",
            method="GET",
            path="account/invoices",
            decode=decode_invoices,
            success_message=lambda invoices: f"Received {len(invoices)} invoices.",
            retryable=False,
            context={"month": month},
        ))
        if month is None:
            return invoices

        for invoice in invoices:
            if invoice.covers_month(month):
                return invoice
        self._log(
            logging.DEBUG,
            f"No invoice for {month}.",
            {"app": self.config.app, "operation": "get invoices", "month": month},
        )
        return None

    def get_remaining_rate_limit(self, attempts: int = 1) -> int:
        """Return how many API requests are left in the current window.

        Raises:
            ApiFailure: If every attempt failed or returned no remaining count.
        """
        rate_limit = self._execute(
            Operation(
                description="get rate limit",
                method="GET",
                path="account/rate-limits",
                decode=RateLimit.from_dict,
                success_message=lambda rate_limit: (
                    f"{rate_limit.remaining} API requests remaining."
                ),
            ),
            attempts=attempts,
        )
        return rate_limit.remaining
