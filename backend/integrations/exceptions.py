"""Typed exception hierarchy for practice-management API errors.

Provides structured exceptions for differentiated error handling
(auth errors vs transient network errors vs data issues).
"""


class PMSError(Exception):
    """Base exception for all upstream practice-management errors.

    Carries the tenant subdomain so callers can identify which tenant failed.
    """

    def __init__(self, message: str, tenant: str = ""):
        self.tenant = tenant
        super().__init__(message)


class PMSAuthError(PMSError):
    """Credentials missing, expired, or rejected (HTTP 401/403)."""

    pass


class PMSConnectionError(PMSError):
    """Network failures: timeouts, DNS resolution, connection refused.

    Retriable by default.
    """

    def __init__(self, message: str, tenant: str = "", retriable: bool = True):
        self.retriable = retriable
        super().__init__(message, tenant)


class PMSAPIError(PMSError):
    """HTTP 4xx/5xx responses from the upstream API.

    ``response_body`` holds the raw (text) body of the last failed response.
    """

    def __init__(
        self,
        message: str,
        tenant: str = "",
        status_code: int | None = None,
        response_body: str | None = None,
    ):
        self.status_code = status_code
        self.response_body = response_body
        super().__init__(message, tenant)

    @property
    def retriable(self) -> bool:
        """429 (rate limit) and 5xx errors are generally retriable."""
        if self.status_code is None:
            return False
        return self.status_code == 429 or self.status_code >= 500

    def __str__(self) -> str:
        base = super().__str__()
        if self.status_code is None:
            return base
        return f"{base} (HTTP {self.status_code})"


class PMSDataError(PMSError):
    """Malformed or unparseable response from the upstream API."""

    pass


class SyncBudgetExceeded(Exception):
    """A sync run ran past its wall-clock budget."""

    pass
