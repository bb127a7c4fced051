"""Practice-management (PMS) API client.

One client is built per tenant configuration. It owns its own HTTP
connection pool and bearer-token cache; neither is shared across tenants.
"""

import logging
import time as time_module
from typing import Any, Callable, Optional

import httpx

from config import settings
from integrations.exceptions import (
    PMSAPIError,
    PMSAuthError,
    PMSConnectionError,
    PMSDataError,
    PMSError,
)
from integrations.pms_envelope import (
    CollectionEnvelope,
    ResourceEnvelope,
    decode_collection,
    decode_resource,
)

logger = logging.getLogger(__name__)

# Sandbox and production share a host; the API key decides the environment.
_BASE_URLS = {
    "sandbox": "https://nexhealth.info",
    "production": "https://nexhealth.info",
}


class PMSClient:
    """HTTP client for the upstream practice-management REST API.

    Every request carries a bearer token, the API version header and the
    tenant-scoping ``subdomain``/``location_id`` query parameters. Server
    errors are retried with exponential backoff; rate limiting (429) is
    waited out without consuming the retry budget.

    ``transport``, ``sleep`` and ``clock`` are injectable so tests can drive
    retries and token expiry without a network or real time passing.
    """

    def __init__(
        self,
        api_key: str,
        subdomain: str,
        location_id: str,
        environment: str = "production",
        base_url: Optional[str] = None,
        transport: Optional[httpx.BaseTransport] = None,
        sleep: Optional[Callable[[float], None]] = None,
        clock: Optional[Callable[[], float]] = None,
    ):
        if not api_key:
            raise PMSAuthError("API key is not configured", tenant=subdomain)

        self._api_key = api_key
        self._subdomain = subdomain
        self._location_id = location_id
        self._api_version = settings.PMS_API_VERSION
        self._token_ttl = settings.PMS_TOKEN_TTL_SECONDS
        self._max_retries = settings.PMS_MAX_RETRIES
        self._backoff_base = settings.PMS_BACKOFF_BASE_SECONDS
        self._backoff_multiplier = settings.PMS_BACKOFF_MULTIPLIER
        self._default_rate_limit_wait = settings.PMS_RATE_LIMIT_DEFAULT_WAIT_SECONDS
        self._max_rate_limit_waits = settings.PMS_MAX_RATE_LIMIT_WAITS
        self._sleep = sleep or time_module.sleep
        self._clock = clock or time_module.monotonic

        self._token: Optional[str] = None
        self._token_expires_at = 0.0

        resolved_url = base_url or _BASE_URLS.get(environment) or settings.PMS_BASE_URL
        self._client = httpx.Client(
            base_url=resolved_url,
            timeout=settings.PMS_REQUEST_TIMEOUT_SECONDS,
            transport=transport,
        )

    @classmethod
    def from_config(cls, config, **kwargs) -> "PMSClient":
        """Build a client for a stored TenantSyncConfig."""
        return cls(
            api_key=config.api_key,
            subdomain=config.subdomain,
            location_id=config.location_id,
            environment=config.environment,
            **kwargs,
        )

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._client.close()

    def __enter__(self) -> "PMSClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @property
    def subdomain(self) -> str:
        return self._subdomain

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    def authenticate(self) -> str:
        """Return a bearer token, exchanging the API key only when needed.

        The token is cached until ``PMS_TOKEN_TTL_SECONDS`` after it was
        issued; calls inside that window make no network request.

        Raises:
            PMSAuthError: If the API key is rejected.
            PMSAPIError: For any other non-success response.
            PMSConnectionError: If the upstream host cannot be reached.
        """
        if self._token and self._clock() < self._token_expires_at:
            return self._token

        try:
            response = self._client.post(
                "/authenticates",
                headers={
                    "Authorization": self._api_key,
                    "Nex-Api-Version": self._api_version,
                },
            )
        except httpx.HTTPError as e:
            raise PMSConnectionError(
                f"Authentication request failed: {e}", tenant=self._subdomain
            ) from e

        if response.status_code in (401, 403):
            raise PMSAuthError(
                f"Authentication failed: HTTP {response.status_code}",
                tenant=self._subdomain,
            )
        if not response.is_success:
            raise PMSAPIError(
                "Authentication failed",
                tenant=self._subdomain,
                status_code=response.status_code,
                response_body=response.text,
            )

        envelope = decode_resource(self._json(response), tenant=self._subdomain)
        token = envelope.data.get("token")
        if not token:
            raise PMSDataError("Authentication response has no token", tenant=self._subdomain)

        self._token = token
        self._token_expires_at = self._clock() + self._token_ttl
        logger.debug("PMS: authenticated tenant %s", self._subdomain)
        return token

    def invalidate_token(self) -> None:
        """Drop the cached token so the next request re-authenticates."""
        self._token = None
        self._token_expires_at = 0.0

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def request(
        self,
        method: str,
        path: str,
        params: Optional[dict[str, Any]] = None,
        json: Optional[dict[str, Any]] = None,
    ) -> Any:
        """Issue an authenticated request and return the decoded JSON body.

        Raises:
            PMSAPIError: On a non-retriable 4xx, or once server-error retries
                are exhausted. Carries the HTTP status and response body.
            PMSConnectionError: Once network-error retries are exhausted.
            PMSAuthError: On 401/403 (the cached token is dropped first).
        """
        token = self.authenticate()
        headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
            "Nex-Api-Version": self._api_version,
        }
        query: dict[str, Any] = {
            "subdomain": self._subdomain,
            "location_id": self._location_id,
        }
        if params:
            query.update({k: v for k, v in params.items() if v is not None})

        attempt = 0
        rate_limit_waits = 0
        last_error: Optional[PMSError] = None

        while True:
            try:
                response = self._client.request(
                    method, path, params=query, json=json, headers=headers
                )
            except httpx.HTTPError as e:
                last_error = PMSConnectionError(
                    f"{method} {path} failed: {e}", tenant=self._subdomain
                )
            else:
                if response.is_success:
                    return self._json(response)

                if response.status_code == 429:
                    rate_limit_waits += 1
                    if rate_limit_waits > self._max_rate_limit_waits:
                        raise PMSAPIError(
                            "Rate limited too many times",
                            tenant=self._subdomain,
                            status_code=429,
                            response_body=response.text,
                        )
                    wait = self._retry_after(response)
                    logger.warning(
                        "PMS: rate limited on %s %s, waiting %.1fs", method, path, wait
                    )
                    self._sleep(wait)
                    continue

                if response.status_code >= 500:
                    last_error = PMSAPIError(
                        "Server error",
                        tenant=self._subdomain,
                        status_code=response.status_code,
                        response_body=response.text,
                    )
                elif response.status_code in (401, 403):
                    self.invalidate_token()
                    raise PMSAuthError(
                        f"{method} {path} rejected: HTTP {response.status_code}",
                        tenant=self._subdomain,
                    )
                else:
                    raise PMSAPIError(
                        "Request failed",
                        tenant=self._subdomain,
                        status_code=response.status_code,
                        response_body=response.text,
                    )

            if attempt >= self._max_retries:
                raise last_error

            attempt += 1
            delay = self._backoff_base * (self._backoff_multiplier ** (attempt - 1))
            logger.warning(
                "PMS: %s on %s %s, retrying in %.1fs (attempt %d/%d)",
                last_error, method, path, delay, attempt, self._max_retries,
            )
            self._sleep(delay)

    def _retry_after(self, response: httpx.Response) -> float:
        """Seconds to wait after a 429, from ``Retry-After`` when it is numeric."""
        value = response.headers.get("Retry-After")
        if value:
            try:
                return max(float(value), 0.0)
            except ValueError:
                pass
        return self._default_rate_limit_wait

    def _json(self, response: httpx.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise PMSDataError(
                f"Response is not valid JSON: {e}", tenant=self._subdomain
            ) from e

    def _list(self, path: str, params: dict[str, Any]) -> CollectionEnvelope:
        return decode_collection(self.request("GET", path, params=params), tenant=self._subdomain)

    def _create(self, path: str, wrapper: str, body: dict[str, Any]) -> ResourceEnvelope:
        return decode_resource(
            self.request("POST", path, json={wrapper: body}), tenant=self._subdomain
        )

    def _update(self, path: str, wrapper: str, body: dict[str, Any]) -> ResourceEnvelope:
        return decode_resource(
            self.request("PATCH", path, json={wrapper: body}), tenant=self._subdomain
        )

    def _delete(self, path: str) -> None:
        self.request("DELETE", path)

    # ------------------------------------------------------------------
    # Patients
    # ------------------------------------------------------------------

    def get_patients(self, **params) -> CollectionEnvelope:
        """List patients. Filters: ``updated_since``, ``include_deleted``, ``provider_id``."""
        return self._list("/patients", params)

    def create_patient(self, data: dict[str, Any]) -> ResourceEnvelope:
        return self._create("/patients", "patient", data)

    def update_patient(self, patient_id: int | str, data: dict[str, Any]) -> ResourceEnvelope:
        return self._update(f"/patients/{patient_id}", "patient", data)

    def create_patient_alert(self, patient_id: int | str, data: dict[str, Any]) -> ResourceEnvelope:
        return self._create(f"/patients/{patient_id}/alerts", "alert", data)

    def create_patient_document(self, patient_id: int | str, data: dict[str, Any]) -> ResourceEnvelope:
        return self._create(f"/patients/{patient_id}/documents", "document", data)

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    def get_appointments(self, **params) -> CollectionEnvelope:
        """List appointments. Filters: ``start``/``end`` dates, ``updated_since``, ``patient_id``."""
        return self._list("/appointments", params)

    def create_appointment(self, data: dict[str, Any]) -> ResourceEnvelope:
        return self._create("/appointments", "appt", data)

    def update_appointment(self, appointment_id: int | str, data: dict[str, Any]) -> ResourceEnvelope:
        return self._update(f"/appointments/{appointment_id}", "appt", data)

    def get_providers(self, **params) -> CollectionEnvelope:
        return self._list("/providers", params)

    def get_operatories(self, **params) -> CollectionEnvelope:
        return self._list("/operatories", params)

    def get_appointment_types(self, **params) -> CollectionEnvelope:
        return self._list("/appointment_types", params)

    def create_appointment_type(self, data: dict[str, Any]) -> ResourceEnvelope:
        return self._create("/appointment_types", "appointment_type", data)

    def update_appointment_type(self, type_id: int | str, data: dict[str, Any]) -> ResourceEnvelope:
        return self._update(f"/appointment_types/{type_id}", "appointment_type", data)

    def get_working_hours(self, **params) -> CollectionEnvelope:
        return self._list("/working_hours", params)

    def create_working_hour(self, data: dict[str, Any]) -> ResourceEnvelope:
        return self._create("/working_hours", "working_hour", data)

    def update_working_hour(self, working_hour_id: int | str, data: dict[str, Any]) -> ResourceEnvelope:
        return self._update(f"/working_hours/{working_hour_id}", "working_hour", data)

    def delete_working_hour(self, working_hour_id: int | str) -> None:
        self._delete(f"/working_hours/{working_hour_id}")

    def get_patient_recalls(self, **params) -> CollectionEnvelope:
        return self._list("/patient_recalls", params)

    # ------------------------------------------------------------------
    # Clinical
    # ------------------------------------------------------------------

    def get_procedures(self, **params) -> CollectionEnvelope:
        return self._list("/procedures", params)

    def get_treatment_plans(self, **params) -> CollectionEnvelope:
        return self._list("/treatment_plans", params)

    # ------------------------------------------------------------------
    # Billing
    # ------------------------------------------------------------------

    def get_charges(self, **params) -> CollectionEnvelope:
        return self._list("/charges", params)

    def get_claims(self, **params) -> CollectionEnvelope:
        return self._list("/claims", params)

    def get_payments(self, **params) -> CollectionEnvelope:
        return self._list("/payments", params)

    def create_payment(self, data: dict[str, Any]) -> ResourceEnvelope:
        """Post a payment. Payments are written through ``/payment_transactions``."""
        return self._create("/payment_transactions", "payment_transaction", data)

    def get_adjustments(self, **params) -> CollectionEnvelope:
        return self._list("/adjustments", params)

    def create_adjustment(self, data: dict[str, Any]) -> ResourceEnvelope:
        return self._create("/adjustments", "adjustment", data)

    def get_fee_schedules(self, **params) -> CollectionEnvelope:
        return self._list("/fee_schedules", params)

    def get_guarantor_balances(self, **params) -> CollectionEnvelope:
        return self._list("/guarantor_balances", params)

    def get_insurance_balances(self, **params) -> CollectionEnvelope:
        return self._list("/insurance_balances", params)

    # ------------------------------------------------------------------
    # Insurance
    # ------------------------------------------------------------------

    def get_insurance_plans(self, **params) -> CollectionEnvelope:
        return self._list("/insurance_plans", params)

    def get_insurance_coverages(self, **params) -> CollectionEnvelope:
        """List coverages in bulk, or for one patient via ``patient_id``."""
        return self._list("/insurance_coverages", params)
