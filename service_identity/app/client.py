"""
Identity lookup client.

Calls the identity provider's userinfo endpoint with a bearer token, retries
transient failures with exponential backoff and classifies the rest:

- 5xx, and 404 carrying "Internal Error" in the body, are transient.
- 403 with Bad_OAuth_Token, Missing_OAuth_Token or Wrong_Org, and 404 with
  Bad_Id, mean the token is unusable (BadOAuthToken).
- Any other non-2xx response is a RemoteError, and a call that never got a
  response is a TransportError.

Each response body is read once into a ResponseSnapshot that is passed from
step to step within a single lookup, so concurrent lookups never see each
other's responses.
"""

import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import httpx
from pydantic import ValidationError as PayloadValidationError

from shared.config import IdentityClientSettings
from shared.errors import (
    BadOAuthToken,
    ConfigurationError,
    IdentityClientException,
    RemoteError,
    TransportError,
    ValidationError,
)
from shared.logging import get_logger
from shared.retry import RetryConfig, call_with_backoff
from service_identity.app.constants import (
    API_VERSION,
    BACKOFF_INITIAL_INTERVAL,
    BACKOFF_MAX_ELAPSED_TIME,
    BACKOFF_MAX_INTERVAL,
    BACKOFF_MULTIPLIER,
    BACKOFF_RANDOMIZATION_FACTOR,
    BAD_TOKEN_ERROR_CODES,
    HTTPS_PREFIX,
    INTERNAL_ERROR_MARKER,
    MAX_ATTEMPTS,
    PARTNER_URL_KEY,
    PRODUCTION,
    SANDBOX,
    USERINFO_ENDPOINTS,
    VERSION_PLACEHOLDER,
)
from service_identity.app.models import UserInfo

logger = get_logger("identity.client")

# Transport failures after which repeating a GET is safe
RETRY_SAFE_TRANSPORT_ERRORS = (
    httpx.TimeoutException,
    httpx.NetworkError,
    httpx.RemoteProtocolError,
)


@dataclass(frozen=True)
class ResponseSnapshot:
    """Status and fully buffered body of one HTTP response."""

    status_code: int
    body: str

    @classmethod
    def from_response(cls, response: httpx.Response) -> "ResponseSnapshot":
        return cls(status_code=response.status_code, body=response.text)

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300

    def __str__(self) -> str:
        return f"HTTP {self.status_code}"


def default_retry_config() -> RetryConfig:
    """Backoff policy expected by the identity provider."""
    return RetryConfig(
        max_attempts=MAX_ATTEMPTS,
        initial_interval=BACKOFF_INITIAL_INTERVAL,
        multiplier=BACKOFF_MULTIPLIER,
        randomization_factor=BACKOFF_RANDOMIZATION_FACTOR,
        max_interval=BACKOFF_MAX_INTERVAL,
        max_elapsed_time=BACKOFF_MAX_ELAPSED_TIME,
    )


def endpoint_for(sandbox: bool) -> str:
    return USERINFO_ENDPOINTS[SANDBOX if sandbox else PRODUCTION]


def is_transient(snapshot: ResponseSnapshot) -> bool:
    """Whether a response is worth retrying."""
    if snapshot.is_success:
        return False
    if snapshot.status_code // 100 == 5:
        return True
    return (snapshot.status_code == httpx.codes.NOT_FOUND
            and INTERNAL_ERROR_MARKER.lower() in snapshot.body.lower())


def is_bad_token(snapshot: ResponseSnapshot) -> bool:
    """Whether a response says the token itself is unusable.

    The error code must match the body exactly, ignoring case, and must come
    with the status it is listed under: Wrong_Org on a 400 is not a bad token.
    """
    body = snapshot.body.lower()
    codes = BAD_TOKEN_ERROR_CODES.get(snapshot.status_code, ())
    return any(body == code.lower() for code in codes)


def is_retry_safe(error: Exception) -> bool:
    return isinstance(error, RETRY_SAFE_TRANSPORT_ERRORS)


def classify_failure(snapshot: ResponseSnapshot) -> IdentityClientException:
    """Map a terminal non-2xx response to the error raised to callers."""
    if is_bad_token(snapshot):
        return BadOAuthToken(
            f"Bad OAuth token: {snapshot.body}",
            details={"status_code": snapshot.status_code, "error_code": snapshot.body}
        )
    return RemoteError(snapshot.status_code, snapshot.body)


def derive_partner_url(urls: Optional[Dict[str, str]], api_version: str = API_VERSION) -> str:
    if not urls or PARTNER_URL_KEY not in urls:
        raise ConfigurationError(
            f"User info doesn't contain partner URL: {urls}",
            details={"urls": urls or {}}
        )
    return urls[PARTNER_URL_KEY].replace(VERSION_PLACEHOLDER, api_version)


def derive_instance(partner_url: Optional[str]) -> Optional[str]:
    """First host label of the partner URL, or None.

    A value without scheme or dots is its own instance name. This never
    raises; a URL with no usable first label is logged and gives None.
    """
    if not partner_url or not partner_url.strip():
        return None

    host = partner_url
    if host.startswith(HTTPS_PREFIX):
        host = host[len(HTTPS_PREFIX):]

    instance = host.split(".")[0]
    if not instance:
        logger.error("Failed to parse instance name from partner URL", partner_url=host)
        return None

    return instance


def enrich(user_info: UserInfo, api_version: str = API_VERSION) -> UserInfo:
    """Return a copy of ``user_info`` with partner_url and instance filled in."""
    partner_url = derive_partner_url(user_info.urls, api_version)
    return user_info.model_copy(update={
        "partner_url": partner_url,
        "instance": derive_instance(partner_url),
    })


class IdentityLookupClient:
    """Client for the identity provider's userinfo endpoint.

    Instances are safe to share between threads: the only state kept between
    calls is the immutable configuration and the pooled httpx.Client.
    """

    def __init__(self,
                 connect_timeout: float = 10.0,
                 read_timeout: float = 30.0,
                 retry_config: Optional[RetryConfig] = None,
                 transport: Optional[httpx.BaseTransport] = None,
                 sleep: Callable[[float], Any] = time.sleep,
                 clock: Callable[[], float] = time.monotonic):
        self.connect_timeout = connect_timeout
        self.read_timeout = read_timeout
        self.retry_config = retry_config or default_retry_config()
        self.logger = logger
        self._sleep = sleep
        self._clock = clock
        self._http = httpx.Client(
            timeout=httpx.Timeout(read_timeout, connect=connect_timeout),
            headers={"Accept": "application/json"},
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings: IdentityClientSettings, **kwargs) -> "IdentityLookupClient":
        return cls(
            connect_timeout=settings.connect_timeout,
            read_timeout=settings.read_timeout,
            **kwargs
        )

    def lookup(self, token: str, sandbox: bool = False) -> UserInfo:
        """Resolve the identity behind ``token``.

        Raises BadOAuthToken, RemoteError, TransportError or
        ConfigurationError; see the module docstring for when.
        """
        if not isinstance(token, str) or not token.strip():
            raise ValidationError("Access token must be a non-empty string")

        url = endpoint_for(sandbox)
        environment = SANDBOX if sandbox else PRODUCTION

        try:
            snapshot = call_with_backoff(
                lambda: self._fetch(url, token),
                config=self.retry_config,
                retry_on_result=is_transient,
                retry_on_exception=is_retry_safe,
                sleep=self._sleep,
                clock=self._clock,
                name="identity_lookup",
            )
        except httpx.RequestError as e:
            message = str(e) or type(e).__name__
            self.logger.error("Identity endpoint unreachable", environment=environment, error=message)
            raise TransportError(f"IO error: {message}", details={"error": message, "url": url}) from e

        if not snapshot.is_success:
            error = classify_failure(snapshot)
            self.logger.warning(
                "Identity lookup rejected",
                environment=environment,
                status_code=snapshot.status_code,
                code=error.code
            )
            raise error

        user_info = enrich(self._parse(snapshot))
        self.logger.info(
            "Identity resolved",
            environment=environment,
            user_id=user_info.user_id,
            organization_id=user_info.organization_id,
            instance=user_info.instance
        )
        return user_info

    def _fetch(self, url: str, token: str) -> ResponseSnapshot:
        response = self._http.get(url, headers={"Authorization": f"Bearer {token}"})
        return ResponseSnapshot.from_response(response)

    @staticmethod
    def _parse(snapshot: ResponseSnapshot) -> UserInfo:
        try:
            return UserInfo.model_validate_json(snapshot.body)
        except PayloadValidationError as e:
            raise ConfigurationError(
                "Identity payload could not be parsed",
                details={"error": str(e)}
            ) from e

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "IdentityLookupClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
