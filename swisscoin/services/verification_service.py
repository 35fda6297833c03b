"""
Twilio Verify client.

Sends and checks one-time SMS codes. Sends are retried with exponential
backoff on transport failures and 5xx responses. Checks are retried only
when the connection was never made. Anything still failing is surfaced to
the caller as a typed error, never swallowed.
"""

from typing import Any, Dict, Optional, Tuple, Type

import httpx
import structlog
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from swisscoin.core.config import Settings, settings
from swisscoin.core.errors import (
    IncorrectCodeError,
    InvalidPhoneNumberError,
    ProviderError,
    ProviderNotConfiguredError,
    RateLimitedError,
    TooManyAttemptsError,
    TransientProviderError,
)

logger = structlog.get_logger(__name__)

# Twilio Verify error codes
INVALID_PARAMETER = 60200
MAX_CHECK_ATTEMPTS_REACHED = 60202
MAX_SEND_ATTEMPTS_REACHED = 60203


class _ServerError(Exception):
    def __init__(self, status_code: int):
        self.status_code = status_code
        super().__init__(f"Provider returned {status_code}")


SEND_RETRY_ON = (httpx.TransportError, _ServerError)
# Every check that reaches Twilio consumes one of the code's attempts
CHECK_RETRY_ON = (httpx.ConnectError,)


class TwilioVerifyClient:
    """Async client for the Twilio Verify v2 API."""

    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        verify_sid: str,
        base_url: str = "https://verify.twilio.com",
        max_attempts: int = 3,
        backoff_seconds: float = 1.0,
        timeout_seconds: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.verify_sid = verify_sid
        self.base_url = base_url
        self.max_attempts = max(1, max_attempts)
        self.backoff_seconds = backoff_seconds
        self.timeout_seconds = timeout_seconds
        self.transport = transport

    @classmethod
    def from_settings(cls, config: Settings) -> "TwilioVerifyClient":
        return cls(
            account_sid=config.TWILIO_ACCOUNT_SID,
            auth_token=config.TWILIO_AUTH_TOKEN,
            verify_sid=config.TWILIO_VERIFY_SID,
            base_url=config.TWILIO_BASE_URL,
            max_attempts=config.VERIFY_MAX_ATTEMPTS,
            backoff_seconds=config.VERIFY_BACKOFF_SECONDS,
            timeout_seconds=config.VERIFY_TIMEOUT_SECONDS
        )

    @property
    def configured(self) -> bool:
        return bool(self.account_sid and self.auth_token and self.verify_sid)

    async def send_code(self, phone: str) -> str:
        """Send a code by SMS. Returns the provider status ("pending")."""
        self._require_configured()
        try:
            status_code, payload = await self._post(
                f"/v2/Services/{self.verify_sid}/Verifications",
                {"To": phone, "Channel": "sms"},
                retry_on=SEND_RETRY_ON
            )
        except TransientProviderError as exc:
            raise ProviderError() from exc

        if status_code >= 300:
            logger.warning("verification_send_rejected", http_status=status_code, provider_code=payload.get("code"))
            if payload.get("code") == INVALID_PARAMETER:
                raise InvalidPhoneNumberError()
            if payload.get("code") == MAX_SEND_ATTEMPTS_REACHED:
                raise RateLimitedError()
            raise ProviderError()

        return payload.get("status", "pending")

    async def check_code(self, phone: str, code: str) -> None:
        """Check a code. Returns only when the provider approves it."""
        self._require_configured()
        status_code, payload = await self._post(
            f"/v2/Services/{self.verify_sid}/VerificationCheck",
            {"To": phone, "Code": code},
            retry_on=CHECK_RETRY_ON
        )

        if status_code < 300 and payload.get("status") == "approved":
            return

        logger.warning(
            "verification_check_rejected",
            http_status=status_code,
            provider_status=payload.get("status"),
            provider_code=payload.get("code")
        )
        if payload.get("status") == "pending":
            raise IncorrectCodeError()
        if payload.get("code") == MAX_CHECK_ATTEMPTS_REACHED:
            raise TooManyAttemptsError()
        raise TransientProviderError()

    # ===== PRIVATE HELPERS =====

    def _require_configured(self) -> None:
        if not self.configured:
            logger.error("verification_provider_not_configured")
            raise ProviderNotConfiguredError()

    async def _post(
        self,
        path: str,
        data: Dict[str, str],
        retry_on: Tuple[Type[Exception], ...] = SEND_RETRY_ON
    ) -> Tuple[int, Dict[str, Any]]:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.backoff_seconds, max=10),
            retry=retry_if_exception_type(retry_on),
            reraise=True
        )
        try:
            async for attempt in retrying:
                with attempt:
                    async with httpx.AsyncClient(
                        base_url=self.base_url,
                        auth=(self.account_sid, self.auth_token),
                        timeout=self.timeout_seconds,
                        transport=self.transport
                    ) as client:
                        response = await client.post(path, data=data)
                    if response.status_code >= 500:
                        raise _ServerError(response.status_code)
        except (httpx.TransportError, _ServerError) as exc:
            logger.warning("verification_provider_unavailable", error=str(exc))
            raise TransientProviderError() from exc

        try:
            payload = response.json()
        except ValueError:
            payload = {}
        return response.status_code, payload


def get_verification_provider() -> TwilioVerifyClient:
    """FastAPI dependency."""
    return TwilioVerifyClient.from_settings(settings)
