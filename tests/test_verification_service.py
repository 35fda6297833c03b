"""Tests for the Twilio Verify client."""
import httpx
import pytest

from swisscoin.core.errors import (
    IncorrectCodeError,
    InvalidPhoneNumberError,
    ProviderError,
    ProviderNotConfiguredError,
    RateLimitedError,
    TooManyAttemptsError,
    TransientProviderError,
)
from swisscoin.services.verification_service import TwilioVerifyClient

PHONE = "+41791234567"


def make_client(handler, **kwargs):
    return TwilioVerifyClient(
        account_sid="AC123",
        auth_token="secret",
        verify_sid="VA123",
        base_url="https://verify.test",
        backoff_seconds=0,
        transport=httpx.MockTransport(handler),
        **kwargs
    )


class Recorder:
    """Replays canned responses and records requests."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        # Responses are single-use once a client has read them
        return httpx.Response(response.status_code, headers=response.headers, content=response.content)


@pytest.mark.asyncio
async def test_send_code_posts_to_verifications():
    recorder = Recorder(httpx.Response(201, json={"status": "pending"}))
    status = await make_client(recorder).send_code(PHONE)

    assert status == "pending"
    request = recorder.requests[0]
    assert request.url.path == "/v2/Services/VA123/Verifications"
    assert b"Channel=sms" in request.content
    assert request.headers["authorization"].startswith("Basic ")


@pytest.mark.asyncio
@pytest.mark.parametrize("code,error", [
    (60200, InvalidPhoneNumberError),
    (60203, RateLimitedError),
    (20404, ProviderError),
])
async def test_send_code_rejections(code, error):
    recorder = Recorder(httpx.Response(400, json={"code": code}))
    with pytest.raises(error):
        await make_client(recorder).send_code(PHONE)


@pytest.mark.asyncio
async def test_check_code_approved():
    recorder = Recorder(httpx.Response(200, json={"status": "approved"}))
    await make_client(recorder).check_code(PHONE, "123456")

    assert recorder.requests[0].url.path == "/v2/Services/VA123/VerificationCheck"


@pytest.mark.asyncio
async def test_check_code_wrong_code():
    recorder = Recorder(httpx.Response(200, json={"status": "pending"}))
    with pytest.raises(IncorrectCodeError) as exc_info:
        await make_client(recorder).check_code(PHONE, "000000")
    assert exc_info.value.status_code == 400


@pytest.mark.asyncio
async def test_check_code_too_many_attempts():
    recorder = Recorder(httpx.Response(429, json={"code": 60202, "status": 429}))
    with pytest.raises(TooManyAttemptsError) as exc_info:
        await make_client(recorder).check_code(PHONE, "123456")
    assert exc_info.value.status_code == 429


@pytest.mark.asyncio
async def test_check_code_other_rejection_is_transient():
    recorder = Recorder(httpx.Response(404, json={"code": 20404}))
    with pytest.raises(TransientProviderError):
        await make_client(recorder).check_code(PHONE, "123456")


@pytest.mark.asyncio
async def test_send_server_errors_retried_then_succeed():
    recorder = Recorder(
        httpx.Response(503),
        httpx.Response(502),
        httpx.Response(201, json={"status": "pending"}),
    )
    assert await make_client(recorder).send_code(PHONE) == "pending"
    assert len(recorder.requests) == 3


@pytest.mark.asyncio
async def test_send_retries_exhausted():
    recorder = Recorder(httpx.Response(500))
    with pytest.raises(ProviderError):
        await make_client(recorder, max_attempts=2).send_code(PHONE)
    assert len(recorder.requests) == 2


@pytest.mark.asyncio
async def test_check_server_error_not_retried():
    recorder = Recorder(httpx.Response(503), httpx.Response(200, json={"status": "approved"}))
    with pytest.raises(TransientProviderError):
        await make_client(recorder).check_code(PHONE, "123456")
    assert len(recorder.requests) == 1


@pytest.mark.asyncio
async def test_check_read_timeout_not_retried():
    calls = []

    def handler(request):
        calls.append(request)
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(TransientProviderError):
        await make_client(handler).check_code(PHONE, "123456")
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_check_connect_errors_retried():
    calls = []

    def handler(request):
        calls.append(request)
        if len(calls) < 3:
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(200, json={"status": "approved"})

    await make_client(handler).check_code(PHONE, "123456")
    assert len(calls) == 3


@pytest.mark.asyncio
async def test_transport_errors_on_send_surface_as_provider_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(ProviderError):
        await make_client(handler).send_code(PHONE)


@pytest.mark.asyncio
async def test_not_configured():
    client = TwilioVerifyClient(account_sid="", auth_token="", verify_sid="")
    assert not client.configured
    with pytest.raises(ProviderNotConfiguredError) as exc_info:
        await client.send_code(PHONE)
    assert exc_info.value.status_code == 500
