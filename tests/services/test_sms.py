"""Tests for the aligo SMS client against a mocked HTTP transport."""

from __future__ import annotations

from urllib.parse import parse_qs

import httpx
import pytest

from downtown.core.errors import MessageSendError
from downtown.core.settings import SmsSettings
from downtown.services.sms import SEND_PATH, TRANSPORT_FAILURE_CODE, AligoClient

CONFIG = SmsSettings(
    base_url="https://sms.test",
    api_key="key",
    user_id="downtown",
    sender_key="sender-key",
    template_code="TPL_001",
    sender_phone="0200000000",
    subject="verification",
    token_lifetime_seconds=30,
    test_mode=True,
    timeout_seconds=1.0,
)


def _client(handler) -> AligoClient:
    transport = httpx.MockTransport(handler)
    return AligoClient(CONFIG, httpx.Client(base_url=CONFIG.base_url, transport=transport))


def _form(request: httpx.Request) -> dict[str, str]:
    return {key: values[0] for key, values in parse_qs(request.content.decode()).items()}


def test_send_creates_token_then_posts_message() -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if request.url.path.startswith("/akv10/token/create/"):
            return httpx.Response(200, json={"code": 0, "message": "ok", "token": "tok-1"})
        return httpx.Response(200, json={"code": 0, "message": "sent"})

    result = _client(handler).send("01012345678", "code [123456]")

    assert result.ok
    assert [r.url.path for r in requests] == ["/akv10/token/create/30/s/", SEND_PATH]
    token_form = _form(requests[0])
    assert token_form == {"apikey": "key", "userid": "downtown"}
    form = _form(requests[1])
    assert form["token"] == "tok-1"
    assert form["receiver_1"] == "01012345678"
    assert form["message_1"] == "code [123456]"
    assert form["tpl_code"] == "TPL_001"
    assert form["senderkey"] == "sender-key"
    assert form["failover"] == "N"
    assert form["testMode"] == "Y"


def test_token_rejection_skips_send() -> None:
    paths: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        paths.append(request.url.path)
        return httpx.Response(200, json={"code": -101, "message": "bad key"})

    result = _client(handler).send("01012345678", "hi")

    assert result.code == -101
    assert not result.ok
    assert len(paths) == 1


def test_vendor_rejection_is_returned() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if SEND_PATH in request.url.path:
            return httpx.Response(200, json={"code": -99, "message": "template mismatch"})
        return httpx.Response(200, json={"code": 0, "message": "ok", "token": "t"})

    result = _client(handler).send("01012345678", "hi")

    assert result.code == -99
    assert result.message == "template mismatch"


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(502, text="bad gateway"),
        httpx.Response(200, text="<html>not json</html>"),
        httpx.Response(200, json=["unexpected"]),
        httpx.Response(200, json={"message": "no code"}),
    ],
)
def test_unreadable_responses_raise(response: httpx.Response) -> None:
    with pytest.raises(MessageSendError) as exc_info:
        _client(lambda request: response).send("01012345678", "hi")
    assert exc_info.value.code == TRANSPORT_FAILURE_CODE


def test_transport_error_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(MessageSendError) as exc_info:
        _client(handler).send("01012345678", "hi")
    assert exc_info.value.code == TRANSPORT_FAILURE_CODE
    assert "connection refused" in exc_info.value.vendor_message
