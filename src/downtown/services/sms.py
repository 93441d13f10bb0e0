"""Client for the aligo alimtalk SMS vendor.

Sending is a two step exchange: a short-lived API token is created first and
then the templated message is posted with it. Both responses carry a numeric
``code`` where ``0`` means success.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol

import httpx

from downtown.core.errors import MessageSendError
from downtown.core.settings import SmsSettings, settings

logger = logging.getLogger(__name__)

TOKEN_CREATE_PATH = "/akv10/token/create/{lifetime}/s/"
SEND_PATH = "/akv10/alimtalk/send/"

# Used when the vendor could not be reached or answered with garbage.
TRANSPORT_FAILURE_CODE = -1


@dataclass(frozen=True)
class SmsResult:
    """Vendor outcome of one request."""

    code: int
    message: str

    @property
    def ok(self) -> bool:
        return self.code == 0


class SmsClient(Protocol):
    def send(self, phone: str, message: str) -> SmsResult: ...


class AligoClient:
    """Send alimtalk messages through the aligo HTTP API."""

    def __init__(self, config: SmsSettings, client: httpx.Client | None = None) -> None:
        self._config = config
        self._client = client or httpx.Client(
            base_url=config.base_url,
            timeout=config.timeout_seconds,
        )

    def send(self, phone: str, message: str) -> SmsResult:
        """Deliver ``message`` to ``phone``.

        Returns:
            The vendor result. A non-zero code from the token step is returned
            as is, without attempting the send step.

        Raises:
            MessageSendError: The vendor could not be reached or replied with
                an unreadable body.
        """
        token = self._create_token()
        if not token.ok:
            logger.warning("SMS token creation rejected: code=%d", token.code)
            return SmsResult(code=token.code, message=token.message)

        form = {
            **self._credentials(),
            "token": token.token,
            "senderkey": self._config.sender_key or "",
            "tpl_code": self._config.template_code or "",
            "sender": self._config.sender_phone or "",
            "receiver_1": phone,
            "subject_1": self._config.subject,
            "message_1": message,
            "failover": "N",
            "testMode": "Y" if self._config.test_mode else "N",
        }
        payload = self._post(SEND_PATH, form)
        result = _parse_result(payload)
        if not result.ok:
            logger.warning("SMS send rejected: code=%d message=%s", result.code, result.message)
        return result

    def close(self) -> None:
        self._client.close()

    def _credentials(self) -> dict[str, str]:
        return {
            "apikey": self._config.api_key or "",
            "userid": self._config.user_id or "",
        }

    def _create_token(self) -> _TokenResult:
        path = TOKEN_CREATE_PATH.format(lifetime=self._config.token_lifetime_seconds)
        payload = self._post(path, self._credentials())
        result = _parse_result(payload)
        return _TokenResult(
            code=result.code,
            message=result.message,
            token=str(payload.get("token", "")),
        )

    def _post(self, path: str, form: dict[str, str]) -> dict[str, Any]:
        try:
            response = self._client.post(path, data=form)
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as err:
            raise MessageSendError(TRANSPORT_FAILURE_CODE, str(err)) from err
        if not isinstance(payload, dict):
            raise MessageSendError(TRANSPORT_FAILURE_CODE, "unexpected vendor response")
        return payload


@dataclass(frozen=True)
class _TokenResult:
    code: int
    message: str
    token: str

    @property
    def ok(self) -> bool:
        return self.code == 0


def _parse_result(payload: dict[str, Any]) -> SmsResult:
    try:
        code = int(payload["code"])
    except (KeyError, TypeError, ValueError) as err:
        raise MessageSendError(TRANSPORT_FAILURE_CODE, "vendor response has no result code") from err
    return SmsResult(code=code, message=str(payload.get("message", "")))


_client: AligoClient | None = None


def get_sms_client() -> AligoClient:
    """Return the process-wide SMS client."""
    global _client
    if _client is None:
        _client = AligoClient(settings.sms)
    return _client
