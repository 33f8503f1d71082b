"""Generic JSON webhook sink."""

from __future__ import annotations

from collections.abc import Sequence

import httpx

from kubepulse.notifications.manager import NotificationSink
from kubepulse.observability.logging import get_logger

_log = get_logger("notifications.webhook")


class WebhookNotificationSink(NotificationSink):
    """POSTs each message as JSON to a configurable URL.

    Args:
        url:     Full endpoint URL.
        headers: Optional extra headers (e.g. Authorization).
        timeout: HTTP request timeout in seconds.
    """

    def __init__(
        self,
        url: str,
        headers: dict[str, str] | None = None,
        timeout: float = 10.0,
    ) -> None:
        if not url:
            raise ValueError("Webhook url must not be empty")
        self._url = url
        self._headers = headers or {}
        self._timeout = timeout

    @property
    def channel_name(self) -> str:
        return "webhook"

    async def send(
        self,
        subject: str,
        body: str,
        recipients: Sequence[str],
        html: str | None = None,
    ) -> bool:
        payload = self.build_payload(subject, body, recipients, html)
        request_headers = {"Content-Type": "application/json", **self._headers}

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(self._url, json=payload, headers=request_headers)
                if response.is_success:
                    return True
                _log.warning(
                    "webhook_non_2xx_response",
                    status_code=response.status_code,
                    body=response.text[:200],
                    subject=subject,
                )
                return False
        except httpx.TimeoutException:
            _log.warning("webhook_request_timeout", url=self._url, subject=subject)
            return False
        except httpx.HTTPError as exc:
            _log.warning("webhook_http_error", error=str(exc), subject=subject)
            return False

    @staticmethod
    def build_payload(
        subject: str,
        body: str,
        recipients: Sequence[str],
        html: str | None = None,
    ) -> dict[str, object]:
        payload: dict[str, object] = {
            "subject": subject,
            "text": body,
            "recipients": list(recipients),
        }
        if html:
            payload["html"] = html
        return payload
