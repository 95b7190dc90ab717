"""
WhatsApp guest notifications through the Twilio Messages API.

Only approved templates are sent (ContentSid + ContentVariables): order
status messages usually fall outside the 24h free-form window.

Two layers:
- `deliver()` raises on transport or API errors; the outbox processor
  uses it so failures are retried.
- `send_order_ready()` / `send_order_delivered()` never raise and report
  success as a bool.
"""

import json
from enum import Enum

import httpx

from shared.config.constants import EventType
from shared.config.logging import messaging_logger as logger, mask_phone
from shared.config.settings import settings
from .circuit_breaker import CircuitBreaker, twilio_breaker
from .templates import order_status_variables, to_whatsapp_address


class DeliveryResult(str, Enum):
    SENT = "sent"
    SKIPPED = "skipped"


class WhatsAppDeliveryError(Exception):
    """Twilio rejected the message or could not be reached."""
    def __init__(self, message: str, status_code: int | None = None, error_code: int | None = None):
        self.status_code = status_code
        self.error_code = error_code
        super().__init__(message)


class WhatsAppNotifier:
    """
    Sends order status templates to guests.

    Args:
        account_sid, auth_token, from_number: Twilio credentials and sender
        templates: Template ContentSid per event type; missing means skip
        client: Optional shared httpx.AsyncClient (tests inject a mock)
    """

    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        from_number: str,
        templates: dict[str, str],
        api_base: str = "https://api.twilio.com/2010-04-01",
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
        breaker: CircuitBreaker | None = None,
    ):
        self._account_sid = account_sid
        self._auth_token = auth_token
        self._from = from_number
        self._templates = {event: sid for event, sid in templates.items() if sid}
        self._api_base = api_base.rstrip("/")
        self._timeout = timeout
        self._client = client
        self._breaker = breaker or twilio_breaker

    @classmethod
    def from_settings(cls) -> "WhatsAppNotifier":
        return cls(
            account_sid=settings.twilio_account_sid,
            auth_token=settings.twilio_auth_token,
            from_number=settings.twilio_whatsapp_number,
            templates={
                EventType.ORDER_READY: settings.whatsapp_template_order_ready,
                EventType.ORDER_DELIVERED: settings.whatsapp_template_order_delivered,
            },
            api_base=settings.twilio_api_base,
            timeout=settings.notification_timeout_seconds,
        )

    @property
    def messages_url(self) -> str:
        return f"{self._api_base}/Accounts/{self._account_sid}/Messages.json"

    async def deliver(
        self,
        event_type: str,
        order_number: str | None,
        room_number: str | None,
        guest_phone: str | None,
    ) -> DeliveryResult:
        """
        Send the template for `event_type`.

        Returns SKIPPED when there is nothing to send (no valid phone, no
        template configured).

        Raises:
            WhatsAppDeliveryError: Twilio error response or transport failure
            CircuitBreakerError: Too many recent failures
        """
        to = to_whatsapp_address(guest_phone)
        if to is None:
            logger.warning(
                "No valid phone number, skipping notification",
                event_type=event_type,
                order_number=order_number,
            )
            return DeliveryResult.SKIPPED

        content_sid = self._templates.get(event_type)
        if not content_sid:
            logger.warning(
                "Template SID not configured, skipping notification",
                event_type=event_type,
                order_number=order_number,
            )
            return DeliveryResult.SKIPPED

        if not (self._account_sid and self._auth_token):
            raise WhatsAppDeliveryError("Twilio credentials are not configured")

        form = {
            "From": self._from if self._from.startswith("whatsapp:") else f"whatsapp:{self._from}",
            "To": to,
            "ContentSid": content_sid,
            "ContentVariables": json.dumps(order_status_variables(order_number, room_number)),
        }

        async with self._breaker.call():
            message_sid = await self._post(form)

        logger.info(
            "WhatsApp notification sent",
            event_type=event_type,
            order_number=order_number,
            to=mask_phone(to),
            message_sid=message_sid,
        )
        return DeliveryResult.SENT

    async def _post(self, form: dict[str, str]) -> str | None:
        auth = (self._account_sid, self._auth_token)
        try:
            if self._client is not None:
                response = await self._client.post(self.messages_url, data=form, auth=auth)
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.post(self.messages_url, data=form, auth=auth)
        except httpx.HTTPError as e:
            raise WhatsAppDeliveryError(f"Twilio request failed: {e}") from e

        if response.status_code >= 400:
            try:
                body = response.json()
            except ValueError:
                body = {}
            raise WhatsAppDeliveryError(
                body.get("message") or f"Twilio returned HTTP {response.status_code}",
                status_code=response.status_code,
                error_code=body.get("code"),
            )

        try:
            return response.json().get("sid")
        except ValueError:
            return None

    async def _send(
        self,
        event_type: str,
        order_number: str | None,
        room_number: str | None,
        guest_phone: str | None,
    ) -> bool:
        try:
            result = await self.deliver(event_type, order_number, room_number, guest_phone)
        except Exception as e:
            logger.error(
                "WhatsApp notification failed",
                event_type=event_type,
                order_number=order_number,
                error=str(e),
            )
            return False
        return result is DeliveryResult.SENT

    async def send_order_ready(
        self,
        order_number: str | None,
        room_number: str | None,
        guest_phone: str | None,
    ) -> bool:
        """Tell the guest the order is ready. True only if a message went out."""
        return await self._send(EventType.ORDER_READY, order_number, room_number, guest_phone)

    async def send_order_delivered(
        self,
        order_number: str | None,
        room_number: str | None,
        guest_phone: str | None,
    ) -> bool:
        """Tell the guest the order was delivered. True only if a message went out."""
        return await self._send(EventType.ORDER_DELIVERED, order_number, room_number, guest_phone)


_notifier: WhatsAppNotifier | None = None


def get_notifier() -> WhatsAppNotifier:
    """Process-wide notifier built from settings."""
    global _notifier
    if _notifier is None:
        _notifier = WhatsAppNotifier.from_settings()
    return _notifier
