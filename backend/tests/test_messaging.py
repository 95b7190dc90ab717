"""
Tests for WhatsApp guest notifications (Twilio) and the messaging circuit breaker.
"""

import json
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from shared.config.constants import EventType
from rest_api.services.messaging import (
    CircuitBreaker,
    CircuitBreakerConfig,
    CircuitBreakerError,
    CircuitState,
    DeliveryResult,
    WhatsAppDeliveryError,
    WhatsAppNotifier,
    format_phone_for_twilio,
    order_status_variables,
    sanitize_template_variable,
    to_whatsapp_address,
)


# =============================================================================
# Phone formatting and template variables
# =============================================================================


class TestPhoneFormatting:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("+15551234567", "+15551234567"),
            ("(555) 123-4567", "+15551234567"),
            ("555.123.4567", "+15551234567"),
            ("15551234567", "+15551234567"),
            ("whatsapp:+447911123456", "+447911123456"),
            ("+56 9 1234 5678", "+56912345678"),
        ],
    )
    def test_valid_numbers(self, raw, expected):
        assert format_phone_for_twilio(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "   ", "call me", "12345", "+123", "+1234567890123456"])
    def test_invalid_numbers(self, raw):
        assert format_phone_for_twilio(raw) is None

    def test_whatsapp_address(self):
        assert to_whatsapp_address("5551234567") == "whatsapp:+15551234567"
        assert to_whatsapp_address("nope") is None


class TestTemplateVariables:
    def test_empty_values_become_placeholder(self):
        assert sanitize_template_variable(None) == "N/A"
        assert sanitize_template_variable("   ") == "N/A"

    def test_single_line(self):
        assert sanitize_template_variable("Room\n204\t B") == "Room 204 B"

    def test_truncated(self):
        assert len(sanitize_template_variable("x" * 1500)) == 1000

    def test_order_status_variables(self):
        assert order_status_variables("ORD-1001", 204) == {"1": "ORD-1001", "2": "204"}


# =============================================================================
# Notifier
# =============================================================================


@pytest.fixture
def breaker():
    return CircuitBreaker(
        CircuitBreakerConfig(name="test", failure_threshold=2, success_threshold=1, timeout_seconds=30.0)
    )


@pytest.fixture
def http_client():
    client = MagicMock()
    client.post = AsyncMock(return_value=httpx.Response(201, json={"sid": "SM123"}))
    return client


@pytest.fixture
def make_notifier(http_client, breaker):
    def _make(**overrides):
        options = {
            "account_sid": "AC123",
            "auth_token": "secret",
            "from_number": "+14155238886",
            "templates": {EventType.ORDER_READY: "HXready", EventType.ORDER_DELIVERED: "HXdelivered"},
            "client": http_client,
            "breaker": breaker,
        }
        options.update(overrides)
        return WhatsAppNotifier(**options)

    return _make


class TestWhatsAppNotifier:
    @pytest.mark.asyncio
    async def test_posts_template_message(self, make_notifier, http_client):
        notifier = make_notifier()

        result = await notifier.deliver(EventType.ORDER_READY, "ORD-1001", "204", "(555) 123-4567")

        assert result is DeliveryResult.SENT
        http_client.post.assert_awaited_once()
        args, kwargs = http_client.post.await_args
        assert args[0] == "https://api.twilio.com/2010-04-01/Accounts/AC123/Messages.json"
        assert kwargs["auth"] == ("AC123", "secret")
        form = kwargs["data"]
        assert form["From"] == "whatsapp:+14155238886"
        assert form["To"] == "whatsapp:+15551234567"
        assert form["ContentSid"] == "HXready"
        assert json.loads(form["ContentVariables"]) == {"1": "ORD-1001", "2": "204"}

    @pytest.mark.asyncio
    async def test_delivered_uses_its_own_template(self, make_notifier, http_client):
        await make_notifier().deliver(EventType.ORDER_DELIVERED, "ORD-1", "1", "+15551234567")
        assert http_client.post.await_args.kwargs["data"]["ContentSid"] == "HXdelivered"

    @pytest.mark.asyncio
    async def test_sender_with_prefix_is_kept(self, make_notifier, http_client):
        await make_notifier(from_number="whatsapp:+14155238886").deliver(
            EventType.ORDER_READY, "ORD-1", "1", "+15551234567"
        )
        assert http_client.post.await_args.kwargs["data"]["From"] == "whatsapp:+14155238886"

    @pytest.mark.asyncio
    async def test_invalid_phone_is_skipped(self, make_notifier, http_client):
        result = await make_notifier().deliver(EventType.ORDER_READY, "ORD-1", "1", "123")

        assert result is DeliveryResult.SKIPPED
        http_client.post.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_template_is_skipped(self, make_notifier, http_client):
        notifier = make_notifier(templates={EventType.ORDER_READY: ""})

        result = await notifier.deliver(EventType.ORDER_READY, "ORD-1", "1", "+15551234567")

        assert result is DeliveryResult.SKIPPED
        http_client.post.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_credentials_raise(self, make_notifier, http_client):
        with pytest.raises(WhatsAppDeliveryError):
            await make_notifier(auth_token="").deliver(EventType.ORDER_READY, "ORD-1", "1", "+15551234567")
        http_client.post.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_twilio_error_response(self, make_notifier, http_client):
        http_client.post.return_value = httpx.Response(
            400, json={"code": 21211, "message": "Invalid 'To' Phone Number"}
        )

        with pytest.raises(WhatsAppDeliveryError) as exc_info:
            await make_notifier().deliver(EventType.ORDER_READY, "ORD-1", "1", "+15551234567")

        assert exc_info.value.status_code == 400
        assert exc_info.value.error_code == 21211
        assert str(exc_info.value) == "Invalid 'To' Phone Number"

    @pytest.mark.asyncio
    async def test_transport_error(self, make_notifier, http_client):
        http_client.post.side_effect = httpx.ConnectError("connection refused")

        with pytest.raises(WhatsAppDeliveryError):
            await make_notifier().deliver(EventType.ORDER_READY, "ORD-1", "1", "+15551234567")


class TestSendHelpers:
    """send_order_ready / send_order_delivered never raise."""

    @pytest.mark.asyncio
    async def test_success(self, make_notifier):
        notifier = make_notifier()
        assert await notifier.send_order_ready("ORD-1", "1", "+15551234567") is True
        assert await notifier.send_order_delivered("ORD-1", "1", "+15551234567") is True

    @pytest.mark.asyncio
    async def test_http_error_returns_false(self, make_notifier, http_client):
        http_client.post.return_value = httpx.Response(500, text="oops")
        assert await make_notifier().send_order_ready("ORD-1", "1", "+15551234567") is False

    @pytest.mark.asyncio
    async def test_transport_error_returns_false(self, make_notifier, http_client):
        http_client.post.side_effect = httpx.ReadTimeout("timed out")
        assert await make_notifier().send_order_delivered("ORD-1", "1", "+15551234567") is False

    @pytest.mark.asyncio
    async def test_skip_returns_false(self, make_notifier):
        assert await make_notifier().send_order_ready("ORD-1", "1", None) is False


# =============================================================================
# Circuit breaker
# =============================================================================


class TestCircuitBreaker:
    @pytest.mark.asyncio
    async def test_opens_after_threshold_and_fails_fast(self, make_notifier, http_client, breaker):
        http_client.post.side_effect = httpx.ConnectError("down")
        notifier = make_notifier()

        for _ in range(2):
            with pytest.raises(WhatsAppDeliveryError):
                await notifier.deliver(EventType.ORDER_READY, "ORD-1", "1", "+15551234567")

        assert breaker.state == CircuitState.OPEN
        with pytest.raises(CircuitBreakerError):
            await notifier.deliver(EventType.ORDER_READY, "ORD-1", "1", "+15551234567")
        assert http_client.post.await_count == 2
        assert breaker.stats.rejected_calls == 1

    @pytest.mark.asyncio
    async def test_half_open_trial_closes_circuit(self):
        breaker = CircuitBreaker(
            CircuitBreakerConfig(name="trial", failure_threshold=1, success_threshold=1, timeout_seconds=0)
        )
        with pytest.raises(RuntimeError):
            async with breaker.call():
                raise RuntimeError("boom")
        assert breaker.state == CircuitState.OPEN

        async with breaker.call():
            pass

        assert breaker.state == CircuitState.CLOSED

    @pytest.mark.asyncio
    async def test_reset(self, breaker):
        await breaker.record_failure()
        await breaker.record_failure()
        assert breaker.state == CircuitState.OPEN

        await breaker.reset()

        assert breaker.state == CircuitState.CLOSED
