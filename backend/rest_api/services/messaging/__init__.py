"""
Guest messaging: WhatsApp templates sent through Twilio.
"""

from .templates import (
    format_phone_for_twilio,
    to_whatsapp_address,
    sanitize_template_variable,
    order_status_variables,
)
from .circuit_breaker import (
    CircuitBreaker,
    CircuitBreakerConfig,
    CircuitBreakerError,
    CircuitState,
    twilio_breaker,
    get_all_breaker_stats,
)
from .whatsapp import (
    DeliveryResult,
    WhatsAppDeliveryError,
    WhatsAppNotifier,
    get_notifier,
)

__all__ = [
    "format_phone_for_twilio",
    "to_whatsapp_address",
    "sanitize_template_variable",
    "order_status_variables",
    "CircuitBreaker",
    "CircuitBreakerConfig",
    "CircuitBreakerError",
    "CircuitState",
    "twilio_breaker",
    "get_all_breaker_stats",
    "DeliveryResult",
    "WhatsAppDeliveryError",
    "WhatsAppNotifier",
    "get_notifier",
]
