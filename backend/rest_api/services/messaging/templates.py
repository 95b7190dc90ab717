"""
WhatsApp template helpers: phone formatting and template variables.
"""

import re

from shared.config.logging import messaging_logger as logger, mask_phone

MIN_PHONE_DIGITS = 10
MAX_PHONE_DIGITS = 15
MAX_VARIABLE_LENGTH = 1000

_NON_DIGITS = re.compile(r"\D")
_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")


def format_phone_for_twilio(phone: str | None) -> str | None:
    """
    Normalize a guest phone number to E.164 (`+<digits>`).

    Numbers without a country code are assumed to be US numbers. Returns
    None when the result does not have 10 to 15 digits.
    """
    if not phone:
        return None

    phone = phone.strip()
    if phone.startswith("whatsapp:"):
        phone = phone[len("whatsapp:"):]

    digits = _NON_DIGITS.sub("", phone)
    if not digits:
        logger.warning("No digits found in phone", phone=mask_phone(phone))
        return None

    if phone.startswith("+") and MIN_PHONE_DIGITS <= len(digits) <= MAX_PHONE_DIGITS:
        return f"+{digits}"

    if len(digits) == 10:
        cleaned = f"1{digits}"
    elif len(digits) >= 11:
        cleaned = digits
    else:
        cleaned = f"1{digits}"

    if not MIN_PHONE_DIGITS <= len(cleaned) <= MAX_PHONE_DIGITS:
        logger.warning(
            "Invalid phone number length",
            phone=mask_phone(phone),
            digits=len(cleaned),
        )
        return None
    return f"+{cleaned}"


def to_whatsapp_address(phone: str | None) -> str | None:
    """`whatsapp:+<digits>` address for the Twilio Messages API, or None."""
    formatted = format_phone_for_twilio(phone)
    return f"whatsapp:{formatted}" if formatted else None


def sanitize_template_variable(value: object) -> str:
    """Single line, no control characters, at most 1000 chars. Empty becomes N/A."""
    if value is None:
        return "N/A"
    text = " ".join(str(value).split())
    text = _CONTROL_CHARS.sub("", text)[:MAX_VARIABLE_LENGTH]
    return text or "N/A"


def order_status_variables(order_number: str | None, room_number: str | None) -> dict[str, str]:
    """Variables of the order ready / order delivered templates."""
    return {
        "1": sanitize_template_variable(order_number),
        "2": sanitize_template_variable(room_number),
    }
