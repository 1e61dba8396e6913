"""
Email Service using Resend
Booking and payout notifications built from MJML templates
"""

import logging
from typing import Union

import resend
from mjml import mjml_to_html

from .config import EMAIL_FROM_ADDRESS, FRONTEND_URL, RESEND_API_KEY
from .currency import format_kobo
from .email_templates import (
    booking_confirmation_template,
    payout_sent_template,
    refund_requested_template,
    service_completed_template,
)
from .models import Booking, Creator

logger = logging.getLogger(__name__)

resend.api_key = RESEND_API_KEY


class EmailNotConfiguredError(Exception):
    pass


def compile_mjml_to_html(mjml_content: str) -> str:
    """Compile MJML template to production-ready HTML"""
    result = mjml_to_html(mjml_content)
    if isinstance(result, dict):
        if result.get("errors"):
            logger.warning(f"MJML compilation warnings: {result['errors']}")
        return result.get("html", "")
    return str(result)


async def send_email(to: Union[str, list[str]], subject: str, mjml_content: str) -> dict:
    if not RESEND_API_KEY:
        raise EmailNotConfiguredError("RESEND_API_KEY missing")

    recipients = [to] if isinstance(to, str) else to
    response = resend.Emails.send(
        {
            "from": EMAIL_FROM_ADDRESS,
            "to": recipients,
            "subject": subject,
            "html": compile_mjml_to_html(mjml_content),
        }
    )
    logger.info(f"✅ Email sent via Resend to {recipients}")
    return response


async def _send_quietly(to: str, subject: str, mjml_content: str) -> bool:
    """Notifications never fail the request that triggered them."""
    try:
        await send_email(to, subject, mjml_content)
        return True
    except EmailNotConfiguredError:
        logger.warning(f"⚠️ Email not configured, skipped '{subject}' to {to}")
    except Exception as e:
        logger.error(f"❌ Email send error to {to}: {e}")
    return False


def tracking_url(booking: Booking) -> str:
    return f"{FRONTEND_URL}/track/{booking.tracking_token}"


async def send_booking_confirmation(booking: Booking) -> bool:
    creator = booking.creator
    service = booking.price_list_item
    mjml_content = booking_confirmation_template(
        customer_name=booking.customer_name,
        creator_name=creator.display_name,
        service_name=service.name if service else "Service",
        booking_date=booking.booking_date.strftime("%A, %d %B %Y"),
        amount=format_kobo(booking.total_amount),
        tracking_url=tracking_url(booking),
    )
    return await _send_quietly(
        booking.customer_email, f"Booking confirmed with {creator.display_name}", mjml_content
    )


async def send_service_completed(booking: Booking) -> bool:
    service = booking.price_list_item
    mjml_content = service_completed_template(
        customer_name=booking.customer_name,
        creator_name=booking.creator.display_name,
        service_name=service.name if service else "Service",
        tracking_url=tracking_url(booking),
    )
    return await _send_quietly(booking.customer_email, "Your service is complete", mjml_content)


async def send_refund_requested(booking: Booking) -> bool:
    creator = booking.creator
    if not creator.user:
        return False
    service = booking.price_list_item
    mjml_content = refund_requested_template(
        creator_name=creator.display_name,
        customer_name=booking.customer_name,
        service_name=service.name if service else "Service",
        booking_date=booking.booking_date.isoformat(),
        reason=booking.dispute_reason or "",
    )
    return await _send_quietly(creator.user.email, "Refund requested on a booking", mjml_content)


async def send_payout_sent(creator: Creator, amount: int) -> bool:
    if not creator.user:
        return False
    mjml_content = payout_sent_template(creator.display_name, format_kobo(amount))
    return await _send_quietly(creator.user.email, f"Payout of {format_kobo(amount)} sent", mjml_content)
