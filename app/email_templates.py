"""
MJML Email Templates
Transactional emails for bookings and payouts, compiled to HTML by email_service
"""

from html import escape
from typing import Optional

THEME = {
    "primary": "#7c3aed",
    "background": "#faf5ff",
    "card_bg": "#ffffff",
    "text_primary": "#111827",
    "text_muted": "#6b7280",
    "border": "#e5e7eb",
    "danger": "#ef4444",
}


def get_base_template(
    title: str,
    preview_text: str,
    content_sections: str,
    cta_url: Optional[str] = None,
    cta_label: Optional[str] = None,
) -> str:
    """Base MJML template wrapper for all emails"""

    cta_section = ""
    if cta_url and cta_label:
        cta_section = f"""
        <mj-section padding="20px 0">
          <mj-column>
            <mj-button href="{cta_url}" background-color="{THEME['primary']}" color="#ffffff"
              font-weight="600" border-radius="8px" padding="16px 36px">
              {cta_label}
            </mj-button>
          </mj-column>
        </mj-section>
        """

    return f"""
    <mjml>
      <mj-head>
        <mj-title>{escape(title)}</mj-title>
        <mj-preview>{escape(preview_text)}</mj-preview>
        <mj-attributes>
          <mj-all font-family="Helvetica, Arial, sans-serif" />
          <mj-text color="{THEME['text_primary']}" font-size="15px" line-height="1.6" />
        </mj-attributes>
      </mj-head>
      <mj-body background-color="{THEME['background']}">
        <mj-section background-color="{THEME['card_bg']}" border-radius="12px" padding="32px 24px">
          <mj-column>
            <mj-text font-size="22px" font-weight="700">{escape(title)}</mj-text>
            {content_sections}
          </mj-column>
        </mj-section>
        {cta_section}
        <mj-section>
          <mj-column>
            <mj-text align="center" font-size="12px" color="{THEME['text_muted']}">
              Sent by Odim. Payments are held in escrow until your service is complete.
            </mj-text>
          </mj-column>
        </mj-section>
      </mj-body>
    </mjml>
    """


def _detail_rows(rows: list[tuple[str, str]]) -> str:
    cells = "".join(
        f"<tr><td style=\"color:{THEME['text_muted']};padding:4px 12px 4px 0\">{escape(label)}</td>"
        f"<td style=\"padding:4px 0\"><strong>{escape(value)}</strong></td></tr>"
        for label, value in rows
    )
    return f"<mj-table>{cells}</mj-table>"


def booking_confirmation_template(
    customer_name: str,
    creator_name: str,
    service_name: str,
    booking_date: str,
    amount: str,
    tracking_url: str,
) -> str:
    content = f"""
    <mj-text>Hi {escape(customer_name)},</mj-text>
    <mj-text>Your payment was received and your booking with <strong>{escape(creator_name)}</strong> is confirmed.</mj-text>
    {_detail_rows([("Service", service_name), ("Date", booking_date), ("Amount paid", amount)])}
    <mj-text color="{THEME['text_muted']}">Keep this email. Your tracking link lets you follow progress
    and raise a refund request if something goes wrong.</mj-text>
    """
    return get_base_template(
        title="Booking confirmed",
        preview_text=f"{service_name} on {booking_date}",
        content_sections=content,
        cta_url=tracking_url,
        cta_label="Track your booking",
    )


def service_completed_template(
    customer_name: str, creator_name: str, service_name: str, tracking_url: str
) -> str:
    content = f"""
    <mj-text>Hi {escape(customer_name)},</mj-text>
    <mj-text><strong>{escape(creator_name)}</strong> marked your <strong>{escape(service_name)}</strong>
    booking as completed. Thank you for booking on Odim.</mj-text>
    """
    return get_base_template(
        title="Service completed",
        preview_text=f"{service_name} is complete",
        content_sections=content,
        cta_url=tracking_url,
        cta_label="View booking",
    )


def refund_requested_template(
    creator_name: str, customer_name: str, service_name: str, booking_date: str, reason: str
) -> str:
    content = f"""
    <mj-text>Hi {escape(creator_name)},</mj-text>
    <mj-text>{escape(customer_name)} has requested a refund for a booking.</mj-text>
    {_detail_rows([("Service", service_name), ("Date", booking_date)])}
    <mj-text color="{THEME['danger']}">Reason: {escape(reason)}</mj-text>
    <mj-text>Review the dispute from your dashboard to approve or reject it.</mj-text>
    """
    return get_base_template(
        title="Refund requested",
        preview_text=f"Refund request for {service_name}",
        content_sections=content,
    )


def payout_sent_template(creator_name: str, amount: str) -> str:
    content = f"""
    <mj-text>Hi {escape(creator_name)},</mj-text>
    <mj-text>A payout of <strong>{escape(amount)}</strong> is on its way to your bank account.</mj-text>
    """
    return get_base_template(title="Payout sent", preview_text=f"{amount} payout", content_sections=content)
