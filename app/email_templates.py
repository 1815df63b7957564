"""
MJML Email Templates
Customer-facing emails: estimates, appointment confirmations and campaigns
"""

from html import escape
from typing import Optional

from .constants import BUSINESS_ADDRESS, BUSINESS_NAME, BUSINESS_PHONE, QUOTE_VALIDITY_DAYS

# Shop theme colors
THEME = {
    "primary": "#1d4ed8",
    "primary_dark": "#1e3a8a",
    "background": "#f8fafc",
    "card_bg": "#ffffff",
    "text_primary": "#0f172a",
    "text_secondary": "#334155",
    "text_muted": "#64748b",
    "border": "#e2e8f0",
}


def _display_phone(phone: str) -> str:
    digits = phone[-10:]
    return f"({digits[:3]}) {digits[3:6]}-{digits[6:]}"


def get_base_template(
    title: str,
    preview_text: str,
    content_sections: str,
    cta_url: Optional[str] = None,
    cta_label: Optional[str] = None,
    unsubscribe_notice: bool = False,
) -> str:
    """Base MJML template wrapper for all emails"""

    cta_section = ""
    if cta_url and cta_label:
        cta_section = f"""
        <mj-section padding="20px 0">
          <mj-column>
            <mj-button
              href="{cta_url}"
              background-color="{THEME['primary']}"
              color="#ffffff"
              font-weight="600"
              border-radius="8px"
              padding="18px 40px"
              font-size="16px">
              {cta_label}
            </mj-button>
          </mj-column>
        </mj-section>
        """

    footer_notice = ""
    if unsubscribe_notice:
        footer_notice = """
        <mj-text align="center" font-size="12px" color="#94a3b8" padding="12px 0 0 0">
          You're receiving this because you opted in to emails from us. Reply to unsubscribe.
        </mj-text>
        """

    return f"""
    <mjml>
      <mj-head>
        <mj-title>{title}</mj-title>
        <mj-preview>{preview_text}</mj-preview>
        <mj-attributes>
          <mj-all font-family="-apple-system, BlinkMacSystemFont, 'Segoe UI', 'Helvetica Neue', Arial, sans-serif" />
          <mj-text font-size="16px" line-height="1.6" color="{THEME['text_secondary']}" />
        </mj-attributes>
      </mj-head>
      <mj-body background-color="{THEME['background']}">
        <mj-section background-color="#ffffff" padding="32px 40px 48px 40px">
          <mj-column>
            <mj-text font-size="24px" font-weight="600" color="{THEME['text_primary']}" line-height="1.3" padding="0 0 16px 0">
              {title}
            </mj-text>

            {content_sections}
          </mj-column>
        </mj-section>

        {cta_section}

        <mj-section padding="32px 20px">
          <mj-column>
            <mj-text align="center" font-size="13px" color="#94a3b8" padding="0">
              {escape(BUSINESS_NAME)}<br/>
              {BUSINESS_ADDRESS}<br/>
              {_display_phone(BUSINESS_PHONE)}
            </mj-text>
            {footer_notice}
          </mj-column>
        </mj-section>
      </mj-body>
    </mjml>
    """


def _quote_item_row(item: dict) -> str:
    name = escape(item["item_name"])
    if item.get("tier_name"):
        name = f"{name} ({escape(item['tier_name'])})"
    return f"""
        <tr>
          <td style="padding: 6px 0;">{name}</td>
          <td style="padding: 6px 0; text-align: center;">{item['quantity']:g}</td>
          <td style="padding: 6px 0; text-align: right;">${item['total_price']:,.2f}</td>
        </tr>
        """


def quote_estimate_template(
    customer_name: str,
    quote_number: str,
    items: list[dict],
    subtotal: float,
    tax_amount: float,
    total_amount: float,
    link: str,
) -> str:
    """Estimate email: line items, totals and the public link"""
    rows = "".join(_quote_item_row(item) for item in items)

    content = f"""
    <mj-text>
      Hi {escape(customer_name)},
    </mj-text>

    <mj-text>
      Here is your estimate from {escape(BUSINESS_NAME)}.
    </mj-text>

    <mj-text font-size="14px" color="{THEME['text_muted']}">
      Estimate #{quote_number}
    </mj-text>

    <mj-table font-size="14px" padding="12px 0">
      <tr style="border-bottom: 1px solid {THEME['border']}; text-align: left;">
        <th style="padding: 6px 0;">Item</th>
        <th style="padding: 6px 0; text-align: center;">Qty</th>
        <th style="padding: 6px 0; text-align: right;">Price</th>
      </tr>
      {rows}
    </mj-table>

    <mj-text align="right" font-size="14px">
      Subtotal: ${subtotal:,.2f}<br/>
      Tax: ${tax_amount:,.2f}<br/>
      <strong>Total: ${total_amount:,.2f}</strong>
    </mj-text>

    <mj-text font-size="14px" color="{THEME['text_muted']}">
      View your estimate online: <a href="{link}">{link}</a><br/>
      This estimate is valid for {QUOTE_VALIDITY_DAYS} days.
    </mj-text>
    """

    return get_base_template(
        title=f"Estimate from {escape(BUSINESS_NAME)}",
        preview_text=f"Estimate #{quote_number} - ${total_amount:,.2f}",
        content_sections=content,
        cta_url=link,
        cta_label="View Estimate",
    )


def appointment_confirmation_template(
    customer_name: str, date_label: str, time_label: str, services: list[str]
) -> str:
    service_list = "<br/>".join(escape(s) for s in services) or "Detail service"
    content = f"""
    <mj-text>
      Hi {escape(customer_name)},
    </mj-text>

    <mj-text>
      Your appointment is confirmed for <strong>{date_label}</strong> at <strong>{time_label}</strong>.
    </mj-text>

    <mj-text font-size="14px" color="{THEME['text_muted']}">
      {service_list}
    </mj-text>

    <mj-text font-size="14px" color="{THEME['text_muted']}">
      Need to reschedule? Please call us at least 24 hours ahead.
    </mj-text>
    """
    return get_base_template(
        title="Appointment Confirmed",
        preview_text=f"See you {date_label} at {time_label}",
        content_sections=content,
    )


def campaign_email_template(subject: str, body: str, booking_url: str) -> str:
    """Campaign body is plain text with {placeholders} already rendered"""
    paragraphs = "".join(
        f"<mj-text>{escape(paragraph)}</mj-text>" for paragraph in body.split("\n\n") if paragraph.strip()
    )
    return get_base_template(
        title=escape(subject),
        preview_text=escape(subject),
        content_sections=paragraphs,
        cta_url=booking_url,
        cta_label="Book Now",
        unsubscribe_notice=True,
    )
