"""
Email Service using Resend
Templates are written in MJML and compiled to responsive HTML before sending
"""

import logging
from typing import Optional, Union

import resend
from mjml import mjml_to_html
from sqlalchemy.orm import Session

from .config import EMAIL_FROM_ADDRESS, RESEND_API_KEY
from .models_messaging import EmailLog

logger = logging.getLogger(__name__)

resend.api_key = RESEND_API_KEY


class EmailNotConfiguredError(Exception):
    pass


def compile_mjml_to_html(mjml_content: str) -> str:
    """Compile MJML template to production-ready HTML"""
    result = mjml_to_html(mjml_content)
    # mjml_to_html returns a result with 'html' and 'errors'
    errors = getattr(result, "errors", None) or (result.get("errors") if isinstance(result, dict) else None)
    if errors:
        logger.warning(f"MJML compilation warnings: {errors}")
    if isinstance(result, dict):
        return result.get("html", "")
    return getattr(result, "html", str(result))


async def send_email(
    to: Union[str, list[str]],
    subject: str,
    mjml_content: str,
    from_address: Optional[str] = None,
) -> dict:
    """
    Send an email through Resend

    Args:
        to: Recipient email(s)
        subject: Email subject line
        mjml_content: MJML template content (will be compiled to HTML)
        from_address: Optional custom from address

    Returns:
        Resend response dict ({"id": ...})
    """
    if not RESEND_API_KEY:
        logger.error("❌ No email service configured - RESEND_API_KEY missing")
        raise EmailNotConfiguredError("Email service not configured")

    html_content = compile_mjml_to_html(mjml_content)
    recipients = [to] if isinstance(to, str) else to

    logger.info(f"📧 Sending email via Resend to: {recipients}")
    response = resend.Emails.send(
        {
            "from": from_address or EMAIL_FROM_ADDRESS,
            "to": recipients,
            "subject": subject,
            "html": html_content,
        }
    )
    logger.info(f"✅ Email sent successfully via Resend: {response}")
    return response


async def send_customer_email(
    db: Session,
    to_email: str,
    subject: str,
    mjml_content: str,
    message_type: str,
    customer_id: Optional[int] = None,
    entity_type: Optional[str] = None,
    entity_id: Optional[int] = None,
) -> tuple[bool, Optional[str]]:
    """
    Send an email to a customer and record the attempt in email_logs.

    Returns:
        Tuple of (success: bool, error_message: Optional[str])
    """
    log = EmailLog(
        customer_id=customer_id,
        to_email=to_email,
        subject=subject,
        message_type=message_type,
        entity_type=entity_type,
        entity_id=entity_id,
        status="sent",
    )
    try:
        response = await send_email(to=to_email, subject=subject, mjml_content=mjml_content)
        log.resend_id = response.get("id") if isinstance(response, dict) else None
        success, error = True, None
    except Exception as e:
        logger.error(f"❌ Email send error to {to_email}: {e}")
        log.status = "failed"
        log.error_message = str(e)
        success, error = False, str(e)

    db.add(log)
    db.commit()
    return success, error
