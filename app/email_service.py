"""
Email service - Resend delivery of MJML templates
"""

import logging
from typing import Optional, Union

import resend
from mjml import mjml_to_html

from .config import EMAIL_FROM_ADDRESS, INVITE_EXPIRY_DAYS, RESEND_API_KEY
from .email_templates import APP_NAME, invitation_email_template

logger = logging.getLogger(__name__)

resend.api_key = RESEND_API_KEY


class EmailDeliveryError(Exception):
    """Raised when an email could not be handed to the provider"""


def compile_mjml_to_html(mjml_content: str) -> str:
    """Compile MJML template to production-ready HTML"""
    try:
        result = mjml_to_html(mjml_content)
    except Exception as e:
        logger.error(f"MJML compilation error: {e}")
        raise EmailDeliveryError(f"Failed to compile MJML template: {str(e)}") from e

    errors = getattr(result, "errors", None)
    if errors:
        logger.warning(f"MJML compilation warnings: {errors}")
    return getattr(result, "html", None) or str(result)


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
        Send response dict
    """
    if not RESEND_API_KEY:
        logger.error("❌ No email service configured - RESEND_API_KEY missing")
        raise EmailDeliveryError("Email service not configured")

    html_content = compile_mjml_to_html(mjml_content)
    recipients = [to] if isinstance(to, str) else to

    try:
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
    except Exception as e:
        logger.error(f"❌ Email send error to {recipients}: {e}")
        raise EmailDeliveryError(f"Failed to send email: {str(e)}") from e


async def send_invitation_email(to: str, clinic_name: str, role: str, invite_link: str) -> dict:
    """Send a team invitation. Without an API key the link is only logged (local development)."""
    if not RESEND_API_KEY:
        logger.warning(f"⚠️ RESEND_API_KEY not set, invitation for {to} not emailed. Link: {invite_link}")
        return {"skipped": True}

    return await send_email(
        to=to,
        subject=f"Join {clinic_name} on {APP_NAME}",
        mjml_content=invitation_email_template(clinic_name, role, invite_link, INVITE_EXPIRY_DAYS),
    )
