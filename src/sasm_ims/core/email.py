"""
Email Service using Resend

Sends the account emails: address verification, email-change confirmation
and password reset links.
"""

import asyncio
import logging
from html import escape

import resend

from sasm_ims.core.config import settings

logger = logging.getLogger(__name__)

resend.api_key = settings.resend_api_key

_STYLES = """
        <style>
            body { font-family: system-ui, -apple-system, sans-serif; line-height: 1.6; color: #1f2937; }
            .container { max-width: 600px; margin: 0 auto; padding: 40px 20px; }
            .header { color: #14532d; margin-bottom: 24px; }
            .button { display: inline-block; background-color: #14532d; color: white; padding: 14px 28px; text-decoration: none; border-radius: 8px; margin: 24px 0; }
            .footer { margin-top: 40px; padding-top: 20px; border-top: 1px solid #e5e7eb; color: #6b7280; font-size: 14px; }
        </style>
"""


def _render(title: str, greeting_name: str, body: str, url: str, button: str, footer: str) -> str:
    safe_name = escape(greeting_name)
    return f"""
    <!DOCTYPE html>
    <html>
    <head>
{_STYLES}
    </head>
    <body>
        <div class="container">
            <h1 class="header">{title}</h1>

            <p>Hello {safe_name},</p>

            {body}

            <a href="{url}" class="button">{button}</a>

            <p>Or copy and paste this link into your browser:</p>
            <p style="word-break: break-all; color: #15803d;">{url}</p>

            <p><strong>This link expires in 15 minutes.</strong></p>

            <div class="footer">
                <p>{footer}</p>
                <p>SASM-IMS - Student Assistant and Student Marshal Information Management System</p>
            </div>
        </div>
    </body>
    </html>
    """


async def send_email(
    to_email: str,
    subject: str,
    html_content: str,
) -> bool:
    """
    Send an email using Resend.

    Returns:
        True if the email was sent (or logged when no API key is configured)
    """
    if not resend.api_key:
        logger.warning("RESEND_API_KEY not set - logging email instead of sending")
        logger.info(f"EMAIL TO: {to_email} | SUBJECT: {subject}")
        return True

    try:
        params: resend.Emails.SendParams = {
            "from": settings.email_from,
            "to": [to_email],
            "subject": subject,
            "html": html_content,
        }

        # Resend's client is synchronous
        email = await asyncio.to_thread(resend.Emails.send, params)
        logger.info(f"Email sent successfully to {to_email}, id: {email['id']}")
        return True
    except Exception as e:
        logger.error(f"Failed to send email to {to_email}: {e}")
        return False


async def send_verification_email(to_email: str, first_name: str, code: str) -> bool:
    """Send the sign-up email verification link."""
    url = f"{settings.app_origin}/email/verify/{code}"
    html_content = _render(
        title="Verify Your Email",
        greeting_name=first_name,
        body="<p>Thanks for creating a SASM-IMS account. Please confirm your email address:</p>",
        url=url,
        button="Verify Email",
        footer="If you didn't create this account, you can safely ignore this email.",
    )
    return await send_email(to_email, "Verify your SASM-IMS email address", html_content)


async def send_email_change_verification(to_email: str, first_name: str, code: str) -> bool:
    """Send the confirmation link for a requested email change to the new address."""
    url = f"{settings.app_origin}/email/verify/{code}"
    html_content = _render(
        title="Confirm Your New Email",
        greeting_name=first_name,
        body=(
            "<p>You asked to change the email address on your SASM-IMS account "
            "to this one. Confirm the change below:</p>"
        ),
        url=url,
        button="Confirm Email Change",
        footer="If you didn't request this change, you can ignore this email.",
    )
    return await send_email(to_email, "Confirm your new SASM-IMS email address", html_content)


async def send_password_reset_email(
    to_email: str, first_name: str, code: str, expires_at_ms: int
) -> bool:
    """Send the password reset link."""
    url = f"{settings.app_origin}/password/reset?code={code}&exp={expires_at_ms}"
    html_content = _render(
        title="Reset Your Password",
        greeting_name=first_name,
        body="<p>We received a request to reset your SASM-IMS password.</p>",
        url=url,
        button="Reset Password",
        footer="If you didn't ask for a password reset, no action is needed.",
    )
    return await send_email(to_email, "Reset your SASM-IMS password", html_content)
