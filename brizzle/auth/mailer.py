import logging

import httpx

from brizzle import config

logger = logging.getLogger("brizzle.mailer")

RESET_EMAIL_TEMPLATE = """\
<!DOCTYPE html>
<html>
  <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
    <h1>Password Reset Request</h1>
    <p>Hello {name},</p>
    <p>You requested to reset your password for your Brizzle TOEIC account.</p>
    <p><a href="{reset_url}">Reset Your Password</a></p>
    <p>Or copy and paste this link into your browser:</p>
    <p style="word-break: break-all; color: #666; font-size: 12px;">{reset_url}</p>
    <ul>
      <li>This link will expire in {ttl_hours} hour(s)</li>
      <li>If you didn't request this password reset, please ignore this email</li>
    </ul>
    <p>Best regards,<br>The Brizzle TOEIC Team</p>
  </body>
</html>
"""


def build_reset_url(token: str) -> str:
    return f"{config.SITE_URL.rstrip('/')}/reset-password?token={token}"


async def send_password_reset_email(email: str, name: str, token: str) -> bool:
    """
    Send the reset link through the Resend API.
    Returns False (and logs) when mail is not configured or delivery fails.
    """
    if not config.RESEND_API_KEY:
        logger.warning("RESEND_API_KEY not set; password reset email not sent to %s", email)
        return False

    reset_url = build_reset_url(token)
    message = {
        "from": config.MAIL_FROM,
        "to": [email],
        "subject": "Password Reset Request - Brizzle TOEIC",
        "html": RESET_EMAIL_TEMPLATE.format(
            name=name or "there",
            reset_url=reset_url,
            ttl_hours=config.RESET_TOKEN_TTL_HOURS,
        ),
    }

    try:
        async with httpx.AsyncClient(timeout=config.MAIL_TIMEOUT_SECONDS) as client:
            resp = await client.post(
                config.RESEND_API_URL,
                json=message,
                headers={"Authorization": f"Bearer {config.RESEND_API_KEY}"},
            )
        resp.raise_for_status()
    except httpx.HTTPError as e:
        logger.error("Password reset email to %s failed: %s", email, e)
        return False

    logger.info("Password reset email sent to %s", email)
    return True
