"""
AWS SES Email Service for portal account emails.

Handles email formatting and AWS SES integration for:
- email verification codes (post-account and pre-account)
- password reset links
- team member "pending approval" notices
"""

import logging
from typing import Optional
import boto3
from botocore.exceptions import ClientError, BotoCoreError
from app.core.config import settings

logger = logging.getLogger(__name__)


_HTML_SHELL = """
<!DOCTYPE html>
<html>
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{title}</title>
</head>
<body style="margin: 0; padding: 0; font-family: Arial, sans-serif; background-color: #f4f4f4;">
    <table role="presentation" style="width: 100%; border-collapse: collapse;">
        <tr>
            <td align="center" style="padding: 40px 0;">
                <table role="presentation" style="width: 600px; border-collapse: collapse; background-color: #ffffff; border-radius: 8px;">
                    <tr>
                        <td style="padding: 40px 30px; text-align: center; background-color: #0b5394; border-radius: 8px 8px 0 0;">
                            <h1 style="margin: 0; color: #ffffff; font-size: 26px;">{title}</h1>
                        </td>
                    </tr>
                    <tr>
                        <td style="padding: 40px 30px; color: #333333; font-size: 16px; line-height: 24px;">
                            {content}
                        </td>
                    </tr>
                    <tr>
                        <td style="padding: 20px 30px; background-color: #f8f9fa; border-radius: 0 0 8px 8px; text-align: center; color: #999999; font-size: 12px;">
                            &copy; {sender}. All rights reserved.
                        </td>
                    </tr>
                </table>
            </td>
        </tr>
    </table>
</body>
</html>
"""


class EmailService:
    """
    Service for sending emails via AWS SES.

    Supports both development (sandbox) and production modes.
    """

    def __init__(self):
        """Initialize AWS SES client"""
        session_kwargs = {
            'region_name': settings.AWS_REGION,
        }

        # Add credentials if provided (otherwise uses IAM role)
        if settings.AWS_ACCESS_KEY_ID and settings.AWS_SECRET_ACCESS_KEY:
            session_kwargs['aws_access_key_id'] = settings.AWS_ACCESS_KEY_ID
            session_kwargs['aws_secret_access_key'] = settings.AWS_SECRET_ACCESS_KEY

        self.ses_client = boto3.client('ses', **session_kwargs)

    def _send(self, to_email: str, subject: str, html_body: str, text_body: str) -> bool:
        """
        Send one message through SES.

        Returns:
            bool: True if email sent successfully, False otherwise
        """
        try:
            response = self.ses_client.send_email(
                Source=f"{settings.AWS_SES_FROM_NAME} <{settings.AWS_SES_FROM_EMAIL}>",
                Destination={'ToAddresses': [to_email]},
                Message={
                    'Subject': {'Data': subject, 'Charset': 'UTF-8'},
                    'Body': {
                        'Html': {'Data': html_body, 'Charset': 'UTF-8'},
                        'Text': {'Data': text_body, 'Charset': 'UTF-8'}
                    }
                }
            )

            message_id = response.get('MessageId')
            logger.info(f"Email '{subject}' sent to {to_email} (MessageId: {message_id})")
            return True

        except ClientError as e:
            error_code = e.response['Error']['Code']
            error_message = e.response['Error']['Message']
            logger.error(f"AWS SES ClientError: {error_code} - {error_message}")

            if error_code == 'MessageRejected':
                logger.error(f"Email rejected: {error_message}")
            elif error_code == 'MailFromDomainNotVerified':
                logger.error("Sender email not verified in SES")

            return False

        except BotoCoreError as e:
            logger.error(f"AWS BotoCoreError: {str(e)}")
            return False

    def _render(self, title: str, content: str) -> str:
        return _HTML_SHELL.format(title=title, content=content, sender=settings.AWS_SES_FROM_NAME)

    def send_verification_email(
        self,
        to_email: str,
        verification_code: str,
        user_name: Optional[str] = None
    ) -> bool:
        """
        Send a verification code email.

        Args:
            to_email: Recipient email address
            verification_code: 6-digit verification code
            user_name: Optional user's full name for personalization
        """
        greeting = f"Hi {user_name}," if user_name else "Hi there,"
        minutes = settings.VERIFICATION_CODE_EXPIRE_MINUTES

        content = f"""
<p>{greeting}</p>
<p>Use the following code to verify your email address:</p>
<p style="text-align: center; font-size: 32px; font-weight: bold; letter-spacing: 8px; color: #0b5394;">{verification_code}</p>
<p>This code expires in <strong>{minutes} minutes</strong>.</p>
<p>If you didn't request this, you can safely ignore this email.</p>
"""
        text_body = f"""{greeting}

Your verification code is: {verification_code}

This code expires in {minutes} minutes.

If you didn't request this, you can safely ignore this email.

{settings.AWS_SES_FROM_NAME}
"""
        return self._send(
            to_email,
            f"Verify Your Email - {settings.AWS_SES_FROM_NAME}",
            self._render("Verify Your Email", content),
            text_body,
        )

    def send_password_reset_email(
        self,
        to_email: str,
        reset_token: str,
        user_name: Optional[str] = None
    ) -> bool:
        """Send the one-hour password reset link."""
        greeting = f"Hi {user_name}," if user_name else "Hi there,"
        reset_link = f"{settings.FRONTEND_URL}/reset-password?token={reset_token}"

        content = f"""
<p>{greeting}</p>
<p>We received a request to reset your password. Click the button below to choose a new one:</p>
<p style="text-align: center;"><a href="{reset_link}" style="display: inline-block; padding: 12px 24px; background-color: #0b5394; color: #ffffff; text-decoration: none; border-radius: 4px;">Reset Password</a></p>
<p>This link expires in 1 hour and can only be used once.</p>
<p>If you didn't request a password reset, you can safely ignore this email.</p>
"""
        text_body = f"""{greeting}

We received a request to reset your password. Open this link to choose a new one:

{reset_link}

This link expires in 1 hour and can only be used once.

{settings.AWS_SES_FROM_NAME}
"""
        return self._send(
            to_email,
            f"Reset Your Password - {settings.AWS_SES_FROM_NAME}",
            self._render("Reset Your Password", content),
            text_body,
        )

    def send_team_member_pending_email(
        self,
        to_email: str,
        company_name: str,
        user_name: Optional[str] = None
    ) -> bool:
        """Tell a new team member their account awaits company approval."""
        greeting = f"Hi {user_name}," if user_name else "Hi there,"

        content = f"""
<p>{greeting}</p>
<p>Your request to join <strong>{company_name}</strong> has been received.</p>
<p>An administrator of your company needs to approve your account before you can sign in.
We'll let you know once that happens.</p>
"""
        text_body = f"""{greeting}

Your request to join {company_name} has been received.

An administrator of your company needs to approve your account before you can sign in.

{settings.AWS_SES_FROM_NAME}
"""
        return self._send(
            to_email,
            f"Account Pending Approval - {settings.AWS_SES_FROM_NAME}",
            self._render("Account Pending Approval", content),
            text_body,
        )


# Singleton instance
email_service = EmailService()
