"""
Email Service for UniTrack
==========================
Templated mail for the student lifecycle:
- Registration confirmation
- Account approval / rejection
- Fee payment receipts
- Result notifications
- Password reset

Sending is best-effort. Every send returns True/False instead of raising,
so the outbound dispatcher can retry a False without special casing.
"""

import aiosmtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from typing import Optional, Dict, Any
from datetime import datetime

from app.core.config import settings
from app.core.logging_config import logger


class EmailService:
    """Async email service using SMTP"""

    def __init__(self):
        self.smtp_host = settings.SMTP_HOST
        self.smtp_port = settings.SMTP_PORT
        self.smtp_user = settings.SMTP_USER
        self.smtp_password = settings.SMTP_PASSWORD
        self.from_email = settings.EMAIL_FROM
        self.from_name = settings.EMAIL_FROM_NAME
        self.frontend_url = settings.FRONTEND_URL

    @property
    def is_configured(self) -> bool:
        """Check if email service is properly configured"""
        return bool(self.smtp_host and self.smtp_user and self.smtp_password)

    async def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None
    ) -> bool:
        """
        Send an email asynchronously.

        Returns True if successful, False otherwise.
        """
        if not self.is_configured:
            logger.warning("[Email] Email service not configured, skipping email send")
            return False

        try:
            message = MIMEMultipart("alternative")
            message["From"] = f"{self.from_name} <{self.from_email}>"
            message["To"] = to_email
            message["Subject"] = subject

            # Plain text first so clients prefer the HTML part
            if text_content:
                message.attach(MIMEText(text_content, "plain"))
            message.attach(MIMEText(html_content, "html"))

            await aiosmtplib.send(
                message,
                hostname=self.smtp_host,
                port=self.smtp_port,
                username=self.smtp_user,
                password=self.smtp_password,
                start_tls=True
            )

            logger.info(f"[Email/SMTP] Successfully sent email to {to_email}: {subject}")
            return True

        except Exception as e:
            logger.error(f"[Email/SMTP] Failed to send email to {to_email}: {e}")
            return False

    def _layout(self, heading: str, body: str) -> str:
        return f"""
        <!DOCTYPE html>
        <html>
        <head>
            <style>
                body {{ font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; line-height: 1.6; color: #333; }}
                .container {{ max-width: 600px; margin: 0 auto; padding: 20px; }}
                .header {{ background: #1e3a8a; color: white; padding: 30px; text-align: center; border-radius: 10px 10px 0 0; }}
                .content {{ background: #f9fafb; padding: 30px; border-radius: 0 0 10px 10px; }}
                .button {{ display: inline-block; background: #1e40af; color: white; padding: 14px 28px; text-decoration: none; border-radius: 8px; font-weight: 600; margin: 20px 0; }}
                table.details td {{ padding: 4px 12px 4px 0; }}
                .footer {{ text-align: center; margin-top: 30px; font-size: 12px; color: #6b7280; }}
            </style>
        </head>
        <body>
            <div class="container">
                <div class="header">
                    <h1>{heading}</h1>
                </div>
                <div class="content">
                    {body}
                </div>
                <div class="footer">
                    <p>&copy; {datetime.utcnow().year} {self.from_name}. All rights reserved.</p>
                </div>
            </div>
        </body>
        </html>
        """

    @staticmethod
    def _details_table(rows: Dict[str, Any]) -> str:
        cells = "".join(f"<tr><td><b>{label}</b></td><td>{value}</td></tr>" for label, value in rows.items())
        return f'<table class="details">{cells}</table>'

    async def send_registration_confirmation(self, to_email: str, full_name: str, registration_id: str) -> bool:
        subject = "Registration Received - UniTrack"
        details = self._details_table({"Registration ID": registration_id, "Status": "Pending"})
        body = f"""
            <p>Dear {full_name},</p>
            <p>Thank you for registering. Your application has been received and is pending approval.</p>
            {details}
            <p>You will receive another email once the administration has reviewed your application.</p>
        """
        text = (
            f"Dear {full_name},\n\nYour registration {registration_id} has been received "
            "and is pending approval.\n\n- UniTrack"
        )
        return await self.send_email(to_email, subject, self._layout("Registration Received", body), text)

    async def send_approval(self, to_email: str, full_name: str, registration_id: str) -> bool:
        subject = "Registration Approved - UniTrack"
        login_link = f"{self.frontend_url}/login"
        body = f"""
            <p>Dear {full_name},</p>
            <p>Congratulations! Your registration <b>{registration_id}</b> has been approved.
            You can now sign in with the email and password you registered with.</p>
            <p style="text-align: center;"><a href="{login_link}" class="button">Sign in</a></p>
        """
        text = f"Dear {full_name},\n\nYour registration {registration_id} has been approved.\nSign in at {login_link}\n\n- UniTrack"
        return await self.send_email(to_email, subject, self._layout("Welcome Aboard!", body), text)

    async def send_rejection(self, to_email: str, full_name: str, reason: Optional[str] = None) -> bool:
        subject = "Registration Update - UniTrack"
        reason_html = f"<p><b>Reason:</b> {reason}</p>" if reason else ""
        body = f"""
            <p>Dear {full_name},</p>
            <p>We regret to inform you that your registration could not be approved.</p>
            {reason_html}
            <p>Please contact the administration office for further details.</p>
        """
        text = f"Dear {full_name},\n\nYour registration could not be approved." + (f"\nReason: {reason}" if reason else "")
        return await self.send_email(to_email, subject, self._layout("Registration Update", body), text)

    async def send_fee_receipt(self, to_email: str, full_name: str, receipt: Dict[str, Any]) -> bool:
        """receipt: receipt_number, transaction_id, amount, payment_mode, payment_date, semester, year, pending_amount"""
        subject = f"Payment Receipt {receipt['receipt_number']} - UniTrack"
        details = self._details_table({
            "Receipt Number": receipt["receipt_number"],
            "Transaction ID": receipt["transaction_id"],
            "Amount Paid": f"{settings.PAYMENT_CURRENCY} {receipt['amount']}",
            "Payment Mode": receipt["payment_mode"],
            "Date": receipt["payment_date"],
            "Semester": f"{receipt['semester']} ({receipt['year']})",
            "Balance Pending": f"{settings.PAYMENT_CURRENCY} {receipt['pending_amount']}",
        })
        body = f"""
            <p>Dear {full_name},</p>
            <p>We have received your fee payment. Details are below.</p>
            {details}
        """
        text = (
            f"Dear {full_name},\n\nPayment received.\nReceipt: {receipt['receipt_number']}\n"
            f"Amount: {receipt['amount']}\nPending: {receipt['pending_amount']}\n\n- UniTrack"
        )
        return await self.send_email(to_email, subject, self._layout("Payment Successful", body), text)

    async def send_result_notification(self, to_email: str, full_name: str, result: Dict[str, Any]) -> bool:
        """result: subject_name, subject_code, exam_type, total_marks, max_marks, grade, status, semester"""
        subject = f"Result Published: {result['subject_name']} - UniTrack"
        details = self._details_table({
            "Exam": result["exam_type"],
            "Semester": result["semester"],
            "Marks": f"{result['total_marks']} / {result['max_marks']}",
            "Grade": result.get("grade") or "-",
            "Status": result["status"],
        })
        body = f"""
            <p>Dear {full_name},</p>
            <p>Your result for <b>{result['subject_name']} ({result['subject_code']})</b> has been published.</p>
            {details}
            <p style="text-align: center;"><a href="{self.frontend_url}/results" class="button">View Results</a></p>
        """
        text = (
            f"Dear {full_name},\n\nResult for {result['subject_name']}: "
            f"{result['total_marks']}/{result['max_marks']} ({result['status']})\n\n- UniTrack"
        )
        return await self.send_email(to_email, subject, self._layout("Result Published", body), text)

    async def send_password_reset(self, to_email: str, full_name: str, reset_token: str) -> bool:
        reset_link = f"{self.frontend_url}/reset-password/{reset_token}"
        subject = "Reset your password - UniTrack"
        body = f"""
            <p>Dear {full_name},</p>
            <p>We received a request to reset your password. Click the button below to choose a new one.</p>
            <p style="text-align: center;"><a href="{reset_link}" class="button">Reset Password</a></p>
            <p style="font-size: 14px; color: #6b7280;">This link will expire in
            {settings.PASSWORD_RESET_EXPIRE_MINUTES} minutes. If you didn't request a reset, ignore this email.</p>
        """
        text = f"Dear {full_name},\n\nReset your password: {reset_link}\n\n- UniTrack"
        return await self.send_email(to_email, subject, self._layout("Password Reset", body), text)
