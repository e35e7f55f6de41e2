"""
Email sender for simulating purchase-order CSV delivery.
"""

import os
import smtplib
import argparse
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.mime.base import MIMEBase
from email import encoders
from pathlib import Path
from typing import List, Optional, Tuple
import logging
from dotenv import load_dotenv

logger = logging.getLogger(__name__)


def build_message(
    sender: str,
    recipient: str,
    subject: str,
    attachments: List[Tuple[str, str, bytes]],
    body: str = "Please process the attached purchase orders."
) -> MIMEMultipart:
    """Build a multipart message; each attachment is (file name, MIME type, bytes)."""
    msg = MIMEMultipart()
    msg['From'] = sender
    msg['To'] = recipient
    msg['Subject'] = subject
    msg.attach(MIMEText(body, 'plain'))

    for file_name, content_type, content in attachments:
        maintype, _, subtype = content_type.partition('/')
        part = MIMEBase(maintype, subtype or 'octet-stream')
        part.set_payload(content)
        encoders.encode_base64(part)
        part.add_header('Content-Disposition', 'attachment', filename=file_name)
        msg.attach(part)

    return msg


class EmailSender:
    """Sends emails with CSV attachments for testing the ingestion pipeline."""

    def __init__(self):
        load_dotenv()

        self.smtp_server = os.getenv('SMTP_SERVER', 'smtp.gmail.com')
        self.smtp_port = int(os.getenv('SMTP_PORT', '587'))
        self.smtp_username = os.getenv('SMTP_USERNAME')
        self.smtp_password = os.getenv('SMTP_PASSWORD')
        self.smtp_use_tls = os.getenv('SMTP_USE_TLS', 'true').lower() == 'true'

        if not all([self.smtp_username, self.smtp_password]):
            raise ValueError("SMTP_USERNAME and SMTP_PASSWORD environment variables are required")

    def send_csv_email(
        self,
        csv_file_path: str,
        recipient_email: str,
        subject: Optional[str] = None,
        sender_name: Optional[str] = None
    ) -> None:
        """Send an email with a text/csv attachment."""
        csv_path = Path(csv_file_path)

        if not csv_path.exists():
            raise FileNotFoundError(f"CSV file not found: {csv_path}")

        subject = subject or f"Purchase Orders - {csv_path.stem}"
        sender_name = sender_name or "Purchasing"

        msg = build_message(
            f"{sender_name} <{self.smtp_username}>",
            recipient_email,
            subject,
            [(csv_path.name, 'text/csv', csv_path.read_bytes())]
        )

        try:
            with smtplib.SMTP(self.smtp_server, self.smtp_port) as server:
                if self.smtp_use_tls:
                    server.starttls()

                server.login(self.smtp_username, self.smtp_password)
                server.send_message(msg)

            logger.info(f"Email sent successfully to {recipient_email}")
            print(f"✅ Email sent to {recipient_email} with attachment {csv_path.name}")

        except Exception as e:
            logger.error(f"Failed to send email: {e}")
            raise


def main():
    """Main entry point for email sending."""
    parser = argparse.ArgumentParser(description='Send a purchase-order CSV via email for testing')
    parser.add_argument('--file', '-f', required=True, help='CSV file to send')
    parser.add_argument('--recipient', '-r', required=True, help='Recipient email address')
    parser.add_argument('--subject', '-s', help='Email subject')

    args = parser.parse_args()

    try:
        sender = EmailSender()
        sender.send_csv_email(args.file, args.recipient, args.subject)
    except Exception as e:
        logger.error(f"Email sending failed: {e}")
        print(f"❌ Email sending failed: {e}")
        exit(1)


if __name__ == "__main__":
    main()
