"""
IMAP client for collecting purchase-order mail and its attachments.
"""

import email
import imaplib
import logging
import ssl
from email.header import decode_header
from typing import List, Optional

from pydantic import BaseModel

from src.config.settings import PipelineConfig
from src.models.orders import Attachment

logger = logging.getLogger(__name__)


class MailMessage(BaseModel):
    """A fetched message reduced to what the pipeline needs."""

    uid: bytes
    message_id: str = ''
    from_email: str = ''
    subject: str = ''
    attachments: List[Attachment] = []


def decode_mime_header(header: Optional[str]) -> str:
    """Decode an RFC 2047 header to text."""
    if not header:
        return ""

    decoded_parts = decode_header(header)
    decoded_string = ""

    for part, encoding in decoded_parts:
        if isinstance(part, bytes):
            if encoding:
                try:
                    decoded_string += part.decode(encoding)
                except (UnicodeDecodeError, LookupError):
                    decoded_string += part.decode('utf-8', errors='ignore')
            else:
                decoded_string += part.decode('utf-8', errors='ignore')
        else:
            decoded_string += part

    return decoded_string


def extract_message(uid: bytes, raw_email: bytes) -> MailMessage:
    """Parse raw RFC 822 bytes and collect every attachment part.

    No filtering happens here; deciding which attachments are CSV is the
    classifier's job.
    """
    email_message = email.message_from_bytes(raw_email)

    attachments = []
    for part in email_message.walk():
        if part.get_content_disposition() != 'attachment':
            continue

        filename = decode_mime_header(part.get_filename()) or 'attachment.bin'
        content = part.get_payload(decode=True) or b''
        attachments.append(Attachment(
            file_name=filename,
            content_type=part.get_content_type(),
            content=content
        ))

    return MailMessage(
        uid=uid,
        message_id=email_message.get('Message-ID', ''),
        from_email=decode_mime_header(email_message.get('From', '')),
        subject=decode_mime_header(email_message.get('Subject', '')),
        attachments=attachments
    )


class IMAPClient:
    """IMAP client that fetches unseen messages from the watched inbox."""

    def __init__(self, config: PipelineConfig):
        config.require_mail_settings()
        self.config = config
        self.connection: Optional[imaplib.IMAP4] = None

    def connect(self) -> None:
        """Connect to the IMAP server."""
        try:
            if self.config.imap_use_ssl:
                context = ssl.create_default_context()
                if not self.config.imap_verify_tls:
                    context.check_hostname = False
                    context.verify_mode = ssl.CERT_NONE
                self.connection = imaplib.IMAP4_SSL(
                    self.config.imap_server, self.config.imap_port, ssl_context=context
                )
            else:
                self.connection = imaplib.IMAP4(self.config.imap_server, self.config.imap_port)

            self.connection.login(self.config.imap_username, self.config.imap_password)
            logger.info(f"Connected to IMAP server: {self.config.imap_server}")

        except Exception as e:
            logger.error(f"Failed to connect to IMAP server: {e}")
            raise

    def disconnect(self) -> None:
        """Disconnect from the IMAP server."""
        if self.connection:
            try:
                if self.connection.state == 'SELECTED':
                    self.connection.close()
                self.connection.logout()
                logger.info("Disconnected from IMAP server")
            except Exception as e:
                logger.error(f"Error disconnecting from IMAP server: {e}")
            finally:
                self.connection = None

    def ensure_processed_folder(self) -> None:
        """Create the processed folder if moving messages is configured."""
        if not self.connection:
            raise RuntimeError("Not connected to IMAP server")

        folder = self.config.processed_folder
        if not folder:
            return

        status, _ = self.connection.select(f'"{folder}"')
        if status != 'OK':
            status, _ = self.connection.create(f'"{folder}"')
            if status == 'OK':
                logger.info(f"Created folder: {folder}")
            else:
                logger.error(f"Failed to create folder {folder}")

    def select_inbox(self) -> None:
        if not self.connection:
            raise RuntimeError("Not connected to IMAP server")

        status, _ = self.connection.select(self.config.inbox)
        if status != 'OK':
            raise RuntimeError(f"Failed to select mailbox {self.config.inbox}")

    def search_unseen(self) -> List[bytes]:
        """Return the UIDs of unseen messages in the inbox."""
        self.select_inbox()

        status, data = self.connection.uid('SEARCH', None, 'UNSEEN')
        if status != 'OK':
            raise RuntimeError("Failed to search for unseen emails")

        uids = data[0].split() if data and data[0] else []
        logger.info(f"Found {len(uids)} unseen emails")
        return uids

    def fetch_message(self, uid: bytes) -> MailMessage:
        """Download one message and its attachments."""
        if not self.connection:
            raise RuntimeError("Not connected to IMAP server")

        status, msg_data = self.connection.uid('FETCH', uid, '(RFC822)')
        if status != 'OK' or not msg_data or not isinstance(msg_data[0], tuple):
            raise RuntimeError(f"Failed to fetch email {uid}")

        message = extract_message(uid, msg_data[0][1])
        logger.info(f"Downloaded {len(message.attachments)} attachments from email {uid}")
        return message

    def fetch_unseen_messages(self) -> List[MailMessage]:
        """Fetch every unseen message in the inbox."""
        return [self.fetch_message(uid) for uid in self.search_unseen()]

    def mark_processed(self, uid: bytes, move: bool = True) -> None:
        """Mark a message read and, if asked, move it to the processed folder."""
        if not self.connection:
            raise RuntimeError("Not connected to IMAP server")

        self.connection.uid('STORE', uid, '+FLAGS', '(\\Seen)')

        folder = self.config.processed_folder
        if not move or not folder:
            logger.info(f"Marked email {uid} as read")
            return

        status, _ = self.connection.uid('COPY', uid, f'"{folder}"')
        if status != 'OK':
            raise RuntimeError(f"Failed to copy email {uid} to {folder}")

        self.connection.uid('STORE', uid, '+FLAGS', '(\\Deleted)')
        self.connection.expunge()
        logger.info(f"Moved email {uid} to {folder}")

    def __enter__(self):
        """Context manager entry."""
        self.connect()
        self.ensure_processed_folder()
        self.select_inbox()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.disconnect()
