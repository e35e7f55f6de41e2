"""
Pipeline configuration loaded from the environment.
"""

import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, field_validator

INVALID_POLICIES = ('save', 'discard')


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ('true', '1', 'yes', 'y')


class PipelineConfig(BaseModel):
    """Explicit settings for the mail source, order sink and worker loop."""

    imap_server: Optional[str] = None
    imap_port: int = 993
    imap_username: Optional[str] = None
    imap_password: Optional[str] = None
    imap_use_ssl: bool = True
    imap_verify_tls: bool = True
    inbox: str = 'INBOX'
    processed_folder: Optional[str] = 'Processed'

    polling_interval: int = 60

    attachment_directory: str = '/tmp'
    save_raw_attachments: bool = True
    invalid_attachment_policy: str = 'save'
    unique_output_names: bool = False

    log_level: str = 'INFO'
    log_format: str = 'json'
    log_file: Optional[str] = None

    @field_validator('invalid_attachment_policy')
    @classmethod
    def validate_invalid_policy(cls, v):
        v = v.strip().lower()
        if v not in INVALID_POLICIES:
            raise ValueError(f"invalid_attachment_policy must be one of {INVALID_POLICIES}")
        return v

    @field_validator('polling_interval')
    @classmethod
    def validate_polling_interval(cls, v):
        if v <= 0:
            raise ValueError('Polling interval must be positive')
        return v

    @field_validator('processed_folder', 'log_file')
    @classmethod
    def blank_to_none(cls, v):
        if v is not None and not v.strip():
            return None
        return v

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "PipelineConfig":
        """Build a configuration from environment variables (and a .env file)."""
        load_dotenv(env_file)

        return cls(
            imap_server=os.getenv('IMAP_SERVER'),
            imap_port=int(os.getenv('IMAP_PORT', '993')),
            imap_username=os.getenv('IMAP_USERNAME'),
            imap_password=os.getenv('IMAP_PASSWORD'),
            imap_use_ssl=_env_flag('IMAP_USE_SSL', 'true'),
            imap_verify_tls=_env_flag('IMAP_VERIFY_TLS', 'true'),
            inbox=os.getenv('IMAP_INBOX', 'INBOX'),
            processed_folder=os.getenv('IMAP_PROCESSED_FOLDER', 'Processed'),
            polling_interval=int(os.getenv('INGESTION_INTERVAL_SECONDS', '60')),
            attachment_directory=os.getenv('ATTACHMENT_DIRECTORY') or '/tmp',
            save_raw_attachments=_env_flag('SAVE_RAW_ATTACHMENTS', 'true'),
            invalid_attachment_policy=os.getenv('INVALID_ATTACHMENT_POLICY', 'save'),
            unique_output_names=_env_flag('UNIQUE_OUTPUT_NAMES', 'false'),
            log_level=os.getenv('LOG_LEVEL', 'INFO'),
            log_format=os.getenv('LOG_FORMAT', 'json'),
            log_file=os.getenv('LOG_FILE'),
        )

    def require_mail_settings(self) -> None:
        """Fail fast when the mailbox cannot be reached with this configuration."""
        if not all([self.imap_server, self.imap_username, self.imap_password]):
            raise ValueError("IMAP_SERVER, IMAP_USERNAME, and IMAP_PASSWORD are required")
