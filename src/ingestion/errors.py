"""
Error kinds surfaced by the ingestion core.
"""

from typing import Optional

UNSUPPORTED_ATTACHMENT = 'UnsupportedAttachment'
ROW_SHAPE_MISMATCH = 'RowShapeMismatch'
ENCODING_ERROR = 'EncodingError'
SINK_ERROR = 'SinkError'


class IngestionError(Exception):
    """Base class for errors tied to a single attachment."""

    kind = 'IngestionError'

    def __init__(self, message: str, file_name: Optional[str] = None):
        super().__init__(message)
        self.file_name = file_name


class UnsupportedAttachment(IngestionError):
    """Attachment content type does not map to a CSV extension."""

    kind = UNSUPPORTED_ATTACHMENT


class ParseError(IngestionError):
    """CSV payload could not be turned into purchase orders."""

    def __init__(
        self,
        kind: str,
        message: str,
        line_number: Optional[int] = None,
        file_name: Optional[str] = None
    ):
        if kind not in (ROW_SHAPE_MISMATCH, ENCODING_ERROR):
            raise ValueError(f"Unknown parse error kind: {kind}")
        super().__init__(message, file_name)
        self.kind = kind
        self.line_number = line_number
