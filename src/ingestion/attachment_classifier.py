"""
Decides which mail attachments are CSV purchase-order payloads.
"""

import mimetypes
from typing import Optional

from pydantic import BaseModel

from src.ingestion.errors import UNSUPPORTED_ATTACHMENT, UnsupportedAttachment

ACCEPTED_EXTENSION = 'csv'

# Built-in table only, so the answer does not depend on the host's mime.types.
_MIME_TYPES = mimetypes.MimeTypes()


class ClassificationDecision(BaseModel):
    """Outcome of classifying one attachment."""

    file_name: str
    content_type: str
    extension: Optional[str] = None
    accepted: bool
    error_kind: Optional[str] = None

    def raise_for_rejection(self) -> None:
        if not self.accepted:
            raise UnsupportedAttachment(
                f"Not a CSV file: {self.file_name} ({self.content_type})",
                file_name=self.file_name
            )


def extension_for_content_type(content_type: str) -> Optional[str]:
    """Map a MIME type to its file extension, without the leading dot."""
    if not content_type:
        return None

    mime_type = content_type.split(';', 1)[0].strip().lower()
    extension = _MIME_TYPES.guess_extension(mime_type, strict=False)

    if not extension:
        return None
    return extension.lstrip('.')


def classify_attachment(file_name: str, content_type: str) -> ClassificationDecision:
    """Accept an attachment iff its content type maps to the csv extension.

    The file name is carried through for reporting only; a ``.csv`` suffix
    on a non-CSV content type is still rejected.
    """
    extension = extension_for_content_type(content_type)
    accepted = extension == ACCEPTED_EXTENSION

    return ClassificationDecision(
        file_name=file_name,
        content_type=content_type,
        extension=extension,
        accepted=accepted,
        error_kind=None if accepted else UNSUPPORTED_ATTACHMENT
    )
