"""
File-system sink for consolidated purchase orders and rejected attachments.
"""

import logging
import uuid
from pathlib import Path
from typing import Optional, Sequence

from src.config.settings import PipelineConfig
from src.models.orders import OrderRecord, orders_to_json

logger = logging.getLogger(__name__)

JSON_SUBDIR = 'json'
INVALID_SUBDIR = 'invalid'


class JsonFileSink:
    """Writes CSVs to the attachment directory, JSON to ``json/`` and rejects to ``invalid/``."""

    def __init__(self, config: PipelineConfig):
        self.config = config
        self.root = Path(config.attachment_directory)

    def _output_name(self, file_name: str) -> Path:
        """Reduce a mail-supplied name to a safe base name, optionally made unique."""
        base = Path(file_name.replace('\\', '/')).name
        if base in ('', '.', '..'):
            base = 'attachment'

        path = Path(base)
        if self.config.unique_output_names:
            path = path.with_name(f"{path.stem}-{uuid.uuid4().hex}{path.suffix}")
        return path

    def _write(self, path: Path, content: bytes) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        logger.info(f"File saved at {path}")
        return path

    def save_orders(
        self,
        file_name: str,
        orders: Sequence[OrderRecord],
        raw_content: Optional[bytes] = None
    ) -> Path:
        """Persist consolidated orders as JSON, plus the source CSV if configured."""
        name = self._output_name(file_name)
        json_path = self._write(
            self.root / JSON_SUBDIR / name.with_suffix('.json'),
            orders_to_json(orders).encode('utf-8')
        )

        if self.config.save_raw_attachments and raw_content is not None:
            try:
                self._write(self.root / name, raw_content)
            except OSError:
                json_path.unlink(missing_ok=True)
                raise

        return json_path

    def save_rejected(self, file_name: str, content: bytes) -> Optional[Path]:
        """Keep a rejected attachment under ``invalid/`` unless the policy discards it."""
        if self.config.invalid_attachment_policy == 'discard':
            logger.info(f"Discarded rejected attachment {file_name}")
            return None

        return self._write(self.root / INVALID_SUBDIR / self._output_name(file_name), content)
