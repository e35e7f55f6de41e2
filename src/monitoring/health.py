"""
Health checks for the mailbox and the order output directory.
"""

import logging
import tempfile
from pathlib import Path
from typing import Dict, Any
from datetime import datetime

from src.config.settings import PipelineConfig
from src.ingestion.imap_client import IMAPClient

logger = logging.getLogger(__name__)


class HealthChecker:
    """Provides health checks for system components."""

    def __init__(self, config: PipelineConfig):
        self.config = config

    def check_imap_health(self) -> Dict[str, Any]:
        """Check IMAP server connectivity."""
        start_time = datetime.now()

        try:
            with IMAPClient(self.config):
                return {
                    'status': 'healthy',
                    'response_time_ms': int((datetime.now() - start_time).total_seconds() * 1000),
                    'server': self.config.imap_server,
                    'inbox_accessible': True,
                    'timestamp': datetime.now().isoformat()
                }

        except Exception as e:
            logger.error(f"IMAP health check failed: {e}")
            return {
                'status': 'unhealthy',
                'error': str(e),
                'response_time_ms': int((datetime.now() - start_time).total_seconds() * 1000),
                'timestamp': datetime.now().isoformat()
            }

    def check_output_health(self) -> Dict[str, Any]:
        """Check that the attachment directory exists (or can be created) and is writable."""
        directory = Path(self.config.attachment_directory)

        try:
            directory.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(dir=directory):
                pass

            return {
                'status': 'healthy',
                'directory': str(directory),
                'timestamp': datetime.now().isoformat()
            }

        except OSError as e:
            logger.error(f"Output directory health check failed: {e}")
            return {
                'status': 'unhealthy',
                'directory': str(directory),
                'error': str(e),
                'timestamp': datetime.now().isoformat()
            }

    def comprehensive_health_check(self) -> Dict[str, Any]:
        """Perform comprehensive health check of all components."""
        start_time = datetime.now()

        imap_health = self.check_imap_health()
        output_health = self.check_output_health()

        overall_healthy = (
            imap_health['status'] == 'healthy' and
            output_health['status'] == 'healthy'
        )

        result = {
            'overall_status': 'healthy' if overall_healthy else 'unhealthy',
            'response_time_ms': int((datetime.now() - start_time).total_seconds() * 1000),
            'timestamp': datetime.now().isoformat(),
            'components': {
                'imap': imap_health,
                'output': output_health
            }
        }

        logger.info(
            f"Health check - IMAP: {imap_health['status']}, "
            f"Output: {output_health['status']}, Overall: {result['overall_status']}"
        )
        return result
