"""
Main ingestion worker that orchestrates the purchase-order pipeline.
"""

import sys
import time
import logging
import uuid
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel

from src.config.settings import PipelineConfig
from src.ingestion.attachment_classifier import classify_attachment
from src.ingestion.errors import SINK_ERROR, ParseError
from src.ingestion.imap_client import IMAPClient, MailMessage
from src.ingestion.order_consolidator import consolidate_orders
from src.ingestion.order_parser import OrderParser
from src.ingestion.order_sink import JsonFileSink
from src.models.orders import Attachment, OrderRecord, orders_to_json
from src.monitoring.health import HealthChecker
from src.monitoring.logger_config import (
    CorrelationLogger,
    IngestionLogger,
    OperationLogger,
    get_logger,
)

logger = logging.getLogger(__name__)

ACCEPTED = 'accepted'
REJECTED = 'rejected'
FAILED = 'failed'


class AttachmentOutcome(BaseModel):
    """What happened to one attachment."""

    file_name: str
    content_type: str
    status: str
    order_count: int = 0
    error_kind: Optional[str] = None
    error_message: Optional[str] = None
    output_path: Optional[str] = None


class MessageReport(BaseModel):
    """Per-message summary returned by the worker."""

    correlation_id: str
    message_id: str = ''
    subject: str = ''
    outcomes: List[AttachmentOutcome] = []

    @property
    def accepted_count(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status == ACCEPTED)

    @property
    def rejected_count(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status == REJECTED)

    @property
    def failed_count(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status == FAILED)


def convert_payload(content: bytes, parser: OrderParser, filename: str = None) -> List[OrderRecord]:
    """Run parser then consolidator over one CSV payload."""
    return consolidate_orders(parser.parse(content, filename))


class IngestionWorker:
    """Routes mail attachments through classification, parsing and consolidation."""

    def __init__(
        self,
        config: PipelineConfig,
        mail_client: Optional[IMAPClient] = None,
        sink: Optional[JsonFileSink] = None,
        parser: Optional[OrderParser] = None
    ):
        self.config = config
        self._mail_client = mail_client
        self.sink = sink or JsonFileSink(config)
        self.parser = parser or OrderParser()

        logger.info("Ingestion worker initialized")

    @property
    def mail_client(self) -> IMAPClient:
        # Created on demand so local file conversion needs no mail settings
        if self._mail_client is None:
            self._mail_client = IMAPClient(self.config)
        return self._mail_client

    def process_attachment(
        self,
        attachment: Attachment,
        log: Optional[CorrelationLogger] = None
    ) -> AttachmentOutcome:
        """Classify, convert and persist a single attachment."""
        log = log or get_logger()
        decision = classify_attachment(attachment.file_name, attachment.content_type)
        log.debug(
            "Classified attachment",
            file_name=attachment.file_name,
            extension=decision.extension,
            accepted=decision.accepted
        )

        if not decision.accepted:
            log.warning(
                "Not a CSV file",
                file_name=attachment.file_name,
                content_type=attachment.content_type,
                error_kind=decision.error_kind
            )
            outcome = AttachmentOutcome(
                file_name=attachment.file_name,
                content_type=attachment.content_type,
                status=REJECTED,
                error_kind=decision.error_kind
            )
            try:
                saved = self.sink.save_rejected(attachment.file_name, attachment.content)
            except OSError as e:
                log.error("Failed to save rejected attachment", file_name=attachment.file_name, error=str(e))
                return outcome
            outcome.output_path = str(saved) if saved else None
            return outcome

        try:
            orders = convert_payload(attachment.content, self.parser, attachment.file_name)
        except ParseError as e:
            log.error(
                "Failed to parse CSV attachment",
                file_name=attachment.file_name,
                error_kind=e.kind,
                line_number=e.line_number,
                error=str(e)
            )
            return AttachmentOutcome(
                file_name=attachment.file_name,
                content_type=attachment.content_type,
                status=FAILED,
                error_kind=e.kind,
                error_message=str(e)
            )

        try:
            output_path = self.sink.save_orders(attachment.file_name, orders, attachment.content)
        except OSError as e:
            log.error("Failed to write orders", file_name=attachment.file_name, error=str(e))
            return AttachmentOutcome(
                file_name=attachment.file_name,
                content_type=attachment.content_type,
                status=FAILED,
                error_kind=SINK_ERROR,
                error_message=str(e)
            )

        log.info(
            "Processed CSV attachment",
            file_name=attachment.file_name,
            order_count=len(orders),
            output_path=str(output_path)
        )
        return AttachmentOutcome(
            file_name=attachment.file_name,
            content_type=attachment.content_type,
            status=ACCEPTED,
            order_count=len(orders),
            output_path=str(output_path)
        )

    def process_message(self, message: MailMessage, correlation_id: Optional[str] = None) -> MessageReport:
        """Process every attachment of one message independently."""
        correlation_id = correlation_id or str(uuid.uuid4())
        log = get_logger(correlation_id, message_id=message.message_id)

        log.info(
            "Mail received",
            from_email=message.from_email,
            subject=message.subject,
            has_attachments=bool(message.attachments)
        )

        report = MessageReport(
            correlation_id=correlation_id,
            message_id=message.message_id,
            subject=message.subject
        )

        if not message.attachments:
            log.warning("Mail did not have any attachments, not touching it")
            return report

        for attachment in message.attachments:
            report.outcomes.append(self.process_attachment(attachment, log))

        log.info(
            "Mail processed",
            accepted=report.accepted_count,
            rejected=report.rejected_count,
            failed=report.failed_count
        )
        return report

    def run_once(self) -> List[MessageReport]:
        """Run a single polling cycle over unseen mail."""
        reports = []

        with OperationLogger("ingestion_cycle", inbox=self.config.inbox):
            with self.mail_client as client:
                for uid in client.search_unseen():
                    correlation_id = str(uuid.uuid4())
                    try:
                        message = client.fetch_message(uid)
                        report = self.process_message(message, correlation_id)
                        reports.append(report)
                        client.mark_processed(uid, move=bool(report.outcomes))
                    except Exception:
                        get_logger(correlation_id, uid=uid.decode()).exception("Failed to process email")
                        # Continue with next email
                        continue

        return reports

    def run_continuous(self) -> None:
        """Run the worker continuously with polling."""
        logger.info(f"Starting continuous ingestion worker (interval: {self.config.polling_interval}s)")

        try:
            while True:
                try:
                    self.run_once()
                except Exception as e:
                    logger.error(f"Ingestion cycle failed: {e}")

                logger.info(f"Waiting {self.config.polling_interval} seconds for next cycle")
                time.sleep(self.config.polling_interval)

        except KeyboardInterrupt:
            logger.info("Ingestion worker stopped by user")

    def convert_file(self, path: str) -> List[OrderRecord]:
        """Convert a local CSV file without touching the mailbox or the sink."""
        csv_path = Path(path)
        return convert_payload(csv_path.read_bytes(), self.parser, csv_path.name)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the ingestion worker."""
    import argparse

    parser = argparse.ArgumentParser(description='Run the purchase-order ingestion worker')
    parser.add_argument('--once', action='store_true', help='Run one polling cycle and exit')
    parser.add_argument('--health-check', action='store_true', help='Perform health check')
    parser.add_argument('--file', '-f', help='Convert a local CSV file and print the JSON')
    parser.add_argument('--env-file', help='Path to a .env file')

    args = parser.parse_args(argv)

    config = PipelineConfig.from_env(args.env_file)
    IngestionLogger.setup_logging(config.log_level, config.log_format, config.log_file)

    worker = IngestionWorker(config)

    if args.file:
        try:
            orders = worker.convert_file(args.file)
        except (OSError, ParseError) as e:
            logger.error(f"Failed to convert {args.file}: {e}")
            return 1
        print(orders_to_json(orders))
        return 0

    if args.health_check:
        result = HealthChecker(config).comprehensive_health_check()
        return 0 if result['overall_status'] == 'healthy' else 1

    if args.once:
        try:
            reports = worker.run_once()
        except Exception as e:
            logger.error(f"Ingestion cycle failed: {e}")
            return 1
        logger.info(f"Ingestion cycle completed: {len(reports)} emails processed")
        return 0

    worker.run_continuous()
    return 0


if __name__ == "__main__":
    sys.exit(main())
