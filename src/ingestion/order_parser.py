"""
CSV parser turning purchase-order exports into OrderRecord objects.
"""

import csv
import logging
from io import StringIO
from typing import Any, Dict, List, Optional, Sequence

from src.ingestion.errors import ENCODING_ERROR, ROW_SHAPE_MISMATCH, ParseError
from src.models.orders import HEADER_MAP, OrderRecord

logger = logging.getLogger(__name__)

PATH_SEPARATOR = '.'


def expand_path(target: Dict[str, Any], path: str, value: Any) -> None:
    """Set ``value`` at a dotted ``path`` inside ``target``.

    Numeric segments address list positions, so ``items.0.model`` produces
    ``{'items': [{'model': value}]}``.
    """
    segments = path.split(PATH_SEPARATOR)
    node: Any = target

    for position, segment in enumerate(segments):
        is_last = position == len(segments) - 1
        next_is_index = not is_last and segments[position + 1].isdigit()

        if isinstance(node, list):
            index = int(segment)
            while len(node) <= index:
                node.append(None)
            if is_last:
                node[index] = value
            else:
                if node[index] is None:
                    node[index] = [] if next_is_index else {}
                node = node[index]
        else:
            if is_last:
                node[segment] = value
            else:
                if segment not in node:
                    node[segment] = [] if next_is_index else {}
                node = node[segment]


def build_nested_row(values: Sequence[str], header_map: Sequence[str]) -> Dict[str, Any]:
    """Zip one CSV row with the header map into a nested dictionary."""
    nested: Dict[str, Any] = {}
    for path, value in zip(header_map, values):
        expand_path(nested, path, value)
    return nested


class OrderParser:
    """Parses fixed-layout purchase-order CSV payloads."""

    def __init__(self, header_map: Sequence[str] = HEADER_MAP):
        if not header_map:
            raise ValueError("Header map cannot be empty")
        self.header_map = tuple(header_map)

    def decode(self, csv_content: bytes, filename: Optional[str] = None) -> str:
        """Decode the payload as UTF-8, dropping a byte-order mark if present."""
        try:
            return csv_content.decode('utf-8-sig')
        except UnicodeDecodeError as e:
            raise ParseError(
                ENCODING_ERROR,
                f"CSV file is not valid UTF-8: {e}",
                file_name=filename
            ) from e

    def parse(self, csv_content: bytes, filename: Optional[str] = None) -> List[OrderRecord]:
        """Parse the payload into one OrderRecord per data row, in file order.

        The payload's own header line is discarded. Any row whose column
        count differs from the header map fails the whole payload.
        """
        csv_text = self.decode(csv_content, filename)
        csv_reader = csv.reader(StringIO(csv_text))

        orders = []
        try:
            # Header row is replaced positionally by the header map
            next(csv_reader, None)

            for row in csv_reader:
                if not row:
                    continue

                if len(row) != len(self.header_map):
                    raise ParseError(
                        ROW_SHAPE_MISMATCH,
                        f"Line {csv_reader.line_num}: expected {len(self.header_map)} columns, "
                        f"got {len(row)}",
                        line_number=csv_reader.line_num,
                        file_name=filename
                    )

                values = [cell.strip() for cell in row]
                orders.append(OrderRecord.model_validate(build_nested_row(values, self.header_map)))
        except csv.Error as e:
            # Oversized fields and unbalanced quotes leave the row unreadable
            raise ParseError(
                ROW_SHAPE_MISMATCH,
                f"Line {csv_reader.line_num}: malformed CSV record: {e}",
                line_number=csv_reader.line_num,
                file_name=filename
            ) from e

        logger.info(f"Parsed {len(orders)} order rows from {filename or 'payload'}")
        return orders


def parse_orders(
    csv_content: bytes,
    header_map: Sequence[str] = HEADER_MAP,
    filename: Optional[str] = None
) -> List[OrderRecord]:
    """Parse a CSV payload with the given header map."""
    return OrderParser(header_map).parse(csv_content, filename)
