"""
Folds raw order rows sharing a PO number into single purchase orders.
"""

import logging
from typing import Dict, Iterable, List

from src.models.orders import OrderRecord

logger = logging.getLogger(__name__)

ZIP_CODE_LENGTH = 5


def pad_zip_code(zip_code: str, width: int = ZIP_CODE_LENGTH) -> str:
    """Restore leading zeros a spreadsheet may have stripped from a postal code."""
    return zip_code.rjust(width, '0')


def consolidate_orders(records: Iterable[OrderRecord]) -> List[OrderRecord]:
    """Merge records with equal PO numbers, keeping first-seen order.

    The first record for a PO number supplies ship-to and order date; every
    later record only contributes its items, appended in arrival order.
    Input records are left untouched: merged entries are new copies stored
    at the original accumulator position.
    """
    accumulated: List[OrderRecord] = []
    positions: Dict[str, int] = {}
    raw_count = 0

    for record in records:
        raw_count += 1
        index = positions.get(record.po_number)

        if index is not None:
            match = accumulated[index]
            accumulated[index] = match.model_copy(
                update={'items': [*match.items, *record.items]}
            )
            continue

        ship_to = record.ship_to.model_copy(
            update={'zip_code': pad_zip_code(record.ship_to.zip_code)}
        )
        positions[record.po_number] = len(accumulated)
        accumulated.append(record.model_copy(update={'ship_to': ship_to}))

    logger.debug(f"Consolidated {raw_count} order rows into {len(accumulated)} purchase orders")
    return accumulated
