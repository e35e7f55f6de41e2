"""
Purchase-order data model shared by the parser, consolidator and sink.
"""

import json
from typing import List, Sequence

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

# Column i of every data row maps to path i, whatever the CSV's own header says.
HEADER_MAP = (
    'poNumber',
    'items.0.quantity',
    'items.0.model',
    'items.0.description',
    'shipTo.name',
    'shipTo.company',
    'shipTo.address1',
    'shipTo.address2',
    'shipTo.city',
    'shipTo.stateCode',
    'shipTo.zipCode',
    'shipTo.shippingMethodCode',
    'items.0.cost',
    'orderDate',
    'shipTo.phone',
)


class _OrderModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class Attachment(BaseModel):
    """A decoded mail attachment. Only these three fields are read downstream."""

    file_name: str
    content_type: str
    content: bytes = b''


class LineItem(_OrderModel):
    quantity: str = ''
    model: str = ''
    description: str = ''
    cost: str = ''


class ShipTo(_OrderModel):
    name: str = ''
    company: str = ''
    address1: str = ''
    address2: str = ''
    city: str = ''
    state_code: str = ''
    zip_code: str = ''
    shipping_method_code: str = ''
    phone: str = ''


class OrderRecord(_OrderModel):
    """One purchase order; ``po_number`` is its identity."""

    po_number: str
    order_date: str = ''
    ship_to: ShipTo = ShipTo()
    items: List[LineItem] = []

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True)


def orders_to_json(orders: Sequence[OrderRecord], indent: int = 2) -> str:
    """Serialize orders to the nested camelCase JSON shape."""
    return json.dumps([order.to_dict() for order in orders], indent=indent)
