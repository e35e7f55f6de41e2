"""
Purchase-Order Mail Ingestion Pipeline

Watches an inbound mailbox for CSV purchase-order attachments, converts
them into structured purchase orders, consolidates repeated PO numbers
and persists the result as JSON.
"""

__version__ = "0.1.0"
