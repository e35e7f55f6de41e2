"""
CSV generator for simulating purchase-order exports.
"""

import csv
import random
import argparse
from datetime import date, timedelta
from io import StringIO
from pathlib import Path
from typing import List, Optional

# Header text of the exporting system; the parser replaces it positionally
EXPORT_HEADERS = [
    'PO Number', 'Qty', 'Model', 'Description', 'Ship To Name', 'Ship To Company',
    'Address 1', 'Address 2', 'City', 'State', 'Zip', 'Ship Method', 'Cost',
    'Order Date', 'Phone'
]

MODELS = [
    ("WH-100", "Wall hydrant"),
    ("VB-250", "Vacuum breaker"),
    ("BV-075", "Ball valve 3/4in"),
    ("PR-300", "Pressure regulator"),
    ("CK-050", "Check valve 1/2in"),
]

DESTINATIONS = [
    ("Dana Whitfield", "Harbor Supply", "12 Pier Rd", "", "Portland", "ME", "4101"),
    ("Luis Ortega", "Ortega Plumbing", "400 Main St", "Suite 2", "Newark", "NJ", "7102"),
    ("Kim Tran", "Tran Mechanical", "88 Elm Ave", "", "Austin", "TX", "78701"),
    ("Ada Brooks", "", "5 Hill Ct", "", "Hartford", "CT", "6103"),
]

SHIPPING_METHODS = ["UPS-GND", "UPS-2DA", "FDX-GND", "LTL"]


class PurchaseOrderCSVGenerator:
    """Generates purchase-order CSV exports for testing."""

    def __init__(self, seed: Optional[int] = None, first_po_number: int = 10000):
        self.random = random.Random(seed)
        self.po_counter = first_po_number

    def generate_order_rows(self, line_count: int, po_number: Optional[str] = None) -> List[List[str]]:
        """Generate the rows of one purchase order, one row per line item."""
        if po_number is None:
            po_number = f"PO{self.po_counter}"
            self.po_counter += 1

        name, company, address1, address2, city, state, zip_code = self.random.choice(DESTINATIONS)
        shipping_method = self.random.choice(SHIPPING_METHODS)
        order_date = (date(2024, 1, 1) + timedelta(days=self.random.randint(0, 364))).strftime('%m/%d/%Y')
        phone = f"555-{self.random.randint(100, 999)}-{self.random.randint(1000, 9999)}"

        rows = []
        for _ in range(line_count):
            model, description = self.random.choice(MODELS)
            rows.append([
                po_number,
                str(self.random.randint(1, 20)),
                model,
                description,
                name,
                company,
                address1,
                address2,
                city,
                state,
                zip_code,
                shipping_method,
                f"{self.random.uniform(5, 400):.2f}",
                order_date,
                phone,
            ])
        return rows

    def generate_rows(self, order_count: int, max_lines_per_order: int = 3) -> List[List[str]]:
        """Generate several orders; multi-line orders repeat their PO number."""
        rows = []
        for _ in range(order_count):
            rows.extend(self.generate_order_rows(self.random.randint(1, max_lines_per_order)))
        return rows

    def render_csv(self, rows: List[List[str]]) -> bytes:
        """Render rows with the export header line as UTF-8 CSV bytes."""
        buffer = StringIO()
        writer = csv.writer(buffer, lineterminator='\n')
        writer.writerow(EXPORT_HEADERS)
        writer.writerows(rows)
        return buffer.getvalue().encode('utf-8')

    def generate_csv(self, output_path: str, order_count: int = 10, max_lines_per_order: int = 3) -> None:
        """Write a CSV file with simulated purchase orders."""
        output_file = Path(output_path)
        output_file.parent.mkdir(parents=True, exist_ok=True)

        rows = self.generate_rows(order_count, max_lines_per_order)
        output_file.write_bytes(self.render_csv(rows))

        print(f"✅ Generated {order_count} purchase orders ({len(rows)} rows) in {output_path}")


def main():
    """Main entry point for CSV generation."""
    parser = argparse.ArgumentParser(description='Generate purchase-order CSV data for testing')
    parser.add_argument('--output', '-o', required=True, help='Output CSV file path')
    parser.add_argument('--count', '-c', type=int, default=10, help='Number of purchase orders to generate')
    parser.add_argument('--max-lines', type=int, default=3, help='Maximum line items per order')
    parser.add_argument('--seed', type=int, help='Random seed for reproducible output')

    args = parser.parse_args()

    generator = PurchaseOrderCSVGenerator(seed=args.seed)
    generator.generate_csv(args.output, args.count, args.max_lines)


if __name__ == "__main__":
    main()
