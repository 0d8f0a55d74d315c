"""
CSV file format for lead import and export.

The header row is fixed and must appear in exactly this column order.
Tags travel as a single comma-joined cell. A tag that itself contains a
comma cannot round-trip; the format defines no escaping for it.
"""

import csv
import io
import logging
from typing import Iterable

from core.exceptions import CsvFormatError
from core.models import Lead

logger = logging.getLogger(__name__)

CSV_COLUMNS = (
    "fullName", "email", "phone", "city", "propertyType", "bhk",
    "purpose", "budgetMin", "budgetMax", "timeline", "source",
    "notes", "tags", "status",
)

# Offered for download as a starting point for imports
SAMPLE_CSV = ",".join(CSV_COLUMNS) + "\n" + (
    'John Doe,john@example.com,9876543210,Chandigarh,Apartment,2,Buy,5000000,7000000,'
    '0-3m,Website,"Looking for 2BHK","urgent,family",New\n'
    'Jane Smith,jane@example.com,9876543211,Mohali,Villa,3,Buy,10000000,15000000,'
    '3-6m,Referral,"Prefers corner plot","luxury,investment",Qualified\n'
)


def parse_csv(text: str) -> list[dict[str, str]]:
    """
    Read CSV text into raw rows keyed by column name.

    Cells are returned exactly as written; interpretation (empty means
    absent, tag splitting, number parsing) belongs to the CSV adapter in
    core.validation. Lines with no content are skipped.

    Raises:
        CsvFormatError: Missing or mismatched header, or malformed CSV.
    """
    # utf-8-sig exports from spreadsheets carry a BOM
    text = text.lstrip("\ufeff")
    reader = csv.reader(io.StringIO(text))

    try:
        header = next(reader, None)
        if header is None:
            raise CsvFormatError("CSV file is empty")

        header = [column.strip() for column in header]
        if tuple(header) != CSV_COLUMNS:
            raise CsvFormatError(
                "CSV header must be exactly: " + ",".join(CSV_COLUMNS)
            )

        rows = []
        for cells in reader:
            if not any(cell.strip() for cell in cells):
                continue
            # Short rows pad with empty cells; extra trailing cells are dropped
            padded = list(cells) + [""] * (len(CSV_COLUMNS) - len(cells))
            rows.append(dict(zip(CSV_COLUMNS, padded)))

    except csv.Error as e:
        raise CsvFormatError(f"Failed to parse CSV file: {e}")

    logger.info(f"Parsed {len(rows)} CSV rows")
    return rows


def lead_to_csv_row(lead: Lead) -> dict[str, str]:
    """Render one lead as CSV cells, absent values as empty strings."""
    data = lead.model_dump(mode="json", by_alias=True)

    row = {}
    for column in CSV_COLUMNS:
        value = data.get(column)
        if value is None:
            row[column] = ""
        elif column == "tags":
            row[column] = ",".join(value)
        else:
            row[column] = str(value)
    return row


def export_csv(leads: Iterable[Lead]) -> str:
    """Write leads to CSV text with the standard header."""
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=CSV_COLUMNS, lineterminator="\n")
    writer.writeheader()
    for lead in leads:
        writer.writerow(lead_to_csv_row(lead))
    return buffer.getvalue()
