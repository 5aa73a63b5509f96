"""CSV import domain service."""

import csv
import logging
from typing import Any, Iterator, Optional
from pathlib import Path

from propfin.database.base import Database
from propfin.domain.errors import ValidationError
from propfin.domain.ingest import (
    SignConvention,
    normalize_monthly_figures,
    normalize_transaction,
)
from propfin.utils.amount_parser import parse_amount

logger = logging.getLogger(__name__)

# Header spellings seen in accounting and bank exports
COLUMN_ALIASES = {
    "transaction_id": "id",
    "txn_id": "id",
    "account": "category",
    "account_name": "category",
    "qb_category": "category",
    "memo": "description",
    "payee": "vendor",
    "name": "vendor",
    "transaction_type": "type",
    "property": "property_id",
    "home_type": "home_category",
    "revenue": "gross_revenue",
    "expenses": "total_expenses",
}

TRANSACTION_COLUMNS = {"id", "date", "amount", "category"}
PROPERTY_COLUMNS = {"property_id", "property_name", "month"}


def normalize_header(header: str) -> str:
    """Lower-case a CSV header, join words with underscores and resolve aliases."""
    key = "_".join(header.strip().lower().split())
    return COLUMN_ALIASES.get(key, key)


class CSVImportService:
    """Service for importing CSV files."""

    def __init__(self, db: Database):
        """Initialize CSV import service.

        Args:
            db: Database instance
        """
        self.db = db

    def _read_rows(
        self, csv_file_path: str, required: set[str]
    ) -> Iterator[tuple[int, dict[str, Optional[str]]]]:
        csv_path = Path(csv_file_path)
        if not csv_path.exists():
            raise FileNotFoundError(f"CSV file not found: {csv_file_path}")

        with open(csv_path, "r", encoding="utf-8-sig", newline="") as f:
            # Try to detect delimiter
            sample = f.read(1024)
            f.seek(0)
            try:
                delimiter = csv.Sniffer().sniff(sample, delimiters=",;\t").delimiter
            except csv.Error:
                delimiter = ","

            reader = csv.DictReader(f, delimiter=delimiter)
            if reader.fieldnames is None:
                raise ValidationError("CSV file has no columns")

            headers = {name: normalize_header(name) for name in reader.fieldnames if name}
            missing = required - set(headers.values())
            if missing:
                raise ValidationError(
                    f"CSV file missing required columns: {', '.join(sorted(missing))}"
                )

            for row_num, row in enumerate(reader, start=2):  # Start at 2 (header is row 1)
                values: dict[str, Optional[str]] = {}
                for column, key in headers.items():
                    value = row.get(column)
                    values[key] = value.strip() if value else None
                yield row_num, values

    def import_transactions(
        self,
        csv_file_path: str,
        convention: SignConvention = SignConvention.SIGNED,
    ) -> dict[str, Any]:
        """Import transactions from a CSV file.

        Amounts are sign-normalized on the way in. Rows with an id that is
        already stored are skipped.

        Args:
            csv_file_path: Path to CSV file
            convention: How the file encodes expense amounts

        Returns:
            Dict with import statistics:
            - imported: number of transactions imported
            - skipped: number of transactions skipped (duplicates)
            - errors: list of error messages

        Raises:
            ValidationError: If required columns are missing
            FileNotFoundError: If CSV file doesn't exist
        """
        imported = 0
        skipped = 0
        errors = []

        for row_num, values in self._read_rows(csv_file_path, TRANSACTION_COLUMNS):
            try:
                txn = normalize_transaction(values, convention)
            except ValidationError as e:
                errors.append(f"Row {row_num}: {e}")
                continue

            if self.db.transaction_exists(txn.id):
                skipped += 1
                continue

            self.db.create_transaction(txn)
            imported += 1

        logger.info(
            "Imported %d transactions from %s (%d skipped, %d errors)",
            imported,
            csv_file_path,
            skipped,
            len(errors),
        )
        return {
            "imported": imported,
            "skipped": skipped,
            "errors": errors,
        }

    def import_properties(self, csv_file_path: str, replace: bool = False) -> dict[str, Any]:
        """Import property-month figures from a CSV file.

        Each row carries one month for one property. Property name, home
        category and lifetime total are taken from the last row seen for the
        property.

        Args:
            csv_file_path: Path to CSV file
            replace: Overwrite months that are already stored instead of
                skipping them

        Returns:
            Dict with import statistics:
            - imported: number of property months stored
            - skipped: number of months skipped (already stored)
            - errors: list of error messages

        Raises:
            ValidationError: If required columns are missing
            FileNotFoundError: If CSV file doesn't exist
        """
        imported = 0
        skipped = 0
        errors = []
        stored_months: dict[str, set[str]] = {}

        for row_num, values in self._read_rows(csv_file_path, PROPERTY_COLUMNS):
            property_id = values.get("property_id")
            property_name = values.get("property_name")
            if not property_id:
                errors.append(f"Row {row_num}: Missing property_id")
                continue
            if not property_name:
                errors.append(f"Row {row_num}: Missing property_name")
                continue

            try:
                figures = normalize_monthly_figures(values)
                lifetime = values.get("lifetime_total")
                lifetime_total = parse_amount(lifetime) if lifetime else None
            except ValidationError as e:
                errors.append(f"Row {row_num}: {e}")
                continue

            if property_id not in stored_months:
                existing = self.db.get_property(property_id)
                stored_months[property_id] = (
                    {m.month for m in existing.monthly_data} if existing else set()
                )

            self.db.upsert_property(
                property_id=property_id,
                property_name=property_name,
                home_category=values.get("home_category") or "",
                lifetime_total=lifetime_total,
            )

            if figures.month in stored_months[property_id] and not replace:
                skipped += 1
                continue

            self.db.set_property_month(property_id, figures)
            stored_months[property_id].add(figures.month)
            imported += 1

        logger.info(
            "Imported %d property months from %s (%d skipped, %d errors)",
            imported,
            csv_file_path,
            skipped,
            len(errors),
        )
        return {
            "imported": imported,
            "skipped": skipped,
            "errors": errors,
        }
