"""HR-style identity roster read from CSV or XLSX files."""

from __future__ import annotations

import csv
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from logging import getLogger
from typing import TYPE_CHECKING, Final
from zipfile import BadZipFile

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException
from pydantic import BaseModel, ConfigDict

from igarecon.domain.errors import IdentitySourceError
from igarecon.domain.ports import IdentityRecord

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping
    from pathlib import Path

log = getLogger(__name__)

EXCEL_EPOCH: Final[date] = date(1899, 12, 30)
XLSX_SUFFIXES: Final[frozenset[str]] = frozenset({".xlsx", ".xlsm"})

type Row = dict[str, object]


class RosterColumns(BaseModel):
    """Header name for each identity field; ``None`` leaves a field empty."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    unique_id: str = "ID"
    first_name: str | None = "FirstName"
    last_name: str | None = "LastName"
    email: str | None = "Email"
    employee_no: str | None = "EmployeeNo"
    employee_type: str | None = "EmployeeType"
    status: str | None = "Status"
    manager_key: str | None = "Manager"
    hire_date: str | None = "HireDate"
    termination_date: str | None = "TerminationDate"
    # Copied verbatim into Identity.attributes
    attributes: tuple[str, ...] = ()

    def required(self) -> list[str]:
        names = [
            self.unique_id,
            self.first_name,
            self.last_name,
            self.email,
            self.employee_no,
            self.employee_type,
            self.status,
            self.manager_key,
            self.hire_date,
            self.termination_date,
            *self.attributes,
        ]
        return [name for name in names if name is not None]


def cell_text(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value).strip()


def cell_date(value: object) -> date | None:
    """Read a date from a native cell, an Excel serial number or an ISO string."""

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, (int, float)):
        return _from_serial(value)
    text = str(value).strip()
    if not text:
        return None
    if text.isdigit():
        return _from_serial(int(text))
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        log.debug("Unparseable roster date %r", text)
        return None


def _from_serial(serial: float) -> date | None:
    try:
        return EXCEL_EPOCH + timedelta(days=int(serial))
    except (OverflowError, ValueError):
        log.debug("Roster date serial %r out of range", serial)
        return None


@dataclass(frozen=True, slots=True, kw_only=True)
class IdentityRosterConnector:
    path: Path
    columns: RosterColumns = field(default_factory=RosterColumns)
    enabled_codes: frozenset[str] = frozenset({"3"})
    disabled_codes: frozenset[str] = frozenset({"0"})
    sheet: str | None = None
    delimiter: str = ","

    def read_identities(self) -> list[IdentityRecord]:
        header, rows = self._read_rows()
        missing = [name for name in self.columns.required() if name not in header]
        if missing:
            raise IdentitySourceError(
                f"Missing roster column(s) in {self.path}: {', '.join(missing)}"
            )

        records: list[IdentityRecord] = []
        skipped = 0
        for row in rows:
            record = self._to_record(row)
            if record is None:
                skipped += 1
                continue
            records.append(record)
        if skipped:
            log.warning("Skipped %s roster rows without an identity id", skipped)
        log.info("Read %s identities from %s", len(records), self.path)
        return records

    def _enabled(self, code: str) -> bool | None:
        if code in self.enabled_codes:
            return True
        if code in self.disabled_codes:
            return False
        return None

    def _text(self, row: Row, column: str | None) -> str:
        return cell_text(row.get(column)) if column is not None else ""

    def _to_record(self, row: Row) -> IdentityRecord | None:
        columns = self.columns
        unique_id = self._text(row, columns.unique_id).upper()
        if not unique_id:
            return None
        return IdentityRecord(
            unique_id=unique_id,
            first_name=self._text(row, columns.first_name),
            last_name=self._text(row, columns.last_name),
            email=self._text(row, columns.email),
            employee_no=self._text(row, columns.employee_no),
            employee_type=self._text(row, columns.employee_type),
            enabled=self._enabled(self._text(row, columns.status)),
            manager_key=self._text(row, columns.manager_key),
            hire_date=cell_date(row.get(columns.hire_date)) if columns.hire_date else None,
            termination_date=(
                cell_date(row.get(columns.termination_date))
                if columns.termination_date
                else None
            ),
            attributes={name: self._text(row, name) for name in columns.attributes},
        )

    def _read_rows(self) -> tuple[list[str], list[Row]]:
        suffix = self.path.suffix.lower()
        if suffix == ".csv":
            return self._read_csv()
        if suffix in XLSX_SUFFIXES:
            return self._read_xlsx()
        raise IdentitySourceError(f"Unsupported roster format: {self.path}")

    def _read_csv(self) -> tuple[list[str], list[Row]]:
        try:
            with self.path.open(encoding="utf-8-sig", newline="") as handle:
                reader = csv.DictReader(handle, delimiter=self.delimiter)
                rows: list[Row] = [dict(row) for row in reader]
                header = [name.strip() for name in reader.fieldnames or ()]
        except (OSError, UnicodeDecodeError, csv.Error) as exc:
            raise IdentitySourceError(f"Failed to read roster: {self.path}") from exc
        return header, [_strip_keys(row) for row in rows]

    def _read_xlsx(self) -> tuple[list[str], list[Row]]:
        try:
            workbook = load_workbook(self.path, read_only=True, data_only=True)
        except (OSError, InvalidFileException, BadZipFile) as exc:
            raise IdentitySourceError(f"Failed to read roster: {self.path}") from exc
        try:
            if self.sheet is None:
                worksheet = workbook.active
            elif self.sheet in workbook.sheetnames:
                worksheet = workbook[self.sheet]
            else:
                raise IdentitySourceError(f"Sheet {self.sheet!r} not found in {self.path}")
            if worksheet is None:
                raise IdentitySourceError(f"No worksheet in {self.path}")
            values = iter(worksheet.iter_rows(values_only=True))
            first = next(values, None)
            header = [cell_text(cell) for cell in first or ()]
            rows = [_zip_row(header, row) for row in values]
        finally:
            workbook.close()
        return header, rows


def _strip_keys(row: Mapping[str | None, object]) -> Row:
    return {key.strip(): value for key, value in row.items() if key is not None}


def _zip_row(header: list[str], cells: Iterable[object]) -> Row:
    return {name: value for name, value in zip(header, cells, strict=False) if name}


__all__ = ["IdentityRosterConnector", "RosterColumns", "cell_date", "cell_text"]
