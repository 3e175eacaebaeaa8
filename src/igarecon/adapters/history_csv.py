"""Audit or ticketing events read from CSV and attached to record histories."""

from __future__ import annotations

import csv
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

from igarecon.adapters.identity_roster import cell_date, cell_text
from igarecon.domain.errors import ConnectorError
from igarecon.domain.model import HistoryRecord

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path


log = getLogger(__name__)


class HistoryColumns(BaseModel):
    """Header name for each event field; ``None`` leaves a field empty."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    record_id: str = "ID"
    date: str = "Date"
    event_name: str = "Event"
    source: str | None = None
    link_key: str | None = None
    initiator: str | None = None
    state: str | None = None
    description: str | None = None

    def required(self) -> list[str]:
        names = [
            self.record_id,
            self.date,
            self.event_name,
            self.source,
            self.link_key,
            self.initiator,
            self.state,
            self.description,
        ]
        return [name for name in names if name is not None]


@dataclass(frozen=True, slots=True, kw_only=True)
class HistoryCsvConnector:
    path: Path
    columns: HistoryColumns = field(default_factory=HistoryColumns)
    # Used when no source column is mapped or a row leaves it blank
    source: str = ""
    delimiter: str = ","

    def read_history(self) -> list[tuple[str, HistoryRecord]]:
        """Return ``(record id, event)`` pairs in file order.

        Rows without a record id or a readable date are skipped.
        """

        try:
            with self.path.open(encoding="utf-8-sig", newline="") as handle:
                reader = csv.DictReader(handle, delimiter=self.delimiter)
                rows = [
                    {key.strip(): value for key, value in row.items() if key is not None}
                    for row in reader
                ]
                header = {name.strip() for name in reader.fieldnames or ()}
        except (OSError, UnicodeDecodeError, csv.Error) as exc:
            raise ConnectorError(f"Failed to read history: {self.path}") from exc

        missing = [name for name in self.columns.required() if name not in header]
        if missing:
            raise ConnectorError(
                f"Missing history column(s) in {self.path}: {', '.join(missing)}"
            )

        events: list[tuple[str, HistoryRecord]] = []
        skipped = 0
        for row in rows:
            event = self._to_event(row)
            if event is None:
                skipped += 1
                continue
            events.append(event)
        if skipped:
            log.warning("Skipped %s history rows without an id or date in %s", skipped, self.path)
        log.info("Read %s history events from %s", len(events), self.path)
        return events

    def _text(self, row: Mapping[str, object], column: str | None) -> str:
        return cell_text(row.get(column)) if column is not None else ""

    def _to_event(self, row: Mapping[str, object]) -> tuple[str, HistoryRecord] | None:
        columns = self.columns
        record_id = self._text(row, columns.record_id)
        event_date = cell_date(row.get(columns.date))
        if not record_id or event_date is None:
            return None
        return record_id, HistoryRecord(
            date=event_date,
            source=self._text(row, columns.source) or self.source,
            event_name=self._text(row, columns.event_name),
            link_key=self._text(row, columns.link_key),
            initiator=self._text(row, columns.initiator),
            state=self._text(row, columns.state),
            description=self._text(row, columns.description),
        )


__all__ = ["HistoryColumns", "HistoryCsvConnector"]
