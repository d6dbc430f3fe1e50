# Overview: Service-layer operations for reporting; parses date windows and reads summaries.

from __future__ import annotations

from datetime import date

from ..errors import ValidationError
from ..records import ReportSummary
from ..storage.base import ReportReader
from ..time_utils import parse_iso_date


def _parse_date(value: str | date | None, label: str) -> date:
    if isinstance(value, date):
        return value
    try:
        parsed = parse_iso_date(value)
    except ValueError:
        raise ValidationError(f"{label} must be a date in YYYY-MM-DD format") from None
    if parsed is None:
        raise ValidationError(f"{label} is required")
    return parsed


class ReportAggregator:
    """
    Read-only sales summaries.

    Windows are inclusive calendar dates on the transaction's created_at.
    Reads never take checkout locks, so a summary reflects whatever was
    committed when the query ran.
    """

    def __init__(self, reader: ReportReader):
        self.reader = reader

    def summary(self, start_date: str | date | None, end_date: str | date | None) -> ReportSummary:
        start = _parse_date(start_date, "start_date")
        end = _parse_date(end_date, "end_date")
        if start > end:
            raise ValidationError("start_date must be on or before end_date")
        return self.reader.summary(start, end)

    def today(self) -> ReportSummary:
        return self.reader.today_summary()
