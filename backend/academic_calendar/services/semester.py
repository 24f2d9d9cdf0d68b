"""Semester derivation for batches.

A batch name encodes its academic year range, e.g. '2023-2027' or
'2023-2027 A'. The academic year starts on July 1: July-December is the odd
semester of the academic year that just began, January-June is the even
semester of the academic year in progress.

Everything here is a pure function of its inputs and the date passed in;
callers that want "now" omit the date and get `timezone.localdate()`.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional, Tuple

from django.utils import timezone

logger = logging.getLogger(__name__)

ACADEMIC_YEAR_START_MONTH = 7
FIRST_SEMESTER = 1
LAST_SEMESTER = 8


@dataclass(frozen=True)
class BatchName:
    start_year: Optional[int]
    end_year: Optional[int]
    section: str = ''


@dataclass(frozen=True)
class SemesterWindow:
    semester: int
    from_date: date
    to_date: date

    def as_dict(self):
        return {
            'current_semester': self.semester,
            'semester_from_date': self.from_date.isoformat(),
            'semester_to_date': self.to_date.isoformat(),
        }


def _safe_int(v) -> Optional[int]:
    try:
        return int(str(v).strip())
    except (TypeError, ValueError):
        return None


def parse_batch_name(batch_name: str) -> Optional[BatchName]:
    """Split '<start>-<end>[ <section>]' into its parts.

    Returns None when the year range is not exactly two dash-separated parts.
    A non-numeric start or end year comes back as None inside the result.
    """
    text = str(batch_name or '').strip()
    if not text:
        return None
    year_part, _, section = text.partition(' ')
    parts = year_part.split('-')
    if len(parts) != 2:
        return None
    return BatchName(start_year=_safe_int(parts[0]), end_year=_safe_int(parts[1]), section=section.strip())


def _today(as_of: Optional[date]) -> date:
    return as_of if as_of is not None else timezone.localdate()


def clamp_semester(semester: int) -> int:
    return max(FIRST_SEMESTER, min(LAST_SEMESTER, semester))


def current_semester(batch_name: str, as_of: Optional[date] = None) -> int:
    """Return the semester (1-8) a batch is in on `as_of`.

    Malformed names fall back to semester 1.
    """
    parsed = parse_batch_name(batch_name)
    if parsed is None or parsed.start_year is None:
        logger.warning('Calendar parse fallback: batch name %r has no start year, using semester %d', batch_name, FIRST_SEMESTER)
        return FIRST_SEMESTER

    today = _today(as_of)
    offset = today.year - parsed.start_year
    if today.month < ACADEMIC_YEAR_START_MONTH:
        semester = offset * 2
    else:
        semester = offset * 2 + 1
    return clamp_semester(semester)


def _calendar_year_window(today: date) -> Tuple[date, date]:
    return date(today.year, 1, 1), date(today.year, 12, 31)


def semester_date_range(batch_name: str, semester: int, today: Optional[date] = None) -> Tuple[date, date]:
    """Return the (from, to) dates of `semester` for the batch.

    Odd semesters run July 1 - December 31 of start_year + (semester - 1) // 2;
    even semesters run January 1 - June 30 of the following calendar year.
    An unparsable start year is replaced by the current year; dates that
    cannot be built at all give the current calendar year.
    """
    now = _today(today)
    parsed = parse_batch_name(batch_name)
    start_year = parsed.start_year if parsed is not None else None
    if start_year is None:
        logger.warning('Calendar parse fallback: batch name %r has no start year, using %d', batch_name, now.year)
        start_year = now.year

    try:
        semester = int(semester)
        year_offset = (semester - 1) // 2
        if semester % 2 != 0:
            year = start_year + year_offset
            return date(year, 7, 1), date(year, 12, 31)
        year = start_year + year_offset + 1
        return date(year, 1, 1), date(year, 6, 30)
    except (TypeError, ValueError, OverflowError):
        logger.warning(
            'Calendar parse fallback: invalid semester window for batch=%r semester=%r, using calendar year %d',
            batch_name, semester, now.year,
        )
        return _calendar_year_window(now)


def semester_window(batch_name: str, as_of: Optional[date] = None) -> SemesterWindow:
    today = _today(as_of)
    semester = current_semester(batch_name, today)
    from_date, to_date = semester_date_range(batch_name, semester, today)
    return SemesterWindow(semester=semester, from_date=from_date, to_date=to_date)


def semester_snapshot(batch, today: Optional[date] = None) -> SemesterWindow:
    """Calendar fields for `batch` as of `today`.

    Operator overrides win; otherwise the window is derived from the batch name.
    """
    if batch.semester_override and batch.current_semester:
        from_date, to_date = batch.semester_from_date, batch.semester_to_date
        if from_date is None or to_date is None:
            from_date, to_date = semester_date_range(batch.full_name, batch.current_semester, today)
        return SemesterWindow(semester=batch.current_semester, from_date=from_date, to_date=to_date)
    return semester_window(batch.full_name, today)


def refresh_batch_calendar(batch, today: Optional[date] = None, commit: bool = True) -> SemesterWindow:
    """Recompute and store the calendar fields of `batch`.

    Overridden batches are left untouched. Returns the effective window.
    """
    window = semester_snapshot(batch, today)
    if batch.semester_override:
        return window

    changed = (
        batch.current_semester != window.semester
        or batch.semester_from_date != window.from_date
        or batch.semester_to_date != window.to_date
    )
    batch.current_semester = window.semester
    batch.semester_from_date = window.from_date
    batch.semester_to_date = window.to_date
    if commit and changed and batch.pk:
        batch.save(update_fields=['current_semester', 'semester_from_date', 'semester_to_date'])
        logger.debug('Refreshed calendar for batch %s: %s', batch.pk, window)
    return window


def refresh_batches(batches: Iterable, today: Optional[date] = None) -> int:
    """Refresh every batch in `batches`; return how many were not overridden."""
    count = 0
    for batch in batches:
        if batch.semester_override:
            continue
        refresh_batch_calendar(batch, today)
        count += 1
    return count
