"""
Stillbirth report aggregation.

Raw notification records arrive in two shapes: the current one with a
nested ``babies`` list, and a legacy flat shape carrying one baby's fields
directly on the record.  :func:`normalize_records` turns both into one
entry per baby; the summary tiles and the preview rows are computed from
those entries.  Nothing here touches the database or mutates its input.
"""
from __future__ import annotations

import calendar
import csv
import io
from dataclasses import dataclass
from datetime import date
from typing import Any, Iterable, Mapping, Optional, Union

UNKNOWN = 'Unknown'

MONTHS = {name.lower(): index for index, name in enumerate(calendar.month_name) if name}

PREVIEW_COLUMNS = [
    ('sex', 'Sex'),
    ('type', 'Type'),
    ('facility', 'Facility'),
    ('date', 'Date'),
    ('time', 'Time'),
    ('weight', 'Weight (g)'),
    ('motherAge', 'Mother Age'),
    ('gestationalAge', 'Gestational Age'),
    ('deliveryPlace', 'Delivery Place'),
]


@dataclass(frozen=True)
class BabyEntry:
    """One baby taken from a record's ``babies`` list."""
    record: Mapping[str, Any]
    baby: Mapping[str, Any]

    def merged(self) -> dict:
        row = {**self.record, **self.baby}
        if self.baby.get('sex'):
            row['sex'] = self.baby['sex']
        baby_type = self.baby.get('outcome') or self.baby.get('type')
        if baby_type:
            row['type'] = baby_type
        return row


@dataclass(frozen=True)
class LegacyEntry:
    """A flat record describing a single baby."""
    record: Mapping[str, Any]

    def merged(self) -> dict:
        return dict(self.record)


Entry = Union[BabyEntry, LegacyEntry]


@dataclass(frozen=True)
class DateRange:
    start_date: str
    end_date: str


def _mapping(value) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _text(value) -> str:
    if value is None or value == '':
        return ''
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _first(*values) -> str:
    """Text of the first non-empty value, else an empty string.  Booleans count as missing."""
    for value in values:
        if value and not isinstance(value, bool):
            return _text(value)
    return ''


def _positive(value) -> bool:
    if isinstance(value, bool):
        return value
    try:
        return float(value) > 0
    except (TypeError, ValueError):
        return False


def _lower(value) -> str:
    return value.lower() if isinstance(value, str) else ''


def normalize_records(records: Optional[Iterable[Mapping[str, Any]]]) -> list[Entry]:
    entries: list[Entry] = []
    for record in records or []:
        record = _mapping(record)
        babies = record.get('babies')
        if isinstance(babies, list) and babies:
            entries.extend(BabyEntry(record, _mapping(baby)) for baby in babies)
        else:
            entries.append(LegacyEntry(record))
    return entries


def empty_summary() -> dict:
    return {
        'total': 0,
        'sex': {'female': 0, 'male': 0},
        'type': {'fresh': 0, 'macerated': 0},
        'place': {'home': 0, 'facility': 0},
    }


def _summarize(entries: list[Entry]) -> dict:
    summary = empty_summary()
    summary['total'] = len(entries)
    for entry in entries:
        row = entry.merged()
        # sex buckets read the legacy numeric fields only, never the sex string
        if _positive(row.get('female')):
            summary['sex']['female'] += 1
        if _positive(row.get('male')):
            summary['sex']['male'] += 1

        kind = _lower(row.get('type'))
        outcome = _lower(row.get('outcome'))
        if 'fresh' in kind or 'fresh' in outcome:
            summary['type']['fresh'] += 1
        if 'macerated' in kind or 'macerated' in outcome:
            summary['type']['macerated'] += 1

        place = row.get('place')
        if place == 'home':
            summary['place']['home'] += 1
        if 'facility' in _lower(place) or row.get('facility'):
            summary['place']['facility'] += 1
    return summary


def process_raw_data(records: Optional[Iterable[Mapping[str, Any]]]) -> dict:
    """Summary tile counts (total, sex, type, place) for a list of raw records."""
    return _summarize(normalize_records(records))


def resolve_facility_name(record: Mapping[str, Any]) -> str:
    location = _mapping(record.get('location'))
    return (
        _first(
            record.get('facility'),
            location.get('name'),
            location.get('facilityName'),
            record.get('healthFacility'),
            record.get('facilityName'),
        )
        or UNKNOWN
    )


def _preview_row(entry: Entry) -> dict:
    record = entry.record
    mother = _mapping(record.get('mother'))
    baby = entry.baby if isinstance(entry, BabyEntry) else {}

    if isinstance(entry, BabyEntry):
        sex = _first(baby.get('sex')) or UNKNOWN
    elif _first(record.get('sex')):
        sex = _first(record['sex'])
    elif _positive(record.get('female')):
        sex = 'Female'
    elif _positive(record.get('male')):
        sex = 'Male'
    else:
        sex = UNKNOWN

    return {
        'sex': sex,
        'type': _first(baby.get('outcome'), record.get('outcome'), record.get('type')) or UNKNOWN,
        'facility': resolve_facility_name(record),
        'date': _first(record.get('dateOfNotification'), record.get('date')),
        'time': _first(baby.get('timeOfDeath'), record.get('time')),
        'weight': _first(baby.get('weight'), baby.get('birthWeight'), record.get('weight')),
        'motherAge': _first(mother.get('age'), record.get('motherAge')),
        'gestationalAge': _first(
            baby.get('gestationalAge'), baby.get('gestationWeeks'), record.get('gestationalAge')
        ),
        'deliveryPlace': _first(
            baby.get('place'), mother.get('placeOfDelivery'), record.get('deliveryPlace'), record.get('place')
        ),
    }


def prepare_preview_data(records: Optional[Iterable[Mapping[str, Any]]]) -> list[dict]:
    """One display row per baby, with every missing field defaulted."""
    return [_preview_row(entry) for entry in normalize_records(records)]


def get_month_dates(month_string: str) -> DateRange:
    """First and last day of a month given as ``"September 2025"``."""
    parts = (month_string or '').split()
    if len(parts) != 2:
        raise ValueError(f'Invalid month: {month_string!r}')
    month_name, year_str = parts
    month = MONTHS.get(month_name.lower())
    if month is None:
        raise ValueError(f'Invalid month name: {month_name}')
    try:
        year = int(year_str)
    except ValueError:
        raise ValueError(f'Invalid year: {year_str}') from None
    last_day = calendar.monthrange(year, month)[1]
    return DateRange(
        start_date=date(year, month, 1).isoformat(),
        end_date=date(year, month, last_day).isoformat(),
    )


def _weight(entry: Entry) -> Optional[float]:
    row = entry.merged()
    for value in (row.get('birthWeight'), row.get('weight')):
        try:
            number = float(value)
        except (TypeError, ValueError):
            continue
        if number > 0:
            return number
    return None


def monthly_summary(records: Optional[Iterable[Mapping[str, Any]]]) -> list[dict]:
    """Per-month summaries ordered by month; records without a parsable date are skipped."""
    by_month: dict[tuple[int, int], list[Entry]] = {}
    for entry in normalize_records(records):
        raw_date = entry.record.get('dateOfNotification') or entry.record.get('date')
        try:
            day = date.fromisoformat(str(raw_date)[:10])
        except ValueError:
            continue
        by_month.setdefault((day.year, day.month), []).append(entry)

    items = []
    for (year, month), entries in sorted(by_month.items()):
        weights = [w for w in (_weight(e) for e in entries) if w is not None]
        items.append({
            'month': f'{calendar.month_name[month]} {year}',
            'avgWeight': round(sum(weights) / len(weights), 2) if weights else 0,
            **_summarize(entries),
        })
    return items


def linelist_csv(rows: Iterable[Mapping[str, Any]]) -> str:
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow([title for _, title in PREVIEW_COLUMNS])
    for row in rows:
        writer.writerow([row.get(key, '') for key, _ in PREVIEW_COLUMNS])
    return output.getvalue()
