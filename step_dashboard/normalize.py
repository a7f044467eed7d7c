"""Normalize raw `steps` rows into one ordered time series and derive the
dashboard views from it (chart series, statistics, recent activity, raw table).

Rows come back from the store with whatever shape their producer wrote:

    {"id": "a1", "userId": "...", "steps": 120,     "timestamp": "2024-01-01T10:00:00Z"}
    {"id": "a2", "userId": "...", "stepCount": 80,  "timestamp": 1700000000000}
    {"id": "a3", "userId": "...", "steps": 40,      "timestamp": {"seconds": 1700000000, "nanoseconds": 0}}

Every function here is pure apart from the "now" fallback for timestamps that
match no known shape.
"""

import json
import logging
import math
import numbers
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Any, Callable, Iterable, List, Mapping, Optional, Sequence, Tuple

import pandas as pd

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# Field names carrying the step count, in order of preference.
STEP_FIELDS = ("steps", "stepCount")

# Zero-argument conversions to a calendar instant.
INSTANT_METHODS = ("to_pydatetime", "to_datetime", "ToDatetime")

FALLBACK_KIND = "fallback"

FRAME_COLUMNS = ["id", "steps", "timestamp", "original_timestamp", "kind", "valid"]


# ── Records ────────────────────────────────────────────────────────────────
@dataclass(frozen=True)
class NormalizedStepRecord:
    id: Any
    steps: float
    observed_at: datetime
    raw_timestamp: Any = None
    timestamp_kind: str = FALLBACK_KIND
    timestamp_valid: bool = True

    @property
    def epoch_ms(self) -> int:
        return (self.observed_at - EPOCH) // timedelta(milliseconds=1)


@dataclass(frozen=True)
class StepStatistics:
    count: int
    total: float
    average: float

    @property
    def rounded_average(self) -> Optional[int]:
        """Average rounded half up for display, None when there is no data."""
        if math.isnan(self.average):
            return None
        return math.floor(self.average + 0.5)


@dataclass(frozen=True)
class ChartSeries:
    labels: List[str]
    values: List[float]


# ── Timestamp matchers ─────────────────────────────────────────────────────
TimestampMatcher = Callable[[Any], Optional[datetime]]


def _is_number(value: Any) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _from_instant(value: Any) -> Optional[datetime]:
    for name in INSTANT_METHODS:
        convert = getattr(value, name, None)
        if callable(convert):
            return convert()
    if isinstance(value, datetime):
        return value
    return None


def _from_seconds(value: Any) -> Optional[datetime]:
    if isinstance(value, Mapping):
        seconds = value.get("seconds")
    else:
        seconds = getattr(value, "seconds", None)
    if isinstance(seconds, numbers.Integral) and not isinstance(seconds, bool):
        return EPOCH + timedelta(milliseconds=int(seconds) * 1000)
    return None


def _from_epoch_ms(value: Any) -> Optional[datetime]:
    if not _is_number(value):
        return None
    millis = int(value) if isinstance(value, numbers.Integral) else float(value)
    return EPOCH + timedelta(milliseconds=millis)


def _from_string(value: Any) -> Optional[datetime]:
    if not isinstance(value, str):
        return None
    parsed = pd.to_datetime(value, utc=True)
    if pd.isna(parsed):
        return None
    return parsed.to_pydatetime()


# Probed in order; the first matcher returning a datetime wins.
TIMESTAMP_MATCHERS: List[Tuple[str, TimestampMatcher]] = [
    ("instant", _from_instant),
    ("seconds", _from_seconds),
    ("epoch_ms", _from_epoch_ms),
    ("string", _from_string),
]


def resolve_timestamp(
    value: Any,
    matchers: Optional[Sequence[Tuple[str, TimestampMatcher]]] = None,
) -> Tuple[str, Optional[datetime]]:
    """Return `(kind, instant)` for the first matcher that accepts `value`.

    A matcher whose conversion raises (unparseable string, NaN, out of range)
    is treated as not matching. `(FALLBACK_KIND, None)` when nothing matches.
    """
    if matchers is None:
        matchers = TIMESTAMP_MATCHERS
    for kind, matcher in matchers:
        try:
            instant = matcher(value)
        except (ValueError, TypeError, OverflowError) as exc:
            logger.debug("Matcher %s rejected %r: %s", kind, value, exc)
            continue
        if isinstance(instant, datetime):
            return kind, _as_utc(instant)
    return FALLBACK_KIND, None


def resolve_steps(fields: Mapping[str, Any]) -> float:
    """First truthy numeric value among STEP_FIELDS, else 0."""
    for name in STEP_FIELDS:
        value = fields.get(name)
        # NaN is truthy in Python but must count as missing.
        if _is_number(value) and value and value == value:
            return value
    return 0


def _split_document(document: Any) -> Tuple[Any, Mapping[str, Any]]:
    if isinstance(document, Mapping):
        return document.get("id"), document
    # Document snapshots expose the id separately from the field map.
    return getattr(document, "id", None), document.to_dict() or {}


# ── Pipeline ───────────────────────────────────────────────────────────────
def normalize(
    raw_documents: Iterable[Any],
    now: Optional[Callable[[], datetime]] = None,
    matchers: Optional[Sequence[Tuple[str, TimestampMatcher]]] = None,
) -> List[NormalizedStepRecord]:
    """Convert raw rows to canonical records, one per input, in input order.

    Timestamps matching no known shape are replaced with `now()` and flagged
    with `timestamp_valid=False`.
    """
    now = now or (lambda: datetime.now(timezone.utc))
    records = []
    for document in raw_documents:
        doc_id, fields = _split_document(document)
        raw_ts = fields.get("timestamp")
        kind, observed_at = resolve_timestamp(raw_ts, matchers)
        valid = observed_at is not None
        if valid:
            logger.debug("Doc %s: %s timestamp %r -> %s", doc_id, kind, raw_ts, observed_at.isoformat())
        else:
            observed_at = _as_utc(now())
            logger.warning("Doc %s: unknown timestamp format %r; using now", doc_id, raw_ts)
        records.append(
            NormalizedStepRecord(
                id=doc_id,
                steps=resolve_steps(fields),
                observed_at=observed_at,
                raw_timestamp=raw_ts,
                timestamp_kind=kind,
                timestamp_valid=valid,
            )
        )
    return records


def sort_chronological(records: Iterable[NormalizedStepRecord]) -> List[NormalizedStepRecord]:
    # sorted() is stable, so equal instants keep input order.
    return sorted(records, key=lambda record: record.observed_at)


def summarize(records: Sequence[NormalizedStepRecord]) -> StepStatistics:
    """Count, total and mean of `steps`. The mean of no records is NaN."""
    count = len(records)
    total = sum((record.steps for record in records), 0)
    average = total / count if count else math.nan
    return StepStatistics(count=count, total=total, average=average)


def recent_activity(records: Sequence[NormalizedStepRecord], n: int = 5) -> List[NormalizedStepRecord]:
    """Last `n` records of a chronologically sorted sequence, newest first."""
    if n <= 0:
        return []
    return list(reversed(records[-n:]))


def to_chart_series(records: Sequence[NormalizedStepRecord], tz: tzinfo = timezone.utc) -> ChartSeries:
    return ChartSeries(
        labels=[record.observed_at.astimezone(tz).strftime("%H:%M") for record in records],
        values=[record.steps for record in records],
    )


def format_instant(value: datetime, tz: tzinfo = timezone.utc) -> str:
    return value.astimezone(tz).strftime("%Y-%m-%d %H:%M:%S")


def _describe_raw(value: Any) -> str:
    try:
        return json.dumps(value, default=str)
    except (TypeError, ValueError):
        return repr(value)


def to_frame(records: Sequence[NormalizedStepRecord], tz: tzinfo = timezone.utc) -> pd.DataFrame:
    """Raw-data table: one row per record, timestamps shown in `tz`."""
    rows = [
        {
            "id": record.id,
            "steps": record.steps,
            "timestamp": format_instant(record.observed_at, tz),
            "original_timestamp": _describe_raw(record.raw_timestamp),
            "kind": record.timestamp_kind,
            "valid": record.timestamp_valid,
        }
        for record in records
    ]
    return pd.DataFrame(rows, columns=FRAME_COLUMNS)
