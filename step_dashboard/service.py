"""Fetch a user's step rows and derive every dashboard view from that one result.

`load_step_data` is the only place fetch failures are caught; it always
returns a `DashboardData`, whose `status` tells the view what to render.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone, tzinfo
from typing import Any, Callable, Dict, List, Optional

import pandas as pd

from .auth import Identity
from .normalize import (
    ChartSeries,
    NormalizedStepRecord,
    StepStatistics,
    format_instant,
    normalize,
    recent_activity,
    sort_chronological,
    summarize,
    to_chart_series,
    to_frame,
)
from .store import ConnectivityError, StepStore

logger = logging.getLogger(__name__)

STATUS_OK = "ok"
STATUS_EMPTY = "empty"
STATUS_OFFLINE = "offline"
STATUS_ERROR = "error"


@dataclass
class DashboardData:
    status: str
    records: List[NormalizedStepRecord] = field(default_factory=list)
    statistics: StepStatistics = field(default_factory=lambda: summarize([]))
    series: ChartSeries = field(default_factory=lambda: ChartSeries(labels=[], values=[]))
    recent: List[NormalizedStepRecord] = field(default_factory=list)
    frame: pd.DataFrame = field(default_factory=lambda: to_frame([]))
    raw_documents: List[Dict[str, Any]] = field(default_factory=list)
    error: str = ""
    debug_info: str = ""

    @property
    def invalid_count(self) -> int:
        return sum(1 for record in self.records if not record.timestamp_valid)


def _empty_message(identity: Identity, table: str, user_field: str) -> str:
    return (
        f"No documents found for user {identity.email or identity.uid}. Check if:\n"
        f"1. Data exists in the '{table}' table\n"
        f"2. The '{user_field}' field matches exactly\n"
        "3. Row level security allows reading your own rows"
    )


def load_step_data(
    identity: Optional[Identity],
    store: StepStore,
    now: Optional[Callable[[], datetime]] = None,
    tz: tzinfo = timezone.utc,
    recent_limit: int = 5,
    table: str = "steps",
    user_field: str = "userId",
) -> DashboardData:
    if identity is None:
        return DashboardData(status=STATUS_ERROR, error="Not signed in.")

    logger.info("Fetching data for user %s", identity.uid)
    try:
        documents = store.fetch_documents(identity.uid)
    except ConnectivityError as exc:
        logger.warning("Fetch skipped for %s: %s", identity.uid, exc)
        return DashboardData(status=STATUS_OFFLINE, error=str(exc))
    except Exception as exc:
        logger.exception("Error fetching data for %s", identity.uid)
        details = getattr(exc, "__dict__", None) or {"message": str(exc)}
        return DashboardData(
            status=STATUS_ERROR,
            error=f"Error fetching data: {exc}",
            debug_info="Error details: " + json.dumps(details, indent=2, default=str),
        )

    logger.info("Total documents found: %d", len(documents))
    if not documents:
        return DashboardData(status=STATUS_EMPTY, debug_info=_empty_message(identity, table, user_field))

    records = sort_chronological(normalize(documents, now=now))
    data = DashboardData(
        status=STATUS_OK,
        records=records,
        statistics=summarize(records),
        series=to_chart_series(records, tz),
        recent=recent_activity(records, recent_limit),
        frame=to_frame(records, tz),
        raw_documents=documents,
    )
    data.debug_info = (
        f"Successfully loaded {len(records)} records. "
        f"Latest timestamp: {format_instant(records[-1].observed_at, tz)}"
    )
    if data.invalid_count:
        data.debug_info += f"\n{data.invalid_count} record(s) had an unrecognised timestamp and were placed at fetch time."
    return data
