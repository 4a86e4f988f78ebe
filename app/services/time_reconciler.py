"""
Decides the canonical event time of a submission.

Field connectivity is unreliable, so offline submissions carry the time the
client captured the event. That time is trusted unless it cannot be parsed or
lies after the server receipt time by more than the configured skew.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Union

from app.core.config import settings
from app.core.exceptions import InvalidTimestamp
from app.utils.datetime_utils import ensure_utc, parse_timestamp

TimestampInput = Union[str, int, float, datetime]


@dataclass(frozen=True)
class ReconciledTime:
    event_time: datetime
    offline_timestamp: Optional[datetime]


def reconcile_event_time(
    is_offline_submission: bool,
    offline_timestamp: Optional[TimestampInput],
    server_receipt_time: datetime,
    skew_tolerance: Optional[timedelta] = None,
) -> ReconciledTime:
    """
    Return the canonical event time for a submission.

    Args:
        is_offline_submission: Client flag marking an after-the-fact submission
        offline_timestamp: Client-asserted event time (datetime, ISO string or epoch ms)
        server_receipt_time: When the server received the submission
        skew_tolerance: How far after receipt an offline time may lie (default from settings)

    Returns:
        ReconciledTime with the event time and the offline timestamp to store (None when online)

    Raises:
        InvalidTimestamp: If the offline timestamp is unparsable or too far in the future
    """
    receipt = ensure_utc(server_receipt_time)

    if not is_offline_submission or offline_timestamp is None or offline_timestamp == "":
        return ReconciledTime(event_time=receipt, offline_timestamp=None)

    try:
        client_time = parse_timestamp(offline_timestamp)
    except (ValueError, TypeError) as e:
        raise InvalidTimestamp(offline_timestamp, f"unparsable ({e})")

    if skew_tolerance is None:
        skew_tolerance = timedelta(seconds=settings.OFFLINE_CLOCK_SKEW_SECONDS)

    if client_time - receipt > skew_tolerance:
        raise InvalidTimestamp(offline_timestamp, "lies in the future relative to server time")

    return ReconciledTime(event_time=client_time, offline_timestamp=client_time)
