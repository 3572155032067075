"""Turns schedule blocks into local-notification requests for the delivery layer."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple

from ..core.models import BlockKind, ScheduleBlock
from ..utils.dates import resolve_now, to_local

logger = logging.getLogger(__name__)

# kind → (title, body); body may use {time}
NOTIFICATION_COPY: Dict[BlockKind, Tuple[str, str]] = {
    BlockKind.WIND_DOWN: ("Wind Down Time \U0001F319", "Start winding down for sleep."),
    BlockKind.NAP: ("Nap Time \U0001F634", "It's time for a nap ({time})"),
    BlockKind.BEDTIME: ("Bedtime \U0001F4A4", "Time for bed."),
}


@dataclass
class NotificationRequest:
    schedule_block_id: str
    title: str
    body: str
    fire_at: datetime
    seconds_until: int


def _format_clock(value: datetime) -> str:
    return to_local(value).strftime("%I:%M %p")


# Used by: pipeline.refresh_derived_state
def build_notification_requests(
    blocks: Iterable[ScheduleBlock],
    now: Optional[datetime] = None
) -> List[NotificationRequest]:
    """One request per block that has not started yet."""
    blocks = list(blocks)
    now = resolve_now(now, (b.start for b in blocks))

    requests = []
    for block in blocks:
        seconds = int((block.start - now).total_seconds())
        if seconds <= 0:
            continue

        title, body = NOTIFICATION_COPY[block.kind]
        requests.append(NotificationRequest(
            schedule_block_id=block.id,
            title=title,
            body=body.format(time=_format_clock(block.start)),
            fire_at=block.start,
            seconds_until=seconds,
        ))

    logger.debug(f"Prepared {len(requests)} notification requests")
    return requests


# Used by: pipeline.refresh_derived_state (schedule-updated banner)
def next_upcoming_block(
    blocks: Iterable[ScheduleBlock],
    now: Optional[datetime] = None
) -> Optional[ScheduleBlock]:
    blocks = list(blocks)
    now = resolve_now(now, (b.start for b in blocks))
    return next((b for b in blocks if b.start > now), None)


def describe_next_block(block: Optional[ScheduleBlock]) -> Optional[str]:
    if block is None:
        return None
    return f"Next: {block.kind.value} at {_format_clock(block.start)}"
