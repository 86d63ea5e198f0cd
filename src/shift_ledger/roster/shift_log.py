from __future__ import annotations

import logging
import queue
import threading
from typing import Optional

from ..common.duration import format_duration
from ..core.enums import ShiftEventKind
from ..guilds.service import GuildService
from ..shifts.model import ShiftEvent
from .identity import IdentityResolver, mention
from .publisher import DisplayPublisher

logger = logging.getLogger(__name__)

# kind -> (icon, title, title when someone else acted)
_HEADINGS = {
    ShiftEventKind.SHIFT_STARTED: ("🟢", "Shift Started", "Force Started Shift"),
    ShiftEventKind.SHIFT_ENDED: ("🔴", "Shift Ended", "Force Ended Shift"),
    ShiftEventKind.BREAK_STARTED: ("🟡", "Break Started", "Force Started Break"),
    ShiftEventKind.BREAK_ENDED: ("🟠", "Break Ended", "Force Ended Break"),
    ShiftEventKind.SHIFT_ADJUSTED: ("🛠️", "Shift Adjusted", "Shift Adjusted"),
    ShiftEventKind.SHIFT_DELETED: ("🗑️", "Shift Deleted", "Shift Deleted"),
    ShiftEventKind.WEEK_CLEARED: ("♻️", "Weekly Reset", "Weekly Reset"),
}


def _timestamp(ts: Optional[int]) -> Optional[str]:
    return f"<t:{int(ts)}:f>" if ts is not None else None


def _signed(seconds: int) -> str:
    sign = "-" if seconds < 0 else "+"
    return f"{sign}{format_duration(abs(seconds))}"


def render_event(event: ShiftEvent, subject_name: Optional[str] = None, actor_name: Optional[str] = None) -> str:
    icon, title, forced_title = _HEADINGS[event.kind]
    lines = [f"## {icon} {forced_title if event.forced else title}"]

    if event.subject_id is not None:
        lines.append(f"**User:** {subject_name or event.subject_id} ({mention(event.subject_id)})")

    fields: list[tuple[str, Optional[str]]] = []
    shift = event.shift
    kind = event.kind
    if shift is not None:
        fields.append(("Unit", shift.unit))
    if kind in (ShiftEventKind.SHIFT_ENDED, ShiftEventKind.SHIFT_ADJUSTED):
        fields.append(("Effective Duration", format_duration(event.effective_seconds)))
        fields.append(("Break Time", format_duration(event.break_seconds)))
    if kind == ShiftEventKind.BREAK_ENDED:
        fields.append(("Break Time", format_duration(event.break_seconds)))
    if event.proof_url:
        fields.append(("Proof", event.proof_url))
    if shift is not None:
        fields.append(("Shift ID", str(shift.id)))
        if kind not in (ShiftEventKind.BREAK_STARTED, ShiftEventKind.BREAK_ENDED):
            fields.append(("Started", _timestamp(shift.start_time)))
            fields.append(("Ended", _timestamp(shift.end_time)))
    if event.brk is not None:
        fields.append(("Break ID", str(event.brk.id)))
        fields.append(("Started", _timestamp(event.brk.start_time)))
        fields.append(("Ended", _timestamp(event.brk.end_time)))
    if kind == ShiftEventKind.SHIFT_ADJUSTED:
        fields.append(("Adjustment", _signed(event.delta_seconds)))
    if kind == ShiftEventKind.WEEK_CLEARED:
        fields.append(("Shifts Removed", str(event.count)))

    lines.extend(f"**{key}:** {value}" for key, value in fields if value)

    if event.reason:
        lines.append(f"**Reason:** {event.reason}")
    if event.actor_id is not None:
        lines.append(f"**Action By:** {actor_name or event.actor_id} ({mention(event.actor_id)})")
    return "\n".join(lines)


class ShiftLogPublisher:
    """Posts one message per ledger change to the guild's shift log target.

    Best effort: a guild without a target is skipped and publish failures
    are logged, never raised.
    """

    def __init__(
        self,
        guilds: GuildService,
        publisher: DisplayPublisher,
        identity: Optional[IdentityResolver] = None,
    ):
        self._guilds = guilds
        self._publisher = publisher
        self._identity = identity
        self._queue: "queue.Queue[ShiftEvent]" = queue.Queue()
        self._worker: Optional[threading.Thread] = None
        self._worker_lock = threading.Lock()

    def publish(self, event: ShiftEvent) -> bool:
        try:
            config = self._guilds.get(event.guild_id)
            if config is None or not config.shift_log_target_id:
                return False
            content = render_event(
                event,
                subject_name=self._name(event.guild_id, event.subject_id),
                actor_name=self._name(event.guild_id, event.actor_id),
            )
            self._publisher.send(config.shift_log_target_id, content)
        except Exception:
            logger.exception("Shift log publish failed for %s in guild %s", event.kind.value, event.guild_id)
            return False
        return True

    def submit(self, event: ShiftEvent) -> None:
        """Queue an event for the background sender, preserving order."""

        self._queue.put(event)
        with self._worker_lock:
            if self._worker is None:
                self._worker = threading.Thread(target=self._drain, name="shift-log", daemon=True)
                self._worker.start()

    def flush(self) -> None:
        """Block until every submitted event has been handled."""

        self._queue.join()

    def _drain(self) -> None:
        while True:
            event = self._queue.get()
            try:
                self.publish(event)
            finally:
                self._queue.task_done()

    def _name(self, guild_id: str, user_id: Optional[str]) -> Optional[str]:
        if user_id is None or self._identity is None:
            return None
        try:
            return self._identity.display_name(guild_id, user_id)
        except Exception:
            logger.debug("Display name lookup failed for %s in %s", user_id, guild_id, exc_info=True)
            return None
