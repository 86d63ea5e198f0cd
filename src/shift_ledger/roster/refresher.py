from __future__ import annotations

import logging
import threading
from typing import Optional

from ..common.clock import Clock, SystemClock
from ..common.locks import KeyedLock
from ..core.constants import ROSTER_CONTENT_BUDGET, ROSTER_HEADER, ROSTER_REFRESH_SECONDS
from ..core.enums import RefresherState
from ..guilds.model import GuildConfig
from ..guilds.service import GuildService
from ..reports.service import ReportService
from .identity import IdentityResolver, mention
from .publisher import DisplayPublisher
from .render import RosterLine, render_roster

logger = logging.getLogger(__name__)


class RosterRefresher:
    """Periodically republishes each guild's active roster.

    Idle until start(); Scheduled until stop(). A failing guild is logged
    and skipped, nothing escapes a refresh cycle.
    """

    def __init__(
        self,
        reports: ReportService,
        guilds: GuildService,
        publisher: DisplayPublisher,
        identity: Optional[IdentityResolver] = None,
        *,
        clock: Optional[Clock] = None,
        interval_seconds: float = ROSTER_REFRESH_SECONDS,
        budget: int = ROSTER_CONTENT_BUDGET,
        employee_term: str = "employee",
    ):
        self._reports = reports
        self._guilds = guilds
        self._publisher = publisher
        self._identity = identity
        self._clock = clock or SystemClock()
        self._interval = float(interval_seconds)
        self._budget = int(budget)
        self._employee_term = employee_term

        self._state_lock = threading.Lock()
        self._guild_locks = KeyedLock()
        self._pending: set[str] = set()
        self._stop_event: Optional[threading.Event] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def state(self) -> RefresherState:
        with self._state_lock:
            return RefresherState.SCHEDULED if self._thread is not None else RefresherState.IDLE

    def start(self) -> None:
        with self._state_lock:
            if self._thread is not None:
                return
            self._stop_event = threading.Event()
            self._thread = threading.Thread(
                target=self._run,
                args=(self._stop_event,),
                name="roster-refresher",
                daemon=True,
            )
            self._thread.start()
        logger.info("Roster refresher scheduled every %.0fs", self._interval)

    def stop(self, timeout: Optional[float] = None) -> None:
        """Cancel the schedule; a cycle already running finishes its writes."""

        with self._state_lock:
            thread, event = self._thread, self._stop_event
            self._thread = None
            self._stop_event = None
        if thread is None:
            return
        event.set()
        thread.join(timeout)
        logger.info("Roster refresher stopped")

    def _run(self, stop_event: threading.Event) -> None:
        while not stop_event.wait(self._interval):
            self.refresh_all()

    def refresh_all(self) -> int:
        """One cycle over every guild with a roster target; returns publishes."""

        try:
            configs = list(self._guilds.roster_guilds())
        except Exception:
            logger.exception("Could not load guilds for roster refresh")
            return 0

        published = 0
        for config in configs:
            try:
                with self._guild_locks.hold(config.guild_id):
                    if self._refresh(config):
                        published += 1
            except Exception:
                logger.exception("Roster refresh failed for guild %s", config.guild_id)
        return published

    def refresh_guild(self, guild_id: str) -> bool:
        guild_id = str(guild_id)
        with self._guild_locks.hold(guild_id):
            return self._refresh_latest(guild_id)

    def request_refresh(self, guild_id: str) -> Optional[threading.Thread]:
        """Refresh one guild soon, off the caller's thread.

        Requests arriving while one is already waiting for the guild are
        folded into it; the returned thread is None in that case.
        """

        guild_id = str(guild_id)
        with self._state_lock:
            if guild_id in self._pending:
                return None
            self._pending.add(guild_id)
        thread = threading.Thread(
            target=self._run_requested,
            args=(guild_id,),
            name=f"roster-refresh-{guild_id}",
            daemon=True,
        )
        try:
            thread.start()
        except Exception:
            with self._state_lock:
                self._pending.discard(guild_id)
            raise
        return thread

    def _run_requested(self, guild_id: str) -> None:
        with self._guild_locks.hold(guild_id):
            # Changes made after this point get a fresh request.
            with self._state_lock:
                self._pending.discard(guild_id)
            self._refresh_latest(guild_id)

    def _refresh_latest(self, guild_id: str) -> bool:
        try:
            config = self._guilds.get(guild_id)
            if config is None:
                return False
            return self._refresh(config)
        except Exception:
            logger.exception("Roster refresh failed for guild %s", guild_id)
            return False

    def render(self, guild_id: str) -> str:
        entries = self._reports.active_roster(str(guild_id))
        lines = [
            RosterLine(
                display_name=self._display_name(str(guild_id), e.subject_id),
                elapsed_seconds=e.elapsed_seconds,
                on_break=e.on_break,
            )
            for e in entries
        ]
        return render_roster(lines, now=self._clock.now(), budget=self._budget, employee_term=self._employee_term)

    def _refresh(self, config: GuildConfig) -> bool:
        """Caller holds the guild lock."""

        if not config.roster_target_id:
            return False
        content = self.render(config.guild_id)
        target = config.roster_target_id
        message_id = self._publisher.find_own_message(target, ROSTER_HEADER)
        if message_id:
            self._publisher.edit(target, message_id, content)
        else:
            self._publisher.send(target, content)
        logger.debug("Roster published for guild %s", config.guild_id)
        return True

    def _display_name(self, guild_id: str, subject_id: str) -> str:
        if self._identity is None:
            return mention(subject_id)
        try:
            return self._identity.display_name(guild_id, subject_id)
        except Exception:
            logger.debug("Display name lookup failed for %s in %s", subject_id, guild_id, exc_info=True)
            return mention(subject_id)
