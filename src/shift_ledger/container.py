from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, Optional

from .actions.mysql_action_repository import MySQLActionRepository
from .actions.repository import ActionRepository
from .actions.service import ActionService
from .common.clock import Clock
from .core.constants import ROSTER_CONTENT_BUDGET, ROSTER_REFRESH_SECONDS
from .database.connection import DatabaseConnection
from .guilds.mysql_guild_repository import MySQLGuildRepository
from .guilds.repository import GuildRepository
from .guilds.service import GuildService
from .reports.service import ReportService
from .reports.week import resolve_timezone
from .roster.discord_api import DISCORD_API_BASE, DiscordAPI
from .roster.identity import DiscordMemberResolver, IdentityResolver
from .roster.publisher import DiscordChannelPublisher, DisplayPublisher
from .roster.refresher import RosterRefresher
from .roster.shift_log import ShiftLogPublisher
from .shifts.model import ShiftEvent
from .shifts.mysql_break_repository import MySQLBreakRepository
from .shifts.mysql_shift_repository import MySQLShiftRepository
from .shifts.repository import BreakRepository, ShiftRepository
from .shifts.service import ShiftService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    guilds_repo: GuildRepository
    shifts_repo: ShiftRepository
    breaks_repo: BreakRepository
    actions_repo: ActionRepository

    guild_service: GuildService
    shift_service: ShiftService
    report_service: ReportService
    action_service: ActionService
    refresher: Optional[RosterRefresher]
    shift_log: Optional[ShiftLogPublisher] = None


def assemble(
    *,
    guilds_repo: GuildRepository,
    shifts_repo: ShiftRepository,
    breaks_repo: BreakRepository,
    actions_repo: ActionRepository,
    conn: Optional[DatabaseConnection] = None,
    clock: Optional[Clock] = None,
    units: Iterable[str] = (),
    timezone: Optional[str] = None,
    publisher: Optional[DisplayPublisher] = None,
    identity: Optional[IdentityResolver] = None,
    refresh_seconds: float = ROSTER_REFRESH_SECONDS,
    employee_term: str = "employee",
) -> Container:
    """Wire services over the given repositories.

    Without a publisher there is no refresher and no shift log, and shift
    changes notify nobody.
    """

    tz = resolve_timezone(timezone)

    guild_service = GuildService(guilds_repo)
    shift_service = ShiftService(shifts_repo, breaks_repo, guild_service, clock=clock, units=units, tz=tz)
    report_service = ReportService(shifts_repo, breaks_repo, guild_service, clock=clock, tz=tz)
    action_service = ActionService(actions_repo, clock=clock)

    refresher = None
    shift_log = None
    if publisher is not None:
        refresher = RosterRefresher(
            report_service,
            guild_service,
            publisher,
            identity,
            clock=clock,
            interval_seconds=refresh_seconds,
            budget=ROSTER_CONTENT_BUDGET,
            employee_term=employee_term,
        )
        shift_log = ShiftLogPublisher(guild_service, publisher, identity)
        shift_service.set_change_listener(_fan_out(refresher, shift_log))

    return Container(
        conn=conn,
        guilds_repo=guilds_repo,
        shifts_repo=shifts_repo,
        breaks_repo=breaks_repo,
        actions_repo=actions_repo,
        guild_service=guild_service,
        shift_service=shift_service,
        report_service=report_service,
        action_service=action_service,
        refresher=refresher,
        shift_log=shift_log,
    )


def _fan_out(refresher: RosterRefresher, shift_log: ShiftLogPublisher) -> Callable[[ShiftEvent], None]:
    def on_change(event: ShiftEvent) -> None:
        try:
            refresher.request_refresh(event.guild_id)
        except Exception:
            logger.exception("Could not schedule roster refresh for guild %s", event.guild_id)
        try:
            shift_log.submit(event)
        except Exception:
            logger.exception("Could not queue shift log entry for guild %s", event.guild_id)

    return on_change


def build_container(*, db_config: dict, settings: object = None) -> Container:
    conn = DatabaseConnection.from_dict(db_config)

    publisher = None
    identity = None
    token = getattr(settings, "DISCORD_TOKEN", None)
    if token:
        api = DiscordAPI(
            token,
            api_base=getattr(settings, "DISCORD_API_BASE", DISCORD_API_BASE),
            timeout=float(getattr(settings, "PUBLISH_TIMEOUT_SECONDS", 10)),
        )
        publisher = DiscordChannelPublisher(api)
        identity = DiscordMemberResolver(api)

    return assemble(
        conn=conn,
        guilds_repo=MySQLGuildRepository(conn),
        shifts_repo=MySQLShiftRepository(conn),
        breaks_repo=MySQLBreakRepository(conn),
        actions_repo=MySQLActionRepository(conn),
        units=getattr(settings, "UNITS", ()),
        timezone=getattr(settings, "TIMEZONE", None),
        publisher=publisher,
        identity=identity,
        refresh_seconds=float(getattr(settings, "ROSTER_REFRESH_SECONDS", ROSTER_REFRESH_SECONDS)),
        employee_term=getattr(settings, "EMPLOYEE_TERM", "employee"),
    )
