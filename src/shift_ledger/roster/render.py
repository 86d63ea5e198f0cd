from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from ..common.duration import format_duration
from ..core.constants import ROSTER_CONTENT_BUDGET, ROSTER_HEADER


@dataclass(frozen=True)
class RosterLine:
    display_name: str
    elapsed_seconds: int
    on_break: bool = False

    def render(self) -> str:
        suffix = " 🔄 *On Break*" if self.on_break else ""
        return f"• **{self.display_name}** - {format_duration(self.elapsed_seconds)}{suffix}"


def _plural(term: str, count: int) -> str:
    return term if count == 1 else f"{term}s"


def render_roster(
    lines: Sequence[RosterLine],
    *,
    now: int,
    budget: int = ROSTER_CONTENT_BUDGET,
    employee_term: str = "employee",
) -> str:
    """Roster text that fits in `budget` characters.

    Lines are dropped from the end when needed and a "Showing K of M"
    note is added; the last-updated footer is always present.
    """

    total = len(lines)
    footer = f"-# Last updated <t:{int(now)}:R>"

    if total == 0:
        return "\n".join([ROSTER_HEADER, "", f"_No {_plural(employee_term, 0)} are currently active._", "", footer])

    head = [ROSTER_HEADER, "", f"**{total} {_plural(employee_term, total)} currently active:**", ""]
    rendered = [line.render() for line in lines]

    full = "\n".join(head + rendered + ["", footer])
    if len(full) <= budget:
        return full

    # Reserve room for the widest possible indicator.
    reserve = len("\n".join(head + ["", f"_Showing {total} of {total}_", "", footer]))
    used = reserve
    shown: list[str] = []
    for text in rendered:
        if used + len(text) + 1 > budget:
            break
        shown.append(text)
        used += len(text) + 1

    return "\n".join(head + shown + ["", f"_Showing {len(shown)} of {total}_", "", footer])
