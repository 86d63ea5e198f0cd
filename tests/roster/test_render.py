from shift_ledger.core.constants import ROSTER_HEADER
from shift_ledger.roster.render import RosterLine, render_roster

NOW = 1_704_888_000


def test_empty_roster():
    text = render_roster([], now=NOW)

    assert text.startswith(ROSTER_HEADER)
    assert "_No employees are currently active._" in text
    assert text.endswith(f"-# Last updated <t:{NOW}:R>")


def test_lines_show_elapsed_and_break_marker():
    text = render_roster(
        [RosterLine("Alice", 3900), RosterLine("Bob", 120, on_break=True)],
        now=NOW,
    )

    assert "**2 employees currently active:**" in text
    assert "• **Alice** - 1h 5m" in text
    assert "• **Bob** - 2m 🔄 *On Break*" in text
    assert text.index("Alice") < text.index("Bob")
    assert "Showing" not in text


def test_singular_and_custom_term():
    text = render_roster([RosterLine("Alice", 60)], now=NOW, employee_term="officer")
    assert "**1 officer currently active:**" in text


def test_long_roster_is_truncated_within_budget():
    lines = [RosterLine(f"Subject number {i:03d}", 3600 + i) for i in range(200)]

    text = render_roster(lines, now=NOW, budget=1800)

    assert len(text) <= 1800
    shown = text.count("• **")
    assert 0 < shown < 200
    assert f"_Showing {shown} of 200_" in text
    assert "**200 employees currently active:**" in text
    assert text.endswith(f"-# Last updated <t:{NOW}:R>")
    assert "Subject number 000" in text
