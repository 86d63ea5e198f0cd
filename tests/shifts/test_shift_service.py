from __future__ import annotations

import random
import threading

import pytest

from fakes import GUILD, WEDNESDAY_NOON
from shift_ledger.core.constants import DAY_SECONDS
from shift_ledger.core.enums import ShiftEventKind, ToggleAction
from shift_ledger.core.exceptions import ConflictError, NotFoundError, ValidationError
from shift_ledger.shifts.service import ShiftService


def test_shift_with_one_break_counts_effective_time(shift_service, clock):
    started = shift_service.toggle_shift("alice", GUILD, "Patrol")
    assert started.action == ToggleAction.STARTED
    assert started.shift.start_time == WEDNESDAY_NOON
    assert started.shift.is_open

    clock.advance(600)
    assert shift_service.toggle_break("alice", GUILD).action == ToggleAction.STARTED
    clock.advance(300)
    ended_break = shift_service.toggle_break("alice", GUILD)
    assert ended_break.action == ToggleAction.ENDED
    assert ended_break.duration_seconds == 300

    clock.advance(2700)
    ended = shift_service.toggle_shift("alice", GUILD)
    assert ended.action == ToggleAction.ENDED
    assert ended.shift.end_time == WEDNESDAY_NOON + 3600
    assert ended.break_seconds == 300
    assert ended.effective_seconds == 3300


def test_toggle_start_requires_unit(shift_service):
    with pytest.raises(ValidationError):
        shift_service.toggle_shift("alice", GUILD)
    with pytest.raises(ValidationError):
        shift_service.toggle_shift("alice", GUILD, "   ")
    assert shift_service.active_shift("alice", GUILD) is None


def test_unit_longer_than_limit_is_rejected(shift_service):
    with pytest.raises(ValidationError):
        shift_service.toggle_shift("alice", GUILD, "x" * 21)


def test_unit_must_be_configured_when_list_is_set(shifts_repo, breaks_repo, guild_service, clock):
    service = ShiftService(shifts_repo, breaks_repo, guild_service, clock=clock, units=("Patrol", "SWAT"))

    with pytest.raises(ValidationError):
        service.toggle_shift("alice", GUILD, "Traffic")

    assert service.toggle_shift("alice", GUILD, "SWAT").shift.unit == "SWAT"


def test_proof_url_is_validated_before_any_change(shift_service):
    with pytest.raises(ValidationError):
        shift_service.toggle_shift("alice", GUILD, "Patrol", proof_url="http://i.imgur.com/a.png")
    with pytest.raises(ValidationError):
        shift_service.toggle_shift("alice", GUILD, "Patrol", proof_url="https://evil.example/a.png")
    assert shift_service.active_shift("alice", GUILD) is None

    started = shift_service.toggle_shift("alice", GUILD, "Patrol", proof_url="https://i.imgur.com/a.png")
    assert started.shift.start_proof_url == "https://i.imgur.com/a.png"


def test_ending_shift_force_ends_open_break(shift_service, clock):
    shift_service.toggle_shift("alice", GUILD, "Patrol")
    clock.advance(1000)
    brk = shift_service.toggle_break("alice", GUILD).brk
    clock.advance(500)

    ended = shift_service.toggle_shift("alice", GUILD)

    assert shift_service.active_break("alice", GUILD) is None
    closed = shift_service.get_break(brk.id)
    assert closed.end_time == ended.shift.end_time
    assert ended.break_seconds == 500
    assert ended.effective_seconds == 1000


def test_break_without_active_shift_conflicts(shift_service):
    with pytest.raises(ConflictError, match="No active shift"):
        shift_service.toggle_break("alice", GUILD)


def test_subjects_are_independent_per_guild(shift_service):
    shift_service.toggle_shift("alice", GUILD, "Patrol")
    other = shift_service.toggle_shift("alice", "guild-2", "Patrol")

    assert other.action == ToggleAction.STARTED
    assert shift_service.active_shift("alice", GUILD) is not None
    assert shift_service.active_shift("alice", "guild-2") is not None


def test_effective_duration_counts_running_break(shift_service, clock):
    shift = shift_service.toggle_shift("alice", GUILD, "Patrol").shift
    clock.advance(1200)
    shift_service.toggle_break("alice", GUILD)
    clock.advance(600)

    durations = shift_service.durations(shift_service.get_shift(shift.id))

    assert durations.raw_seconds == 1800
    assert durations.break_seconds == 600
    assert durations.effective_seconds == 1200


def _closed_shift(shift_service, clock, length=3600):
    shift_service.toggle_shift("alice", GUILD, "Patrol")
    clock.advance(length)
    return shift_service.toggle_shift("alice", GUILD).shift


def test_adjust_moves_end_time(shift_service, clock):
    shift = _closed_shift(shift_service, clock)

    adjusted = shift_service.adjust_shift(shift.id, 900)

    assert adjusted.end_time == shift.end_time + 900


def test_adjust_never_moves_end_before_start(shift_service, clock):
    shift = _closed_shift(shift_service, clock)

    adjusted = shift_service.adjust_shift(shift.id, -7200)

    assert adjusted.end_time == adjusted.start_time
    assert shift_service.durations(adjusted).effective_seconds == 0


def test_adjust_rejects_more_than_a_week(shift_service, clock):
    shift = _closed_shift(shift_service, clock)

    with pytest.raises(ValidationError):
        shift_service.adjust_shift(shift.id, 7 * DAY_SECONDS + 1)
    with pytest.raises(ValidationError):
        shift_service.adjust_shift(shift.id, -(7 * DAY_SECONDS + 1))

    assert shift_service.adjust_shift(shift.id, 7 * DAY_SECONDS).end_time == shift.end_time + 7 * DAY_SECONDS


def test_adjust_rejects_non_integer_delta(shift_service, clock):
    shift = _closed_shift(shift_service, clock)

    with pytest.raises(ValidationError):
        shift_service.adjust_shift(shift.id, "soon")
    with pytest.raises(ValidationError):
        shift_service.adjust_shift(shift.id, 1.5)


def test_adjust_rejects_end_far_in_future(shift_service, shifts_repo, clock):
    far = clock.now() + 364 * DAY_SECONDS
    shift = shifts_repo.insert(subject_id="alice", guild_id=GUILD, start_time=far - 3600, end_time=far)

    with pytest.raises(ValidationError):
        shift_service.adjust_shift(shift.id, 2 * DAY_SECONDS)


def test_adjust_open_shift_conflicts(shift_service):
    shift = shift_service.toggle_shift("alice", GUILD, "Patrol").shift

    with pytest.raises(ConflictError):
        shift_service.adjust_shift(shift.id, 60)


def test_adjust_unknown_shift_conflicts(shift_service):
    with pytest.raises(ConflictError):
        shift_service.adjust_shift(999, 60)


def test_adjust_checks_owner_when_given(shift_service, clock):
    shift = _closed_shift(shift_service, clock)

    with pytest.raises(ConflictError):
        shift_service.adjust_shift(shift.id, 60, subject_id="bob")
    assert shift_service.adjust_shift(shift.id, 60, subject_id="alice").end_time == shift.end_time + 60


def test_delete_removes_shift_and_breaks_and_is_idempotent(shift_service, breaks_repo, clock):
    shift = shift_service.toggle_shift("alice", GUILD, "Patrol").shift
    clock.advance(60)
    shift_service.toggle_break("alice", GUILD)

    assert shift_service.delete_shift(shift.id) is True
    assert breaks_repo.list_for_shift(shift.id) == []
    with pytest.raises(NotFoundError):
        shift_service.get_shift(shift.id)

    assert shift_service.delete_shift(shift.id) is False


def test_purge_old_shifts_keeps_recent_and_open(shift_service, shifts_repo, clock):
    now = clock.now()
    old = shifts_repo.insert(subject_id="alice", guild_id=GUILD, start_time=now - 80 * DAY_SECONDS, end_time=now - 79 * DAY_SECONDS)
    recent = shifts_repo.insert(subject_id="alice", guild_id=GUILD, start_time=now - 3 * DAY_SECONDS, end_time=now - 2 * DAY_SECONDS)
    still_open = shifts_repo.insert(subject_id="bob", guild_id=GUILD, start_time=now - 90 * DAY_SECONDS)

    assert shift_service.purge_old_shifts() == 1
    assert shifts_repo.get_by_id(old.id) is None
    assert shifts_repo.get_by_id(recent.id) is not None
    assert shifts_repo.get_by_id(still_open.id) is not None


def test_shifts_for_subject_newest_first(shift_service, clock):
    for unit in ("Patrol", "SWAT", "Patrol"):
        shift_service.toggle_shift("alice", GUILD, unit)
        clock.advance(100)
        shift_service.toggle_shift("alice", GUILD)
        clock.advance(100)

    rows = shift_service.shifts_for_subject("alice", GUILD)
    assert [s.start_time for s in rows] == sorted((s.start_time for s in rows), reverse=True)
    assert len(shift_service.shifts_for_subject("alice", GUILD, limit=2)) == 2
    assert [s.unit for s in shift_service.shifts_for_subject("alice", GUILD, unit="SWAT")] == ["SWAT"]
    assert list(shift_service.units(GUILD)) == ["Patrol", "SWAT"]


def test_change_listener_is_notified_and_failures_are_contained(shift_service):
    seen = []

    def listener(event):
        seen.append(event)
        raise RuntimeError("publisher down")

    shift_service.set_change_listener(listener)

    result = shift_service.toggle_shift("alice", GUILD, "Patrol")

    assert result.action == ToggleAction.STARTED
    assert [(e.kind, e.guild_id, e.subject_id) for e in seen] == [(ShiftEventKind.SHIFT_STARTED, GUILD, "alice")]
    assert seen[0].shift == result.shift


def test_concurrent_toggles_never_leave_two_open_shifts(shift_service, shifts_repo):
    results = []
    errors = []
    barrier = threading.Barrier(16)

    def worker():
        barrier.wait()
        try:
            results.append(shift_service.toggle_shift("alice", GUILD, "Patrol").action)
        except Exception as exc:
            errors.append(exc)

    threads = [threading.Thread(target=worker) for _ in range(16)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    open_shifts = [s for s in shifts_repo.list_open(GUILD) if s.subject_id == "alice"]
    assert len(open_shifts) <= 1
    started = results.count(ToggleAction.STARTED)
    ended = results.count(ToggleAction.ENDED)
    assert started - ended == len(open_shifts)


def test_store_rejects_second_open_shift_from_another_writer(shifts_repo):
    shifts_repo.create_open(subject_id="alice", guild_id=GUILD, start_time=1, unit="Patrol")

    with pytest.raises(ConflictError):
        shifts_repo.create_open(subject_id="alice", guild_id=GUILD, start_time=2, unit="Patrol")


def test_non_text_unit_and_proof_url_are_rejected(shift_service):
    with pytest.raises(ValidationError, match="must be a string"):
        shift_service.toggle_shift("alice", GUILD, 5)
    with pytest.raises(ValidationError, match="must be a string"):
        shift_service.toggle_shift("alice", GUILD, "Patrol", proof_url=5)
    with pytest.raises(ValidationError, match="must be a string"):
        shift_service.toggle_shift("alice", GUILD, "Patrol", reason=["late"])
    assert shift_service.active_shift("alice", GUILD) is None


@pytest.mark.parametrize("offset", [521, -521, 10**8])
def test_week_offset_is_bounded(shift_service, offset):
    with pytest.raises(ValidationError):
        shift_service.week_window(GUILD, offset)


def test_week_offset_limit_is_accepted(shift_service):
    this_week = shift_service.week_window(GUILD)

    assert shift_service.week_window(GUILD, 520).start > this_week.start
    assert shift_service.week_window(GUILD, -520).start < this_week.start


def test_admin_changes_carry_actor_and_reason(shift_service, clock):
    seen = []
    shift_service.set_change_listener(seen.append)
    shift = _closed_shift(shift_service, clock)

    shift_service.adjust_shift(shift.id, -600, actor_id="admin", reason="  left early  ")
    shift_service.delete_shift(shift.id, actor_id="admin", reason="duplicate")

    adjusted, deleted = seen[-2:]
    assert adjusted.kind == ShiftEventKind.SHIFT_ADJUSTED
    assert (adjusted.actor_id, adjusted.reason, adjusted.delta_seconds) == ("admin", "left early", -600)
    assert adjusted.effective_seconds == 3000
    assert adjusted.forced
    assert deleted.kind == ShiftEventKind.SHIFT_DELETED
    assert (deleted.subject_id, deleted.reason, deleted.shift.id) == ("alice", "duplicate", shift.id)


def test_own_toggle_is_not_forced(shift_service):
    seen = []
    shift_service.set_change_listener(seen.append)

    shift_service.toggle_shift("alice", GUILD, "Patrol", actor_id="alice")
    shift_service.toggle_break("alice", GUILD, actor_id="bob", reason="radio check")

    assert not seen[0].forced
    assert seen[1].kind == ShiftEventKind.BREAK_STARTED
    assert seen[1].forced
    assert seen[1].brk.shift_id == seen[0].shift.id


def test_weekly_reset_reports_count(shift_service, clock):
    seen = []
    _closed_shift(shift_service, clock)
    _closed_shift(shift_service, clock)
    shift_service.set_change_listener(seen.append)

    assert shift_service.clear_weekly_shifts(GUILD, actor_id="admin", reason="new week") == 2

    assert [(e.kind, e.count, e.reason) for e in seen] == [(ShiftEventKind.WEEK_CLEARED, 2, "new week")]


def test_random_shift_and_break_toggles_keep_one_open_break_on_the_open_shift(shift_service, shifts_repo, breaks_repo):
    errors = []
    barrier = threading.Barrier(12)

    def worker(seed):
        rng = random.Random(seed)
        barrier.wait()
        for _ in range(20):
            try:
                if rng.random() < 0.5:
                    shift_service.toggle_shift("alice", GUILD, "Patrol")
                else:
                    shift_service.toggle_break("alice", GUILD)
            except ConflictError as exc:
                if str(exc) != "No active shift":
                    errors.append(exc)
            except Exception as exc:
                errors.append(exc)

    threads = [threading.Thread(target=worker, args=(seed,)) for seed in range(12)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    open_shifts = [s for s in shifts_repo.list_open(GUILD) if s.subject_id == "alice"]
    open_breaks = [b for b in breaks_repo.list_open_for_guild(GUILD) if b.subject_id == "alice"]
    assert len(open_shifts) <= 1
    assert len(open_breaks) <= 1
    if open_breaks:
        assert open_shifts and open_breaks[0].shift_id == open_shifts[0].id

    for shift in shift_service.shifts_for_subject("alice", GUILD, limit=1000):
        if shift.end_time is not None:
            assert all(b.end_time is not None for b in breaks_repo.list_for_shift(shift.id))
