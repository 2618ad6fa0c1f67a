from __future__ import annotations
import logging
import math
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Dict, List, Sequence
from models import EntryKind, Subject, TimetableEntry

logger = logging.getLogger(__name__)

DAY_START = time(hour=7)
MIN_BUDGET_MINUTES = 30
MAX_BUDGET_MINUTES = 16 * 60
MIN_BLOCK_MINUTES = 15
MAX_PLAIN_BLOCK_MINUTES = 60
POMODORO_WORK_MINUTES = 25
POMODORO_BREAK_MINUTES = 5
POMODORO_MARKER = " (Pomodoro)"
BREAK_LABEL = "Break"

# remaining hours at or below this count as finished
DONE_EPSILON = 0.01


@dataclass
class ScheduleTask:
    subject: Subject
    remaining_hours: float
    weight: float


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def remaining_hours(s: Subject) -> float:
    rem = s.hours_needed * (1.0 - s.completion_percent / 100.0)
    if math.isnan(rem):
        return 0.0
    return max(0.0, rem)


def clamp_budget_minutes(daily_hours: float) -> float:
    minutes = daily_hours * 60
    if math.isnan(minutes):
        return float(MIN_BUDGET_MINUTES)
    return max(float(MIN_BUDGET_MINUTES), min(minutes, float(MAX_BUDGET_MINUTES)))


def _build_tasks(subjects: Sequence[Subject]) -> List[ScheduleTask]:
    tasks: List[ScheduleTask] = []
    for s in subjects:
        rem = remaining_hours(s)
        if rem <= 0:
            continue
        tasks.append(ScheduleTask(
            subject=s,
            remaining_hours=rem,
            weight=rem * (1.0 + s.urgency / 5.0),
        ))
    return tasks


def generate_timetable(
    subjects: Sequence[Subject],
    daily_hours: float,
    use_pomodoro_blocks: bool,
) -> List[TimetableEntry]:
    """
    Lay out one day of study blocks starting at 07:00.

    Tasks live in a fixed arena; `order` holds arena positions and is
    re-sorted after every emitted block. The pick is `order[index % len]`,
    so a finished task is retired by rebuilding `order` without advancing
    the index.
    """
    arena = _build_tasks(subjects)
    if not arena:
        return []

    available = clamp_budget_minutes(daily_hours)

    # initial tie-break is weight; later passes use weight * remaining
    order = sorted(
        range(len(arena)),
        key=lambda i: (-arena[i].subject.urgency, -arena[i].weight),
    )

    cursor = datetime.combine(date.min, DAY_START)
    index = 0
    entries: List[TimetableEntry] = []

    while available >= MIN_BLOCK_MINUTES and order:
        pos = index % len(order)
        chosen = arena[order[pos]]
        if chosen.remaining_hours <= DONE_EPSILON:
            order = order[:pos] + order[pos + 1:]
            continue

        if use_pomodoro_blocks:
            block = POMODORO_WORK_MINUTES
        else:
            block = min(MAX_PLAIN_BLOCK_MINUTES, _round_half_up(available))

        remaining_minutes = chosen.remaining_hours * 60.0
        if remaining_minutes < block:
            block = max(MIN_BLOCK_MINUTES, _round_half_up(remaining_minutes))
        if block > available:
            block = int(math.floor(available))

        end = cursor + timedelta(minutes=block)
        label = chosen.subject.name + (POMODORO_MARKER if use_pomodoro_blocks else "")
        entries.append(TimetableEntry(
            start=cursor.time(),
            end=end.time(),
            label=label,
            kind=EntryKind.STUDY,
            subject_id=getattr(chosen.subject, "id", None),
        ))

        cursor = end
        available -= block
        chosen.remaining_hours -= block / 60.0

        if use_pomodoro_blocks and available >= POMODORO_BREAK_MINUTES:
            break_end = cursor + timedelta(minutes=POMODORO_BREAK_MINUTES)
            entries.append(TimetableEntry(
                start=cursor.time(),
                end=break_end.time(),
                label=BREAK_LABEL,
                kind=EntryKind.BREAK,
            ))
            cursor = break_end
            available -= POMODORO_BREAK_MINUTES

        index += 1
        order.sort(key=lambda i: (
            -arena[i].subject.urgency,
            -(arena[i].weight * arena[i].remaining_hours),
        ))

    logger.debug(
        "Generated %d timetable entries for %d subjects (%.0f minutes unused)",
        len(entries), len(arena), available,
    )
    return entries


def _subject_label(entry: TimetableEntry) -> str:
    if entry.label.endswith(POMODORO_MARKER):
        return entry.label[: -len(POMODORO_MARKER)]
    return entry.label


def summarize_timetable(entries: Sequence[TimetableEntry]) -> dict:
    per_subject: Dict[str, int] = {}
    study_minutes = 0
    break_minutes = 0
    blocks = 0
    for e in entries:
        if e.kind == EntryKind.BREAK:
            break_minutes += e.minutes
            continue
        blocks += 1
        study_minutes += e.minutes
        name = _subject_label(e)
        per_subject[name] = per_subject.get(name, 0) + e.minutes

    return {
        "blocks": blocks,
        "study_minutes": study_minutes,
        "break_minutes": break_minutes,
        "per_subject": per_subject,
    }
