from __future__ import annotations
import logging
import math
import threading
import time
from typing import Callable, List, Optional, Sequence, Tuple
from models import (
    ManualTimerState,
    PomodoroRunState,
    PomodoroSegment,
    SegmentKind,
    TimerPhase,
    TimerUpdate,
)

logger = logging.getLogger(__name__)

UpdateCallback = Callable[[TimerUpdate], None]


def format_countdown(seconds: int) -> str:
    s = max(0, int(seconds))
    hrs, rest = divmod(s, 3600)
    mins, secs = divmod(rest, 60)
    if hrs > 0:
        return f"{hrs:02d}:{mins:02d}:{secs:02d}"
    return f"{mins:02d}:{secs:02d}"


def format_elapsed(seconds: int) -> str:
    s = max(0, int(seconds))
    hrs, rest = divmod(s, 3600)
    mins, secs = divmod(rest, 60)
    return f"{hrs:02d}:{mins:02d}:{secs:02d}"


# ---------- Pomodoro ----------

def build_pomodoro_plan(
    work_minutes: int,
    break_minutes: int,
    rounds: int,
) -> Tuple[PomodoroSegment, ...]:
    segments: List[PomodoroSegment] = []
    for i in range(rounds):
        segments.append(PomodoroSegment(duration_seconds=work_minutes * 60, kind=SegmentKind.WORK))
        if i < rounds - 1:
            segments.append(PomodoroSegment(duration_seconds=break_minutes * 60, kind=SegmentKind.BREAK))
    return tuple(segments)


def _pomodoro_update(state: PomodoroRunState) -> TimerUpdate:
    return TimerUpdate(
        text=format_countdown(state.seconds_left),
        running=state.running,
        seconds_left=max(0, state.seconds_left),
        kind=state.current_kind,
    )


def pomodoro_start(
    state: PomodoroRunState,
    plan: Sequence[PomodoroSegment],
) -> Tuple[PomodoroRunState, List[TimerUpdate]]:
    if state.running:
        return state, []
    plan = tuple(plan)
    new_state = PomodoroRunState(
        plan=plan,
        plan_index=0,
        seconds_left=plan[0].duration_seconds if plan else 0,
        running=True,
        phase=TimerPhase.RUNNING,
    )
    return new_state, [_pomodoro_update(new_state)]


def pomodoro_stop(state: PomodoroRunState) -> Tuple[PomodoroRunState, List[TimerUpdate]]:
    if not state.running:
        return state, []
    new_state = state.model_copy(update={
        "seconds_left": 0,
        "running": False,
        "phase": TimerPhase.IDLE,
    })
    return new_state, [_pomodoro_update(new_state)]


def _complete(
    state: PomodoroRunState,
    updates: List[TimerUpdate],
) -> Tuple[PomodoroRunState, List[TimerUpdate], bool]:
    stopped, stop_updates = pomodoro_stop(state)
    return stopped.model_copy(update={"phase": TimerPhase.COMPLETED}), updates + stop_updates, True


def pomodoro_tick(state: PomodoroRunState) -> Tuple[PomodoroRunState, List[TimerUpdate], bool]:
    """
    Advance the run by one second.

    Returns the new state, the display updates to emit, and whether the run
    finished on this tick. The last segment finishes as soon as it reaches
    zero; earlier segments hand over on the tick after they hit zero.
    """
    if not state.running:
        return state, [], False

    updates: List[TimerUpdate] = []
    if state.seconds_left <= 0:
        next_index = state.plan_index + 1
        if next_index >= len(state.plan):
            return _complete(state.model_copy(update={"plan_index": next_index}), updates)
        state = state.model_copy(update={
            "plan_index": next_index,
            "seconds_left": state.plan[next_index].duration_seconds,
        })
        updates.append(_pomodoro_update(state))

    state = state.model_copy(update={"seconds_left": state.seconds_left - 1})
    updates.append(_pomodoro_update(state))

    if state.seconds_left <= 0 and state.plan_index >= len(state.plan) - 1:
        return _complete(state, updates)
    return state, updates, False


class PomodoroSequencer:
    """
    Owns one Pomodoro run and pushes its updates to observers.

    `start`, `tick` and `stop` each hold the timer's lock until their
    updates and completion callback have been delivered, so observers see
    one operation at a time. The lock is re-entrant: callbacks may call
    back into the sequencer from the same thread.
    """

    def __init__(
        self,
        on_update: Optional[UpdateCallback] = None,
        on_complete: Optional[Callable[[], None]] = None,
    ):
        self.on_update = on_update
        self.on_complete = on_complete
        self._state = PomodoroRunState()
        self._lock = threading.RLock()

    @property
    def state(self) -> PomodoroRunState:
        return self._state

    @property
    def plan(self) -> Tuple[PomodoroSegment, ...]:
        return self._state.plan

    @property
    def is_running(self) -> bool:
        return self._state.running

    def start(self, work_minutes: int, break_minutes: int, rounds: int) -> bool:
        with self._lock:
            if self._state.running:
                return False
            plan = build_pomodoro_plan(work_minutes, break_minutes, rounds)
            self._state, updates = pomodoro_start(self._state, plan)
            logger.info(
                "Pomodoro started: %d segments (%d/%d x %d)",
                len(plan), work_minutes, break_minutes, rounds,
            )
            self._emit(updates)
            return True

    def tick(self) -> bool:
        with self._lock:
            self._state, updates, completed = pomodoro_tick(self._state)
            self._emit(updates)
            if completed:
                logger.info("Pomodoro run complete")
                if self.on_complete:
                    self.on_complete()
                if self._state.phase == TimerPhase.COMPLETED:
                    self._state = self._state.model_copy(update={"phase": TimerPhase.IDLE})
            return completed

    def stop(self) -> None:
        with self._lock:
            self._state, updates = pomodoro_stop(self._state)
            self._emit(updates)

    def _emit(self, updates: List[TimerUpdate]) -> None:
        if not self.on_update:
            return
        for update in updates:
            self.on_update(update)


# ---------- Manual timer ----------

def _elapsed_between(start: Optional[float], now: float) -> int:
    if start is None:
        return 0
    return max(0, int(math.floor(now - start)))


def manual_start(state: ManualTimerState, now: float) -> Tuple[ManualTimerState, List[TimerUpdate]]:
    if state.running:
        return state, []
    new_state = ManualTimerState(start_instant=now, running=True, elapsed_seconds=0)
    return new_state, [TimerUpdate(text=format_elapsed(0), running=True, elapsed_seconds=0)]


def manual_tick(state: ManualTimerState, now: float) -> Tuple[ManualTimerState, List[TimerUpdate]]:
    if not state.running:
        return state, []
    elapsed = _elapsed_between(state.start_instant, now)
    new_state = state.model_copy(update={"elapsed_seconds": elapsed})
    return new_state, [TimerUpdate(text=format_elapsed(elapsed), running=True, elapsed_seconds=elapsed)]


def manual_stop(state: ManualTimerState, now: float) -> Tuple[ManualTimerState, List[TimerUpdate], int]:
    if not state.running:
        return state, [], 0
    elapsed = _elapsed_between(state.start_instant, now)
    reset = TimerUpdate(text=format_elapsed(0), running=False, elapsed_seconds=0)
    return ManualTimerState(), [reset], elapsed


class ManualTimer:
    """Free-running elapsed counter; `clock` returns seconds as a float."""

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        on_update: Optional[UpdateCallback] = None,
        on_complete: Optional[Callable[[int], None]] = None,
    ):
        self.clock = clock
        self.on_update = on_update
        self.on_complete = on_complete
        self._state = ManualTimerState()
        # held through emission, like PomodoroSequencer
        self._lock = threading.RLock()

    @property
    def state(self) -> ManualTimerState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state.running

    @property
    def formatted(self) -> str:
        return format_elapsed(self._state.elapsed_seconds)

    def start(self) -> bool:
        with self._lock:
            if self._state.running:
                return False
            self._state, updates = manual_start(self._state, self.clock())
            self._emit(updates)
            return True

    def tick(self) -> None:
        with self._lock:
            self._state, updates = manual_tick(self._state, self.clock())
            self._emit(updates)

    def stop(self) -> int:
        with self._lock:
            if not self._state.running:
                return 0
            self._state, updates, elapsed = manual_stop(self._state, self.clock())
            logger.info("Manual timer stopped after %s", format_elapsed(elapsed))
            if self.on_complete:
                self.on_complete(elapsed)
            self._emit(updates)
            return elapsed

    def _emit(self, updates: List[TimerUpdate]) -> None:
        if not self.on_update:
            return
        for update in updates:
            self.on_update(update)
