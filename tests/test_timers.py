"""
Tests for the Pomodoro sequencer and the manual elapsed timer.
"""

import threading

import pytest

from models import ManualTimerState, PomodoroRunState, SegmentKind, TimerPhase
from timers import (
    ManualTimer,
    PomodoroSequencer,
    build_pomodoro_plan,
    format_countdown,
    format_elapsed,
    manual_tick,
    pomodoro_start,
    pomodoro_stop,
    pomodoro_tick,
)


class FakeClock:
    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds=1.0):
        self.now += seconds


class Recorder:
    def __init__(self):
        self.updates = []
        self.completions = []

    def on_update(self, update):
        self.updates.append(update)

    def on_complete(self, *args):
        self.completions.append(args)

    @property
    def texts(self):
        return [u.text for u in self.updates]


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture
def sequencer(recorder):
    return PomodoroSequencer(on_update=recorder.on_update, on_complete=recorder.on_complete)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def manual(clock, recorder):
    return ManualTimer(clock=clock, on_update=recorder.on_update, on_complete=recorder.on_complete)


class TestFormatting:
    @pytest.mark.parametrize(
        "seconds, expected",
        [(0, "00:00"), (59, "00:59"), (1500, "25:00"), (3599, "59:59"),
         (3600, "01:00:00"), (5400, "01:30:00"), (-5, "00:00")],
    )
    def test_countdown(self, seconds, expected):
        assert format_countdown(seconds) == expected

    @pytest.mark.parametrize(
        "seconds, expected",
        [(0, "00:00:00"), (125, "00:02:05"), (3725, "01:02:05")],
    )
    def test_elapsed(self, seconds, expected):
        assert format_elapsed(seconds) == expected


class TestPlan:
    def test_three_rounds(self):
        plan = build_pomodoro_plan(25, 5, 3)
        assert [(s.kind, s.duration_seconds) for s in plan] == [
            (SegmentKind.WORK, 1500),
            (SegmentKind.BREAK, 300),
            (SegmentKind.WORK, 1500),
            (SegmentKind.BREAK, 300),
            (SegmentKind.WORK, 1500),
        ]

    def test_single_round_has_no_break(self):
        plan = build_pomodoro_plan(50, 10, 1)
        assert len(plan) == 1
        assert plan[0].kind == SegmentKind.WORK

    @pytest.mark.parametrize("rounds", [0, -2])
    def test_non_positive_rounds_give_empty_plan(self, rounds):
        assert build_pomodoro_plan(25, 5, rounds) == ()


class TestPomodoroSteps:
    def test_tick_while_idle_is_noop(self):
        state = PomodoroRunState()
        new_state, updates, completed = pomodoro_tick(state)
        assert new_state == state
        assert updates == []
        assert completed is False

    def test_start_is_guarded(self):
        state, _ = pomodoro_start(PomodoroRunState(), build_pomodoro_plan(25, 5, 2))
        again, updates = pomodoro_start(state, build_pomodoro_plan(10, 1, 1))
        assert again is state
        assert updates == []

    def test_stop_resets_countdown(self):
        state, _ = pomodoro_start(PomodoroRunState(), build_pomodoro_plan(25, 5, 2))
        stopped, updates = pomodoro_stop(state)
        assert stopped.running is False
        assert stopped.seconds_left == 0
        assert stopped.phase == TimerPhase.IDLE
        assert [u.text for u in updates] == ["00:00"]


class TestPomodoroSequencer:
    def test_start_emits_first_segment(self, sequencer, recorder):
        assert sequencer.start(25, 5, 3) is True
        assert sequencer.is_running
        assert recorder.texts == ["25:00"]
        assert recorder.updates[0].kind == SegmentKind.WORK
        sequencer.tick()
        assert recorder.texts[-1] == "24:59"

    def test_hour_long_work_uses_hours(self, sequencer, recorder):
        sequencer.start(90, 5, 1)
        assert recorder.texts == ["01:30:00"]

    def test_start_while_running_is_noop(self, sequencer, recorder):
        sequencer.start(25, 5, 3)
        assert sequencer.start(10, 1, 1) is False
        assert len(sequencer.plan) == 5
        assert recorder.texts == ["25:00"]

    def test_segment_handover(self, sequencer, recorder):
        sequencer.start(25, 5, 3)
        for _ in range(1500):
            sequencer.tick()
        assert recorder.texts[-1] == "00:00"
        assert sequencer.state.plan_index == 0

        recorder.updates.clear()
        sequencer.tick()
        assert recorder.texts == ["05:00", "04:59"]
        assert sequencer.state.plan_index == 1
        assert recorder.updates[-1].kind == SegmentKind.BREAK

    def test_full_run_completes_on_last_tick(self, sequencer, recorder):
        sequencer.start(25, 5, 3)
        completed_at = []
        for n in range(1, 5101):
            if sequencer.tick():
                completed_at.append(n)

        assert completed_at == [5100]
        assert len(recorder.completions) == 1
        assert sequencer.is_running is False
        assert sequencer.state.phase == TimerPhase.IDLE
        assert recorder.texts[-1] == "00:00"

    def test_ticks_after_completion_do_nothing(self, sequencer, recorder):
        sequencer.start(1, 0, 1)
        for _ in range(60):
            sequencer.tick()
        assert len(recorder.completions) == 1
        count = len(recorder.updates)

        assert sequencer.tick() is False
        sequencer.stop()
        sequencer.stop()
        assert len(recorder.updates) == count
        assert len(recorder.completions) == 1

    def test_empty_plan_completes_on_first_tick(self, sequencer, recorder):
        sequencer.start(25, 5, 0)
        assert sequencer.is_running
        assert sequencer.tick() is True
        assert len(recorder.completions) == 1
        assert sequencer.is_running is False

    def test_stop_before_start_is_safe(self, sequencer, recorder):
        sequencer.stop()
        assert recorder.updates == []

    def test_double_stop(self, sequencer, recorder):
        sequencer.start(25, 5, 3)
        sequencer.tick()
        sequencer.stop()
        sequencer.stop()
        assert recorder.texts == ["25:00", "24:59", "00:00"]
        assert recorder.completions == []

    def test_restart_after_stop(self, sequencer, recorder):
        sequencer.start(25, 5, 3)
        sequencer.stop()
        assert sequencer.start(10, 2, 2) is True
        assert recorder.texts[-1] == "10:00"
        assert len(sequencer.plan) == 3

    def test_zero_break_still_advances(self, sequencer, recorder):
        sequencer.start(1, 0, 2)
        ticks = 0
        while sequencer.is_running and ticks < 500:
            sequencer.tick()
            ticks += 1
        # 60 + one tick through the empty break + 60
        assert ticks == 121
        assert len(recorder.completions) == 1


class TestTimerSerialization:
    def test_second_tick_waits_for_first_to_finish_emitting(self):
        entered = threading.Event()
        release = threading.Event()
        texts = []

        def on_update(update):
            texts.append(update.text)
            if update.text == "24:59":
                entered.set()
                release.wait(timeout=5)

        sequencer = PomodoroSequencer(on_update=on_update)
        sequencer.start(25, 5, 3)

        first = threading.Thread(target=sequencer.tick)
        first.start()
        assert entered.wait(timeout=5)

        second = threading.Thread(target=sequencer.tick)
        second.start()
        second.join(timeout=0.2)
        assert second.is_alive()
        assert sequencer.state.seconds_left == 1499

        release.set()
        first.join(timeout=5)
        second.join(timeout=5)
        assert texts == ["25:00", "24:59", "24:58"]
        assert sequencer.state.seconds_left == 1498

    def test_completion_callback_can_restart(self):
        sequencer = PomodoroSequencer()
        sequencer.on_complete = lambda: sequencer.start(2, 0, 1)
        sequencer.start(1, 0, 1)
        for _ in range(60):
            sequencer.tick()

        assert sequencer.is_running
        assert sequencer.state.phase == TimerPhase.RUNNING
        assert sequencer.state.seconds_left == 120

    def test_update_callback_can_stop(self, recorder):
        sequencer = PomodoroSequencer()

        def on_update(update):
            recorder.on_update(update)
            if update.text == "24:58":
                sequencer.stop()

        sequencer.on_update = on_update
        sequencer.start(25, 5, 3)
        sequencer.tick()
        sequencer.tick()
        assert sequencer.is_running is False
        assert recorder.texts == ["25:00", "24:59", "24:58", "00:00"]

    def test_manual_completion_callback_can_stop_again(self, clock):
        results = []
        timer = ManualTimer(clock=clock)
        timer.on_complete = lambda elapsed: results.append((elapsed, timer.stop()))
        timer.start()
        clock.advance(7)
        assert timer.stop() == 7
        assert results == [(7, 0)]


class TestManualTimer:
    def test_counts_elapsed_seconds(self, manual, clock, recorder):
        assert manual.start() is True
        assert recorder.texts == ["00:00:00"]

        for _ in range(125):
            clock.advance(1)
            manual.tick()
        assert recorder.texts[-1] == "00:02:05"
        assert manual.formatted == "00:02:05"

        assert manual.stop() == 125
        assert recorder.completions == [(125,)]
        assert recorder.texts[-1] == "00:00:00"
        assert manual.is_running is False

    def test_start_while_running_keeps_instant(self, manual, clock):
        manual.start()
        started = manual.state.start_instant
        clock.advance(10)
        assert manual.start() is False
        assert manual.state.start_instant == started

    def test_stop_when_idle_returns_zero(self, manual, recorder):
        assert manual.stop() == 0
        assert recorder.updates == []
        assert recorder.completions == []

    def test_double_stop(self, manual, clock, recorder):
        manual.start()
        clock.advance(42)
        assert manual.stop() == 42
        assert manual.stop() == 0
        assert recorder.completions == [(42,)]

    def test_partial_seconds_are_floored(self):
        state = ManualTimerState(start_instant=10.5, running=True)
        new_state, updates = manual_tick(state, 11.2)
        assert new_state.elapsed_seconds == 0
        assert updates[0].text == "00:00:00"

    def test_tick_while_idle_emits_nothing(self, manual, recorder):
        manual.tick()
        assert recorder.updates == []
