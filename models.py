from __future__ import annotations
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field
from datetime import date, time
from typing import List, Optional, Tuple


class EntryKind(str, Enum):
    STUDY = "Study"
    BREAK = "Break"


class SegmentKind(str, Enum):
    WORK = "Work"
    BREAK = "Break"


class TimerPhase(str, Enum):
    IDLE = "Idle"
    RUNNING = "Running"
    COMPLETED = "Completed"


class Subject(BaseModel):
    id: str
    name: str = Field(min_length=1)
    hours_needed: float = Field(ge=0)
    urgency: int = Field(ge=1, le=5)
    completion_percent: float = Field(ge=0, le=100, default=0.0)


class TimetableEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    start: time
    end: time
    label: str
    kind: EntryKind
    subject_id: Optional[str] = None

    @property
    def minutes(self) -> int:
        return (self.end.hour * 60 + self.end.minute) - (self.start.hour * 60 + self.start.minute)

    def render(self) -> str:
        return f"{format_clock(self.start)} - {format_clock(self.end)} | {self.label}"


class PomodoroSegment(BaseModel):
    model_config = ConfigDict(frozen=True)

    duration_seconds: int
    kind: SegmentKind


class PomodoroRunState(BaseModel):
    model_config = ConfigDict(frozen=True)

    plan: Tuple[PomodoroSegment, ...] = ()
    plan_index: int = 0
    seconds_left: int = 0
    running: bool = False
    phase: TimerPhase = TimerPhase.IDLE

    @property
    def current_kind(self) -> Optional[SegmentKind]:
        if 0 <= self.plan_index < len(self.plan):
            return self.plan[self.plan_index].kind
        return None


class ManualTimerState(BaseModel):
    model_config = ConfigDict(frozen=True)

    start_instant: Optional[float] = None
    running: bool = False
    elapsed_seconds: int = 0


class TimerUpdate(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str
    running: bool
    seconds_left: int = 0
    kind: Optional[SegmentKind] = None
    elapsed_seconds: Optional[int] = None


class Settings(BaseModel):
    daily_hours: float = Field(ge=0.5, le=16, default=4.0)
    use_pomodoro_blocks: bool = True
    pomodoro_work_minutes: int = Field(ge=1, le=180, default=25)
    pomodoro_break_minutes: int = Field(ge=0, le=60, default=5)
    pomodoro_rounds: int = Field(ge=1, le=12, default=4)


class AppState(BaseModel):
    subjects: List[Subject] = Field(default_factory=list)
    timetable: List[TimetableEntry] = Field(default_factory=list)
    settings: Settings = Field(default_factory=Settings)
    last_generated_on: Optional[date] = None
    profile: str = "default"


def format_clock(value: time) -> str:
    return value.strftime("%I:%M %p")
