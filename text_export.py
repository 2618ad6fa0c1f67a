from __future__ import annotations
import logging
from datetime import date
from typing import List
from models import TimetableEntry

logger = logging.getLogger(__name__)


def timetable_to_text(entries: List[TimetableEntry], profile: str, day: date) -> str:
    if not entries:
        raise ValueError("No timetable to export.")
    lines = [f"Timetable for: {profile} — {day.isoformat()}"]
    lines.extend(e.render() for e in entries)
    logger.info("Exported %d timetable lines for %r", len(entries), profile)
    return "\n".join(lines) + "\n"
