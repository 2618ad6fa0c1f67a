from __future__ import annotations
import logging
from datetime import date, datetime
from typing import List
from icalendar import Calendar, Event as IcsEvent
from models import EntryKind, TimetableEntry

logger = logging.getLogger(__name__)


def timetable_to_ics(entries: List[TimetableEntry], day: date) -> bytes:
    """
    One VEVENT per entry on `day`. Times are written as floating local
    times so the blocks land at the same clock hours in any calendar.
    """
    cal = Calendar()
    cal.add("PRODID", "-//Study Timetable//Local//")
    cal.add("version", "2.0")
    cal.add("X-WR-CALNAME", "Study Timetable")

    for i, entry in enumerate(entries):
        start_time = datetime.combine(day, entry.start)
        end_time = datetime.combine(day, entry.end)

        event = IcsEvent()
        event.add("uid", f"{start_time.strftime('%Y%m%dT%H%M')}-{i:03d}@study-timetable")
        if entry.kind == EntryKind.BREAK:
            event.add("summary", "Break")
        else:
            event.add("summary", f"Study: {entry.label}")
        event.add("dtstart", start_time)
        event.add("dtend", end_time)
        event.add("description", f"{entry.minutes} minutes ({entry.kind.value.lower()}).")
        cal.add_component(event)

    logger.info("Exported %d timetable entries to ICS for %s", len(entries), day.isoformat())
    return cal.to_ical()
