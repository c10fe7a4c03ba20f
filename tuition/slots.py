"""Parsing and normalisation of weekly slot fields coming off the wire."""
import re
from flask import current_app
from tuition import db
from tuition.errors import InvalidInput, NotFound
from tuition.models import WEEKDAYS, TimeSlot

_DAY_LOOKUP = {}
for _d in WEEKDAYS:
    _DAY_LOOKUP[_d.lower()] = _d
    _DAY_LOOKUP[_d[:3].lower()] = _d

_TIME_RE = re.compile(r'^(\d{1,2}):(\d{2})(?::\d{2})?$')


def normalize_day(value) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidInput('Each schedule must have a day and time')
    day = _DAY_LOOKUP.get(value.strip().lower())
    if day is None:
        raise InvalidInput(f"Invalid day '{value}'")
    if day in ('Saturday', 'Sunday') and not current_app.config.get('ALLOW_WEEKEND_SESSIONS', True):
        raise InvalidInput(f"Weekend sessions are disabled ({day})")
    return day


def normalize_time(value) -> str:
    """Return ``HH:MM`` for ``H:MM``, ``HH:MM:SS`` or a ``start - end`` range."""
    if not isinstance(value, str) or not value.strip():
        raise InvalidInput('Each schedule must have a day and time')
    text = value.strip()
    # Ranges such as "10:00-11:00" collide on their start time
    if '-' in text:
        text = text.split('-', 1)[0].strip()
    m = _TIME_RE.match(text)
    if not m:
        raise InvalidInput(f"Invalid time '{value}', expected HH:MM")
    hours, minutes = int(m.group(1)), int(m.group(2))
    if hours > 23 or minutes > 59:
        raise InvalidInput(f"Invalid time '{value}', expected HH:MM")
    return f"{hours:02d}:{minutes:02d}"


def to_minutes(hhmm: str) -> int:
    hours, minutes = hhmm.split(':')
    return int(hours) * 60 + int(minutes)


def coerce_id(value, field):
    """Ids arrive as ints or numeric strings; blank means absent."""
    if value is None or value == '':
        return None
    if isinstance(value, bool):
        raise InvalidInput(f"Invalid {field}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InvalidInput(f"Invalid {field}")


def resolve_time(entry):
    """Return (time, time_slot) for a payload carrying ``time`` and/or ``timeSlotId``.

    A referenced time slot wins: its start time is the stored ``time``.
    """
    slot_id = coerce_id(entry.get('timeSlotId'), 'timeSlotId')
    if slot_id is not None:
        slot = db.session.get(TimeSlot, slot_id)
        if slot is None:
            raise NotFound('Time slot not found')
        return slot.start_time, slot
    return normalize_time(entry.get('time')), None
