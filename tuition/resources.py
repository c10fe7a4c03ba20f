"""Rooms and time slots: the fixed grid classes are scheduled onto."""
import logging
from collections.abc import Mapping

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from tuition import db
from tuition.activity import log_activity
from tuition.errors import InvalidInput, ScheduleConflict, StorageError
from tuition.models import Room, TimeSlot
from tuition.slots import normalize_time, to_minutes

logger = logging.getLogger(__name__)


def _save(obj, what):
    db.session.add(obj)
    try:
        db.session.commit()
    except IntegrityError as e:
        db.session.rollback()
        raise ScheduleConflict(f"A {what} with these details already exists") from e
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.exception(f"Error creating {what}")
        raise StorageError(f"Failed to create {what}") from e
    return obj


def list_rooms():
    return Room.query.order_by(Room.name.asc()).all()


def create_room(payload, actor=None):
    if not isinstance(payload, Mapping):
        raise InvalidInput('Invalid request format')
    name = payload.get('name')
    if not isinstance(name, str) or not name.strip():
        raise InvalidInput('Room name is required')
    name = name.strip()
    existing = Room.query.filter(func.lower(Room.name) == name.lower()).first()
    if existing:
        raise ScheduleConflict('A room with this name already exists. Room names must be unique.')
    capacity = payload.get('capacity')
    try:
        capacity = int(capacity) if capacity not in (None, '') else None
    except (TypeError, ValueError):
        raise InvalidInput('Room capacity must be a number')
    room = Room(
        name=name,
        capacity=capacity,
        building=payload.get('building') or '',
        floor=str(payload.get('floor') or ''),
        features=payload.get('features') or '',
    )
    _save(room, 'room')
    logger.info(f"Room created: {room.name}")
    log_activity('CREATE', 'ROOM', room.id, f"Admin created a new room: {room.name}", actor)
    return room


def list_time_slots():
    return TimeSlot.query.order_by(TimeSlot.start_time.asc()).all()


def create_time_slot(payload, actor=None):
    if not isinstance(payload, Mapping) or not payload.get('startTime') or not payload.get('endTime'):
        raise InvalidInput('Start time and end time are required')
    start = normalize_time(payload['startTime'])
    end = normalize_time(payload['endTime'])
    new_start, new_end = to_minutes(start), to_minutes(end)
    if new_start >= new_end:
        raise InvalidInput('End time must be after start time.')
    label = (payload.get('label') or '').strip() or f"{start} - {end}"

    if TimeSlot.query.filter(func.lower(TimeSlot.label) == label.lower()).first():
        raise ScheduleConflict('A time slot with this label already exists. Time slot labels must be unique.')
    for other in TimeSlot.query.all():
        if new_start < to_minutes(other.end_time) and to_minutes(other.start_time) < new_end:
            raise ScheduleConflict(f"Time slot overlaps with existing slot {other.label}")

    slot = _save(TimeSlot(start_time=start, end_time=end, label=label), 'time slot')
    log_activity('CREATE', 'TIME_SLOT', slot.id, f"Admin created a new time slot: {label}", actor)
    return slot
