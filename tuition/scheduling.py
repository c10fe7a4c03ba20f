"""Class schedule persistence: single-slot CRUD and whole-schedule replacement."""
import logging
from collections.abc import Mapping

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from tuition import db
from tuition.activity import log_activity
from tuition.conflicts import CandidateSlot, check_slot
from tuition.errors import InvalidInput, NotFound, ScheduleConflict, StorageError, TuitionError
from tuition.models import WEEKDAYS, Class, ClassSchedule, Room
from tuition.slots import coerce_id, normalize_day, resolve_time

logger = logging.getLogger(__name__)


def get_class_or_404(class_id):
    klass = db.session.get(Class, class_id)
    if klass is None:
        raise NotFound('Class not found')
    return klass


def _get_room_or_404(room_id):
    if room_id is None:
        return None
    room = db.session.get(Room, room_id)
    if room is None:
        raise NotFound('Room not found')
    return room


def _sort_key(schedule):
    day_idx = WEEKDAYS.index(schedule.day) if schedule.day in WEEKDAYS else len(WEEKDAYS)
    return (day_idx, schedule.time)


def _raise_on_conflicts(found):
    if not found:
        return
    c = found[0]
    if c.type == 'room':
        raise ScheduleConflict(f"Room {c.room} is already booked by {c.conflicting_class} on {c.day} at {c.time}")
    raise ScheduleConflict(f"Teacher is already teaching {c.conflicting_class} on {c.day} at {c.time}")


def _commit_or_raise(action_desc):
    try:
        db.session.commit()
    except IntegrityError as e:
        db.session.rollback()
        logger.warning(f"Constraint violation while {action_desc}: {e.orig}")
        raise ScheduleConflict() from e
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.exception(f"Error while {action_desc}")
        raise StorageError(f"Failed while {action_desc}") from e


def list_class_schedules(class_id):
    get_class_or_404(class_id)
    rows = ClassSchedule.query.filter_by(class_id=class_id).all()
    return sorted(rows, key=_sort_key)


def get_class_schedule(class_id, schedule_id):
    schedule = ClassSchedule.query.filter_by(id=schedule_id, class_id=class_id).first()
    if schedule is None:
        raise NotFound('Schedule not found')
    return schedule


def add_class_schedule(class_id, payload, actor=None):
    if not isinstance(payload, Mapping) or not payload.get('day') or not (payload.get('timeSlotId') or payload.get('time')):
        raise InvalidInput('Day and timeSlotId are required')
    klass = get_class_or_404(class_id)
    day = normalize_day(payload.get('day'))
    time, slot = resolve_time(payload)
    room = _get_room_or_404(coerce_id(payload.get('roomId'), 'roomId'))

    candidate = CandidateSlot(day=day, time=time, room_id=room.id if room else None)
    _raise_on_conflicts(check_slot(candidate, klass.id, klass.teacher_id))

    schedule = ClassSchedule(
        class_id=klass.id,
        day=day,
        time=time,
        time_slot_id=slot.id if slot else None,
        room_id=candidate.room_id,
    )
    db.session.add(schedule)
    _commit_or_raise('creating class schedule')
    logger.info(f"Schedule {schedule.id} created for class {klass.id} on {day} at {time}")
    log_activity('CREATE', 'ClassSchedule', schedule.id,
                 f"Schedule created for class {klass.name} on {day}", actor)
    return schedule


def update_class_schedule(class_id, schedule_id, payload, actor=None):
    if not isinstance(payload, Mapping):
        raise InvalidInput('Invalid request format')
    schedule = get_class_schedule(class_id, schedule_id)
    klass = schedule.klass

    day = normalize_day(payload['day']) if payload.get('day') else schedule.day
    if payload.get('timeSlotId') or payload.get('time'):
        time, slot = resolve_time(payload)
        time_slot_id = slot.id if slot else None
    else:
        time, time_slot_id = schedule.time, schedule.time_slot_id
    if 'roomId' in payload:
        room = _get_room_or_404(coerce_id(payload.get('roomId'), 'roomId'))
        room_id = room.id if room else None
    else:
        room_id = schedule.room_id

    moved = (day, time, room_id) != (schedule.day, schedule.time, schedule.room_id)
    if moved:
        candidate = CandidateSlot(day=day, time=time, room_id=room_id)
        _raise_on_conflicts(check_slot(candidate, klass.id, klass.teacher_id))

    schedule.day = day
    schedule.time = time
    schedule.time_slot_id = time_slot_id
    schedule.room_id = room_id
    _commit_or_raise('updating class schedule')
    log_activity('UPDATE', 'ClassSchedule', schedule.id,
                 f"Schedule updated for class {klass.name} on {day} at {time}", actor)
    return schedule


def delete_class_schedule(class_id, schedule_id, actor=None):
    schedule = get_class_schedule(class_id, schedule_id)
    class_name = schedule.klass.name if schedule.klass else class_id
    day, time = schedule.day, schedule.time
    db.session.delete(schedule)
    _commit_or_raise('deleting class schedule')
    log_activity('DELETE', 'ClassSchedule', schedule_id,
                 f"Schedule removed for class {class_name} on {day} at {time}", actor)


def _parse_replacement(schedules):
    if not isinstance(schedules, (list, tuple)) or not schedules:
        raise InvalidInput('Invalid schedules provided')
    parsed = []
    seen = set()
    for entry in schedules:
        if not isinstance(entry, Mapping) or not entry.get('day') or not entry.get('time') or not entry.get('room'):
            raise InvalidInput('Each schedule must include day, time, and room')
        day = normalize_day(entry['day'])
        time, slot = resolve_time(entry)
        room = _get_room_or_404(coerce_id(entry['room'], 'room'))
        if (day, time) in seen:
            raise InvalidInput(f"Duplicate schedule entry for {day} {time}")
        seen.add((day, time))
        parsed.append((CandidateSlot(day=day, time=time, room_id=room.id), slot))
    return parsed


def replace_class_schedules(class_id, schedules, action='replace', actor=None):
    """Apply a class's new weekly schedule in one transaction.

    With ``action='replace'`` every existing slot of the class is removed
    before the new set is inserted; any other action appends. Conflict
    check, delete and insert commit together or not at all.
    """
    klass = get_class_or_404(class_id)
    parsed = _parse_replacement(schedules)
    created = []
    try:
        for candidate, _slot in parsed:
            _raise_on_conflicts(check_slot(candidate, klass.id, klass.teacher_id))
        if action == 'replace':
            removed = ClassSchedule.query.filter_by(class_id=klass.id).delete(synchronize_session='fetch')
            logger.info(f"Removed {removed} schedule(s) from class {klass.id}")
        else:
            held = {(s.day, s.time) for s in ClassSchedule.query.filter_by(class_id=klass.id).all()}
            for candidate, _slot in parsed:
                if (candidate.day, candidate.time) in held:
                    raise ScheduleConflict(f"{klass.name} is already scheduled on {candidate.day} at {candidate.time}")
        for candidate, slot in parsed:
            schedule = ClassSchedule(
                class_id=klass.id,
                day=candidate.day,
                time=candidate.time,
                time_slot_id=slot.id if slot else None,
                room_id=candidate.room_id,
            )
            db.session.add(schedule)
            created.append(schedule)
        db.session.flush()
    except TuitionError:
        db.session.rollback()
        raise
    except IntegrityError as e:
        db.session.rollback()
        logger.warning(f"Constraint violation replacing schedules of class {class_id}: {e.orig}")
        raise ScheduleConflict() from e
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.exception(f"Error replacing schedules of class {class_id}")
        raise StorageError('Failed to update class schedules') from e
    _commit_or_raise('replacing class schedules')
    log_activity('UPDATE', 'CLASS_SCHEDULE', klass.id,
                 f"{actor.role if actor else 'SYSTEM'} updated schedules for class: {klass.name}", actor,
                 details={'action': action, 'count': len(created)})
    return created
