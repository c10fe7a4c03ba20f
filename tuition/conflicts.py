"""Room and teacher collision checks for draft class schedules.

Each candidate slot is checked on its own, against the persisted
``ClassSchedule`` rows, along two dimensions:

* room: same (day, time, room) in another class
* teacher: same (day, time) in another class taught by the same teacher

Finding a conflict is a normal result, not an error. Only bad input
(``InvalidInput``) and storage failures (``StorageError``) raise.
"""
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import List, Optional

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from tuition.errors import InvalidInput, StorageError
from tuition.models import Class, ClassSchedule
from tuition.slots import coerce_id, normalize_day, resolve_time

logger = logging.getLogger(__name__)

ROOM = 'room'
TEACHER = 'teacher'


@dataclass
class CandidateSlot:
    day: str
    time: str
    room_id: Optional[int] = None
    room_name: Optional[str] = None


@dataclass
class Conflict:
    type: str
    day: str
    time: str
    conflicting_class: str
    class_id: Optional[int] = None
    room: Optional[str] = None
    room_id: Optional[int] = None
    teacher_id: Optional[int] = None

    def to_dict(self, include_class_id=False):
        data = {
            'type': self.type,
            'day': self.day,
            'time': self.time,
            'room': self.room,
            'roomId': self.room_id,
            'conflictingClass': self.conflicting_class,
        }
        if self.type == TEACHER:
            data['teacherId'] = self.teacher_id
        if include_class_id:
            data['classId'] = self.class_id
        return data


@dataclass
class ConflictReport:
    conflicts: List[Conflict] = field(default_factory=list)

    @property
    def has_conflicts(self):
        return len(self.conflicts) > 0

    def to_dict(self, include_class_id=False):
        return {
            'hasConflicts': self.has_conflicts,
            'conflicts': [c.to_dict(include_class_id) for c in self.conflicts],
        }


def parse_candidates(candidate_slots) -> List[CandidateSlot]:
    """Validate the raw payload before any conflict query runs."""
    if not isinstance(candidate_slots, (list, tuple)) or not candidate_slots:
        raise InvalidInput('Valid schedules are required')
    for entry in candidate_slots:
        if not isinstance(entry, Mapping):
            raise InvalidInput('Each schedule must be an object')
        if not entry.get('day') or not (entry.get('time') or entry.get('timeSlotId')):
            raise InvalidInput('Each schedule must have a day and time')
    parsed = []
    for entry in candidate_slots:
        day = normalize_day(entry.get('day'))
        time, _slot = resolve_time(entry)
        parsed.append(CandidateSlot(
            day=day,
            time=time,
            room_id=coerce_id(entry.get('roomId'), 'roomId'),
            room_name=entry.get('roomName') or None,
        ))
    return parsed


def _class_label(schedule):
    klass = schedule.klass
    if klass is not None and klass.name:
        return klass.name
    return current_app.config.get('UNKNOWN_CLASS_LABEL', 'Unknown Class')


def find_room_matches(day, time, room_id, exclude_class_id=None):
    q = ClassSchedule.query.filter(
        ClassSchedule.day == day,
        ClassSchedule.time == time,
        ClassSchedule.room_id == room_id,
    )
    if exclude_class_id is not None:
        q = q.filter(ClassSchedule.class_id != exclude_class_id)
    return q.order_by(ClassSchedule.id.asc()).all()


def find_teacher_matches(day, time, teacher_id, exclude_class_id=None):
    q = ClassSchedule.query.join(Class, ClassSchedule.class_id == Class.id).filter(
        ClassSchedule.day == day,
        ClassSchedule.time == time,
        Class.teacher_id == teacher_id,
    )
    if exclude_class_id is not None:
        q = q.filter(Class.id != exclude_class_id)
    return q.order_by(ClassSchedule.id.asc()).all()


def check_slot(slot, exclude_class_id, teacher_id):
    found = []
    unknown_room = current_app.config.get('UNKNOWN_ROOM_LABEL', 'Unknown Room')
    if slot.room_id is not None:
        matches = find_room_matches(slot.day, slot.time, slot.room_id, exclude_class_id)
        if matches:
            first = matches[0]
            room_name = first.room.name if first.room is not None else None
            found.append(Conflict(
                type=ROOM,
                day=slot.day,
                time=slot.time,
                room=room_name or slot.room_name or unknown_room,
                room_id=slot.room_id,
                class_id=first.class_id,
                conflicting_class=_class_label(first),
            ))
    if teacher_id is not None:
        # One record per overlapping class, first row of each class wins
        seen = set()
        for match in find_teacher_matches(slot.day, slot.time, teacher_id, exclude_class_id):
            if match.class_id in seen:
                continue
            seen.add(match.class_id)
            found.append(Conflict(
                type=TEACHER,
                day=slot.day,
                time=slot.time,
                room=match.room.name if match.room is not None else unknown_room,
                room_id=match.room_id,
                teacher_id=teacher_id,
                class_id=match.class_id,
                conflicting_class=_class_label(match),
            ))
    return found


def check_conflicts(candidate_slots, exclude_class_id=None, teacher_id=None) -> ConflictReport:
    """Check draft slots against persisted schedules.

    ``exclude_class_id`` keeps a class being edited from colliding with
    its own rows. ``teacher_id`` enables the teacher dimension; without it
    only rooms are checked. Read-only.
    """
    exclude_class_id = coerce_id(exclude_class_id, 'classId')
    teacher_id = coerce_id(teacher_id, 'teacherId')
    try:
        slots = parse_candidates(candidate_slots)
        report = ConflictReport()
        for slot in slots:
            report.conflicts.extend(check_slot(slot, exclude_class_id, teacher_id))
    except SQLAlchemyError as e:
        logger.exception('Error checking for conflicts')
        raise StorageError('Failed to check for conflicts') from e
    if report.has_conflicts:
        logger.info(f"Conflict check found {len(report.conflicts)} conflict(s) across {len(slots)} slot(s)")
    return report
