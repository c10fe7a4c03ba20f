from flask import current_app
from tuition.models import Teacher


def teacher_workload():
    """Per-teacher load from the weekly schedule.

    Hours come from each slot's time-slot length; slots entered as a bare
    time count SESSION_DEFAULT_DURATION_HOURS. The cap is the teacher's own
    max_weekly_hours, else TEACHER_MAX_HOURS_PER_WEEK.
    """
    default_hours = float(current_app.config.get('SESSION_DEFAULT_DURATION_HOURS', 1))
    default_cap = int(current_app.config.get('TEACHER_MAX_HOURS_PER_WEEK', 20))
    max_classes = int(current_app.config.get('TEACHER_MAX_CLASSES', 5))
    rows = []
    for teacher in Teacher.query.order_by(Teacher.name.asc()).all():
        slots = [s for c in teacher.classes for s in c.schedules]
        weekly_hours = sum(s.time_slot.duration_hours if s.time_slot else default_hours for s in slots)
        class_count = len(teacher.classes)
        max_week = teacher.max_weekly_hours or default_cap
        rows.append({
            'id': teacher.id,
            'name': teacher.name,
            'email': teacher.email,
            'workload': {
                'classCount': class_count,
                'totalScheduledSlots': len(slots),
                'weeklyHours': round(weekly_hours, 2),
                'isOverloaded': weekly_hours > max_week or class_count > max_classes,
            },
        })
    return rows
