from tuition import db
from datetime import datetime

WEEKDAYS = ('Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday', 'Sunday')
ROLES = ('ADMIN', 'TEACHER', 'STUDENT', 'PARENT')


class User(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(80), unique=True, nullable=False)
    password_hash = db.Column(db.String(256), nullable=False)
    name = db.Column(db.String(100))
    role = db.Column(db.String(20), nullable=False, default='STUDENT')

    teacher = db.relationship('Teacher', backref='user', uselist=False, lazy=True)

    def __repr__(self):
        return f"User('{self.username}', role='{self.role}')"


class Teacher(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), unique=True)
    name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False)
    max_weekly_hours = db.Column(db.Integer)  # falls back to TEACHER_MAX_HOURS_PER_WEEK

    classes = db.relationship('Class', backref='teacher', lazy=True)

    def __repr__(self):
        return f"Teacher('{self.name}')"


class Room(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), unique=True, nullable=False)
    capacity = db.Column(db.Integer)
    building = db.Column(db.String(100), default='')
    floor = db.Column(db.String(20), default='')
    features = db.Column(db.String(200), default='')

    schedules = db.relationship('ClassSchedule', backref='room', lazy=True)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'capacity': self.capacity,
            'building': self.building,
            'floor': self.floor,
            'features': self.features,
        }

    def __repr__(self):
        return f"Room('{self.name}')"


class TimeSlot(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    start_time = db.Column(db.String(5), nullable=False)  # HH:MM
    end_time = db.Column(db.String(5), nullable=False)
    label = db.Column(db.String(50), unique=True, nullable=False)

    @property
    def duration_hours(self):
        sh, sm = (int(p) for p in self.start_time.split(':'))
        eh, em = (int(p) for p in self.end_time.split(':'))
        return ((eh * 60 + em) - (sh * 60 + sm)) / 60.0

    def to_dict(self):
        return {
            'id': self.id,
            'startTime': self.start_time,
            'endTime': self.end_time,
            'label': self.label,
        }

    def __repr__(self):
        return f"TimeSlot('{self.label}')"


class Class(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    subject = db.Column(db.String(100))
    description = db.Column(db.Text)
    teacher_id = db.Column(db.Integer, db.ForeignKey('teacher.id'), index=True)
    capacity = db.Column(db.Integer)

    schedules = db.relationship('ClassSchedule', backref='klass', lazy=True, cascade="all, delete-orphan")

    def __repr__(self):
        return f"Class('{self.name}', teacher_id={self.teacher_id})"


class ClassSchedule(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    class_id = db.Column(db.Integer, db.ForeignKey('class.id'), nullable=False, index=True)
    day = db.Column(db.String(10), nullable=False)
    time = db.Column(db.String(5), nullable=False)  # HH:MM, derived from time_slot when set
    time_slot_id = db.Column(db.Integer, db.ForeignKey('time_slot.id'))
    room_id = db.Column(db.Integer, db.ForeignKey('room.id'))

    time_slot = db.relationship('TimeSlot', lazy=True)
    __table_args__ = (
        db.UniqueConstraint('day', 'time', 'room_id', name='uix_schedule_day_time_room'),
        db.Index('ix_schedule_day_time', 'day', 'time'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'classId': self.class_id,
            'day': self.day,
            'time': self.time,
            'timeSlotId': self.time_slot_id,
            'timeSlot': self.time_slot.to_dict() if self.time_slot else None,
            'roomId': self.room_id,
            'room': self.room.to_dict() if self.room else None,
        }

    def __repr__(self):
        return f"ClassSchedule(class_id={self.class_id}, {self.day} {self.time}, room_id={self.room_id})"


class ActivityLog(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    action = db.Column(db.String(20), nullable=False)  # CREATE, UPDATE, DELETE
    entity_type = db.Column(db.String(50), nullable=False)
    entity_id = db.Column(db.String(50))
    description = db.Column(db.String(255))
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=True)
    details = db.Column('metadata', db.JSON, nullable=False, default=dict)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    def __repr__(self):
        return f"ActivityLog(action='{self.action}', entity='{self.entity_type}:{self.entity_id}')"
