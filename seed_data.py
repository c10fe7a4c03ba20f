from tuition import app, db
from tuition.models import User, Teacher, Room, TimeSlot, Class, ClassSchedule
from werkzeug.security import generate_password_hash

ROOMS = [('Room 101', 20), ('Room 102', 20), ('Lab 203', 15), ('Lab 204', 15)]
SLOTS = [('09:00', '10:00'), ('10:00', '11:00'), ('11:00', '12:00'), ('14:00', '15:00'), ('15:00', '16:00')]
SUBJECTS = ['Mathematics', 'Physics', 'Chemistry', 'English']


def seed():
    with app.app_context():
        db.create_all()
        print("Seeding database...")

        if not User.query.filter_by(username='admin').first():
            db.session.add(User(username='admin', name='Administrator',
                                password_hash=generate_password_hash('admin'), role='ADMIN'))
            print("Created admin user.")

        teachers = []
        for i, subject in enumerate(SUBJECTS, start=1):
            email = f"teacher{i}@tuition.local"
            t = Teacher.query.filter_by(email=email).first()
            if not t:
                user = User(username=f"teacher{i}", name=f"Teacher {i}",
                            password_hash=generate_password_hash('teacher'), role='TEACHER')
                db.session.add(user)
                db.session.flush()
                t = Teacher(user_id=user.id, name=f"Teacher {i}", email=email)
                db.session.add(t)
            teachers.append(t)
        db.session.commit()
        print(f"Have {len(teachers)} teachers.")

        rooms = []
        for name, capacity in ROOMS:
            room = Room.query.filter_by(name=name).first()
            if not room:
                room = Room(name=name, capacity=capacity)
                db.session.add(room)
            rooms.append(room)
        slots = []
        for start, end in SLOTS:
            label = f"{start} - {end}"
            slot = TimeSlot.query.filter_by(label=label).first()
            if not slot:
                slot = TimeSlot(start_time=start, end_time=end, label=label)
                db.session.add(slot)
            slots.append(slot)
        db.session.commit()
        print(f"Have {len(rooms)} rooms and {len(slots)} time slots.")

        days = ['Monday', 'Wednesday', 'Friday']
        for i, (t, subject) in enumerate(zip(teachers, SUBJECTS)):
            name = f"{subject} Grade 10"
            if Class.query.filter_by(name=name).first():
                continue
            klass = Class(name=name, subject=subject, teacher_id=t.id, capacity=rooms[i].capacity)
            db.session.add(klass)
            db.session.flush()
            # Teacher i always uses room i and slot i, so seeded rows never collide
            for day in days:
                db.session.add(ClassSchedule(class_id=klass.id, day=day, time=slots[i].start_time,
                                             time_slot_id=slots[i].id, room_id=rooms[i].id))
        db.session.commit()
        print("Seeding complete.")


if __name__ == "__main__":
    seed()
