import unittest

from base import AppTestCase


class ConflictRouteTests(AppTestCase):

    def setUp(self):
        super().setUp()
        self.teacher_user = self.make_user('alice', 'TEACHER')
        self.alice = self.make_teacher('Alice', self.teacher_user)
        self.room = self.make_room('Room 1')
        self.c1 = self.make_class('Algebra I', self.alice)
        self.c2 = self.make_class('Geometry')
        self.schedule(self.c1, 'Monday', '10:00', self.room)

    def post_admin(self, body):
        return self.client.post('/api/admin/schedule/conflicts', json=body)

    def post_teacher(self, body):
        return self.client.post('/api/teacher/schedule/conflicts', json=body)

    def test_admin_check_requires_session(self):
        response = self.post_admin({'schedules': [{'day': 'Monday', 'time': '10:00'}]})
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.get_json(), {'error': 'Unauthorized'})

    def test_admin_check_rejects_teacher_role(self):
        self.login_as('TEACHER', self.teacher_user.id)
        response = self.post_admin({'schedules': [{'day': 'Monday', 'time': '10:00'}]})
        self.assertEqual(response.status_code, 403)

    def test_admin_check_reports_room_conflict(self):
        self.login_as('ADMIN')
        response = self.post_admin({
            'schedules': [{'day': 'Monday', 'time': '10:00', 'roomId': self.room.id, 'roomName': 'Room 1'}],
            'classId': self.c2.id,
        })
        self.assertEqual(response.status_code, 200)
        data = response.get_json()
        self.assertTrue(data['hasConflicts'])
        self.assertEqual(data['conflicts'], [{
            'type': 'room',
            'day': 'Monday',
            'time': '10:00',
            'room': 'Room 1',
            'roomId': self.room.id,
            'conflictingClass': 'Algebra I',
        }])

    def test_admin_check_without_conflicts(self):
        self.login_as('ADMIN')
        response = self.post_admin({
            'schedules': [{'day': 'Monday', 'time': '10:00', 'roomId': self.room.id}],
            'classId': self.c1.id,
        })
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json(), {'hasConflicts': False, 'conflicts': []})

    def test_admin_check_rejects_malformed_body(self):
        self.login_as('ADMIN')
        for body in ({'schedules': []}, {'schedules': [{'day': 'Monday'}]}, {}):
            with self.subTest(body=body):
                response = self.post_admin(body)
                self.assertEqual(response.status_code, 400)
                self.assertIn('error', response.get_json())

    def test_admin_check_rejects_non_json(self):
        self.login_as('ADMIN')
        response = self.client.post('/api/admin/schedule/conflicts', data='not json',
                                    content_type='text/plain')
        self.assertEqual(response.status_code, 400)

    def test_non_object_json_body_is_400(self):
        self.login_as('ADMIN')
        for body in ([{'day': 'Monday', 'time': '10:00'}], 'x', 42):
            with self.subTest(body=body):
                response = self.post_admin(body)
                self.assertEqual(response.status_code, 400)
                self.assertEqual(response.get_json(), {'error': 'Invalid request format'})
        response = self.post_teacher([])
        self.assertEqual(response.status_code, 400)

    def test_teacher_check_entries_carry_class_id(self):
        self.login_as('ADMIN')
        response = self.post_teacher({
            'schedules': [{'day': 'Monday', 'time': '10:00', 'roomId': self.room.id}],
        })
        self.assertEqual(response.status_code, 200)
        conflict = response.get_json()['conflicts'][0]
        self.assertEqual(conflict['classId'], self.c1.id)
        self.assertEqual(conflict['conflictingClass'], 'Algebra I')

    def test_teacher_check_defaults_to_callers_teacher_record(self):
        self.login_as('TEACHER', self.teacher_user.id, username='alice')
        response = self.post_teacher({'schedules': [{'day': 'Monday', 'time': '10:00'}]})
        self.assertEqual(response.status_code, 200)
        data = response.get_json()
        self.assertTrue(data['hasConflicts'])
        self.assertEqual(data['conflicts'][0]['type'], 'teacher')
        self.assertEqual(data['conflicts'][0]['teacherId'], self.alice.id)

    def test_teacher_check_forbidden_for_students(self):
        self.login_as('STUDENT')
        response = self.post_teacher({'schedules': [{'day': 'Monday', 'time': '10:00'}]})
        self.assertEqual(response.status_code, 403)

    def test_conflict_check_writes_nothing(self):
        from tuition.models import ClassSchedule, ActivityLog
        self.login_as('ADMIN')
        self.post_admin({'schedules': [{'day': 'Monday', 'time': '10:00', 'roomId': self.room.id}]})
        self.assertEqual(ClassSchedule.query.count(), 1)
        self.assertEqual(ActivityLog.query.count(), 0)


if __name__ == "__main__":
    unittest.main()
