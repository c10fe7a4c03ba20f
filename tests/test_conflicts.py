import unittest
from unittest import mock

from sqlalchemy.exc import OperationalError

from base import AppTestCase
from tuition.conflicts import check_conflicts
from tuition.errors import InvalidInput, StorageError


class ConflictCheckerTests(AppTestCase):

    def setUp(self):
        super().setUp()
        self.alice = self.make_teacher('Alice')
        self.bob = self.make_teacher('Bob')
        self.r1 = self.make_room('Room 1')
        self.r2 = self.make_room('Room 2')
        self.c1 = self.make_class('Algebra I', self.alice)
        self.c2 = self.make_class('Physics I', self.bob)
        self.schedule(self.c1, 'Monday', '10:00', self.r1)

    def test_room_conflict_names_the_booked_class(self):
        report = check_conflicts([{'day': 'Monday', 'time': '10:00', 'roomId': self.r1.id}],
                                 exclude_class_id=self.c2.id)
        self.assertTrue(report.has_conflicts)
        self.assertEqual(len(report.conflicts), 1)
        conflict = report.conflicts[0]
        self.assertEqual(conflict.type, 'room')
        self.assertEqual(conflict.conflicting_class, 'Algebra I')
        self.assertEqual(conflict.room, 'Room 1')
        self.assertEqual((conflict.day, conflict.time), ('Monday', '10:00'))

    def test_editing_own_class_is_not_a_conflict(self):
        report = check_conflicts([{'day': 'Monday', 'time': '10:00', 'roomId': self.r1.id}],
                                 exclude_class_id=self.c1.id)
        self.assertFalse(report.has_conflicts)
        self.assertEqual(report.conflicts, [])

    def test_no_room_and_no_teacher_checks_nothing(self):
        report = check_conflicts([{'day': 'Monday', 'time': '10:00'}])
        self.assertFalse(report.has_conflicts)

    def test_other_room_or_time_is_free(self):
        report = check_conflicts([
            {'day': 'Monday', 'time': '10:00', 'roomId': self.r2.id},
            {'day': 'Monday', 'time': '11:00', 'roomId': self.r1.id},
            {'day': 'Tuesday', 'time': '10:00', 'roomId': self.r1.id},
        ], exclude_class_id=self.c2.id, teacher_id=self.bob.id)
        self.assertFalse(report.has_conflicts)

    def test_teacher_conflict_across_classes(self):
        c3 = self.make_class('Algebra II', self.alice)
        self.schedule(c3, 'Wednesday', '14:00', self.r2)
        report = check_conflicts([{'day': 'Wednesday', 'time': '14:00'}],
                                 exclude_class_id=self.c1.id, teacher_id=self.alice.id)
        self.assertEqual(len(report.conflicts), 1)
        self.assertEqual(report.conflicts[0].type, 'teacher')
        self.assertEqual(report.conflicts[0].conflicting_class, 'Algebra II')
        self.assertEqual(report.conflicts[0].teacher_id, self.alice.id)

    def test_teacher_conflict_per_overlapping_class(self):
        c3 = self.make_class('Algebra II', self.alice)
        self.schedule(c3, 'Monday', '10:00', self.r2)
        self.schedule(c3, 'Thursday', '10:00', self.r2)
        report = check_conflicts([{'day': 'Monday', 'time': '10:00'}], teacher_id=self.alice.id)
        self.assertEqual([c.type for c in report.conflicts], ['teacher', 'teacher'])
        self.assertEqual([c.conflicting_class for c in report.conflicts], ['Algebra I', 'Algebra II'])
        self.assertEqual([c.room for c in report.conflicts], ['Room 1', 'Room 2'])

    def test_teacher_conflict_skips_excluded_class(self):
        c3 = self.make_class('Algebra II', self.alice)
        self.schedule(c3, 'Monday', '10:00', self.r2)
        report = check_conflicts([{'day': 'Monday', 'time': '10:00'}],
                                 exclude_class_id=c3.id, teacher_id=self.alice.id)
        self.assertEqual(len(report.conflicts), 1)
        self.assertEqual(report.conflicts[0].conflicting_class, 'Algebra I')

    def test_both_dimensions_reported_per_slot(self):
        report = check_conflicts([{'day': 'Monday', 'time': '10:00', 'roomId': self.r1.id}],
                                 exclude_class_id=self.c2.id, teacher_id=self.alice.id)
        self.assertEqual([c.type for c in report.conflicts], ['room', 'teacher'])

    def test_conflicts_keep_candidate_order(self):
        self.schedule(self.c2, 'Tuesday', '09:00', self.r2)
        report = check_conflicts([
            {'day': 'Tuesday', 'time': '09:00', 'roomId': self.r2.id},
            {'day': 'Monday', 'time': '10:00', 'roomId': self.r1.id},
        ])
        self.assertEqual([c.conflicting_class for c in report.conflicts], ['Physics I', 'Algebra I'])

    def test_day_and_time_are_normalised(self):
        report = check_conflicts([{'day': 'mon', 'time': '10:00:00', 'roomId': str(self.r1.id)}],
                                 exclude_class_id=self.c2.id)
        self.assertTrue(report.has_conflicts)
        self.assertEqual(report.conflicts[0].day, 'Monday')

    def test_time_slot_reference_resolves_to_start_time(self):
        slot = self.make_slot('10:00', '11:00')
        report = check_conflicts([{'day': 'Monday', 'timeSlotId': slot.id, 'roomId': self.r1.id}],
                                 exclude_class_id=self.c2.id)
        self.assertTrue(report.has_conflicts)
        self.assertEqual(report.conflicts[0].time, '10:00')

    def test_idempotent(self):
        args = ([{'day': 'Monday', 'time': '10:00', 'roomId': self.r1.id}],)
        first = check_conflicts(*args, exclude_class_id=self.c2.id, teacher_id=self.alice.id)
        second = check_conflicts(*args, exclude_class_id=self.c2.id, teacher_id=self.alice.id)
        self.assertEqual(first.to_dict(), second.to_dict())

    def test_room_label_falls_back_to_caller_name(self):
        orphan = self.schedule(self.c2, 'Friday', '16:00', self.r2)
        orphan.room_id = 999
        report = check_conflicts([{'day': 'Friday', 'time': '16:00', 'roomId': 999, 'roomName': 'Annex'}])
        self.assertEqual(report.conflicts[0].room, 'Annex')

    def test_empty_list_is_invalid_and_queries_nothing(self):
        with mock.patch('tuition.conflicts.find_room_matches') as rooms, \
                mock.patch('tuition.conflicts.find_teacher_matches') as teachers:
            with self.assertRaises(InvalidInput):
                check_conflicts([], teacher_id=self.alice.id)
            rooms.assert_not_called()
            teachers.assert_not_called()

    def test_malformed_entries_are_invalid(self):
        for bad in (None, 'Monday', [{'time': '10:00'}], [{'day': 'Monday'}], ['x'],
                    [{'day': 'Someday', 'time': '10:00'}], [{'day': 'Monday', 'time': '25:00'}]):
            with self.subTest(bad=bad):
                with self.assertRaises(InvalidInput):
                    check_conflicts(bad)

    def test_one_bad_entry_fails_before_any_query(self):
        with mock.patch('tuition.conflicts.find_room_matches') as rooms:
            with self.assertRaises(InvalidInput):
                check_conflicts([{'day': 'Monday', 'time': '10:00', 'roomId': self.r1.id},
                                 {'day': 'Monday'}])
            rooms.assert_not_called()

    def test_weekend_rejected_when_disabled(self):
        self.app.config['ALLOW_WEEKEND_SESSIONS'] = False
        try:
            with self.assertRaises(InvalidInput):
                check_conflicts([{'day': 'Saturday', 'time': '10:00'}])
        finally:
            self.app.config['ALLOW_WEEKEND_SESSIONS'] = True

    def test_storage_failure_raises_storage_error(self):
        boom = OperationalError('SELECT', {}, Exception('database is locked'))
        with mock.patch('tuition.conflicts.find_room_matches', side_effect=boom):
            with self.assertRaises(StorageError):
                check_conflicts([{'day': 'Monday', 'time': '10:00', 'roomId': self.r1.id}])


if __name__ == "__main__":
    unittest.main()
