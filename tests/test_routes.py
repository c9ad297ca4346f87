"""
Integration tests for routes and workflows
"""

import shutil
import unittest

from app import create_app
from config import TestingConfig
from database import db
from models.attendance import DailyAttendance
from services.auth_service import SessionManager
from factories import build_school

class TestRoutes(unittest.TestCase):

    def setUp(self):
        """Set up test fixtures"""
        self.app = create_app(TestingConfig)
        self.client = self.app.test_client()
        self.app_context = self.app.app_context()
        self.app_context.push()
        self.school = build_school()

    def tearDown(self):
        """Clean up after tests"""
        db.session.remove()
        db.drop_all()
        self.app_context.pop()
        shutil.rmtree(self.app.config['REPORTS_DIR'], ignore_errors=True)

    def login(self, user):
        with self.client.session_transaction() as sess:
            SessionManager.create_session(sess, user)

    def _attendance_payload(self, day='2024-03-04'):
        return {
            'class_id': self.school.school_class.id,
            'section_id': self.school.section.id,
            'date': day,
            'attendance': [{'student_id': student.id, 'status': 'PRESENT'} for student in self.school.students]
        }

    # ------------------------------------------------------------ attendance

    def test_requires_session(self):
        response = self.client.get('/api/v1/holidays')
        self.assertEqual(response.status_code, 401)
        self.assertFalse(response.get_json()['success'])

    def test_admin_marks_attendance(self):
        self.login(self.school.admin_user)

        response = self.client.post('/api/v1/attendance/daily', json=self._attendance_payload())

        self.assertEqual(response.status_code, 200)
        body = response.get_json()
        self.assertTrue(body['success'])
        self.assertEqual(len(body['data']['applied']), 2)
        self.assertIsNone(db.session.query(DailyAttendance).first().marked_by_id)

    def test_class_teacher_marks_attendance(self):
        self.login(self.school.teacher_user)

        response = self.client.post('/api/v1/attendance/daily', json=self._attendance_payload())

        self.assertEqual(response.status_code, 200)
        self.assertEqual(db.session.query(DailyAttendance).first().marked_by_id, self.school.class_teacher.id)

    def test_subject_teacher_cannot_mark_attendance(self):
        self.login(self.school.subject_teacher_user)

        response = self.client.post('/api/v1/attendance/daily', json=self._attendance_payload())

        self.assertEqual(response.status_code, 403)
        self.assertEqual(db.session.query(DailyAttendance).count(), 0)

    def test_student_cannot_mark_attendance(self):
        self.login(self.school.students[0].user)
        response = self.client.post('/api/v1/attendance/daily', json=self._attendance_payload())
        self.assertEqual(response.status_code, 403)

    def test_weekend_attendance_is_bad_request(self):
        self.login(self.school.admin_user)
        response = self.client.post('/api/v1/attendance/daily', json=self._attendance_payload('2024-03-02'))
        self.assertEqual(response.status_code, 400)

    def test_missing_fields_are_bad_request(self):
        self.login(self.school.admin_user)
        response = self.client.post('/api/v1/attendance/daily', json={'class_id': 1})
        self.assertEqual(response.status_code, 400)
        self.assertIn('attendance', response.get_json()['message'])

    def test_daily_attendance_visibility(self):
        query = (f'/api/v1/attendance/daily?class_id={self.school.school_class.id}'
                 f'&section_id={self.school.section.id}&date=2024-03-04')

        self.login(self.school.students[0].user)
        response = self.client.get(query)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.get_json()['data']), 2)

        self.login(self.school.parent_user)
        self.assertEqual(self.client.get(query).status_code, 200)

        self.login(self.school.subject_teacher_user)
        self.assertEqual(self.client.get(query).status_code, 200)

        other = (f'/api/v1/attendance/daily?class_id={self.school.school_class.id}'
                 f'&section_id={self.school.section_b.id}&date=2024-03-04')
        self.login(self.school.students[0].user)
        self.assertEqual(self.client.get(other).status_code, 403)

    def test_attendance_stats(self):
        self.login(self.school.admin_user)
        self.client.post('/api/v1/attendance/daily', json=self._attendance_payload())

        response = self.client.get(f'/api/v1/attendance/stats?class_id={self.school.school_class.id}'
                                   f'&section_id={self.school.section.id}&month=3&year=2024')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()['data']['average_attendance'], 100.0)

    def test_pending_attendance_days(self):
        self.login(self.school.teacher_user)
        self.client.post('/api/v1/attendance/daily', json=self._attendance_payload())

        response = self.client.get('/api/v1/attendance/pending?month=3&year=2024')

        self.assertEqual(response.status_code, 200)
        data = response.get_json()['data']
        self.assertEqual(data['pending_count'], 20)
        self.assertNotIn('2024-03-04', data['pending_dates'])

        self.login(self.school.admin_user)
        self.assertEqual(self.client.get('/api/v1/attendance/pending').status_code, 403)

    def test_student_attendance_is_private(self):
        first, second = self.school.students
        self.login(first.user)

        self.assertEqual(self.client.get(f'/api/v1/attendance/student/{first.id}?month=3&year=2024').status_code, 200)
        self.assertEqual(self.client.get(f'/api/v1/attendance/student/{second.id}?month=3&year=2024').status_code, 403)

    # --------------------------------------------------------------- results

    def _result_payload(self, subject):
        return {
            'student_id': self.school.students[0].id,
            'subject_id': subject.id,
            'academic_year': '2024-2025',
            'term': 'Term 1',
            'full_marks': 100,
            'pass_marks': 40,
            'theory_marks': 60,
            'practical_marks': 20
        }

    def test_result_workflow(self):
        self.login(self.school.teacher_user)

        response = self.client.post('/api/v1/results/subject', json=self._result_payload(self.school.maths))
        self.assertEqual(response.status_code, 201)
        result = response.get_json()['data']['subject_result']
        self.assertEqual(result['grade'], 'A')

        duplicate = self.client.post('/api/v1/results/subject', json=self._result_payload(self.school.maths))
        self.assertEqual(duplicate.status_code, 409)

        locked = self.client.put(f"/api/v1/results/subject/{result['id']}", json={'theory_marks': 70})
        self.assertEqual(locked.status_code, 409)

        self.assertEqual(
            self.client.patch(f"/api/v1/results/subject/{result['id']}/lock", json={'is_locked': False}).status_code,
            403
        )

        self.login(self.school.admin_user)
        unlock = self.client.patch(f"/api/v1/results/subject/{result['id']}/lock", json={'is_locked': False})
        self.assertEqual(unlock.status_code, 200)
        self.assertFalse(unlock.get_json()['data']['is_locked'])

        updated = self.client.put(f"/api/v1/results/subject/{result['id']}", json={'theory_marks': 70})
        self.assertEqual(updated.status_code, 200)
        self.assertEqual(updated.get_json()['data']['subject_result']['total_marks'], 90)

        overall = self.client.get(f"/api/v1/results/overall?student_id={self.school.students[0].id}"
                                  f"&academic_year=2024-2025&term=Term 1")
        self.assertEqual(overall.status_code, 200)
        self.assertEqual(overall.get_json()['data']['status'], 'PASSED')

    def test_update_with_identity_key_is_bad_request(self):
        self.login(self.school.admin_user)
        result = self.client.post('/api/v1/results/subject',
                                  json=self._result_payload(self.school.maths)).get_json()['data']['subject_result']

        response = self.client.put(f"/api/v1/results/subject/{result['id']}",
                                   json={'result_id': 2, 'theory_marks': 70})

        self.assertEqual(response.status_code, 400)
        self.assertIn('result_id', response.get_json()['message'])

    def test_lock_requires_is_locked(self):
        self.login(self.school.admin_user)
        result = self.client.post('/api/v1/results/subject',
                                  json=self._result_payload(self.school.maths)).get_json()['data']['subject_result']
        self.client.patch(f"/api/v1/results/subject/{result['id']}/lock", json={'is_locked': False})

        response = self.client.patch(f"/api/v1/results/subject/{result['id']}/lock", json={})

        self.assertEqual(response.status_code, 400)
        self.assertIn('is_locked', response.get_json()['message'])
        listing = self.client.get(f"/api/v1/results/subject?student_id={self.school.students[0].id}")
        self.assertFalse(listing.get_json()['data'][0]['is_locked'])

    def test_class_subject_results_listing(self):
        self.login(self.school.teacher_user)
        self.client.post('/api/v1/results/subject', json=self._result_payload(self.school.maths))
        query = (f'/api/v1/results/subject?class_id={self.school.school_class.id}'
                 f'&section_id={self.school.section.id}&subject_id={self.school.maths.id}'
                 f'&academic_year=2024-2025&term=Term 1')

        response = self.client.get(query)
        self.assertEqual(response.status_code, 200)
        rows = response.get_json()['data']
        self.assertEqual(len(rows), 1)
        self.assertTrue(rows[0]['is_locked'])
        self.assertEqual(rows[0]['student']['roll_no'], 1)

        self.assertEqual(self.client.get('/api/v1/results/subject').status_code, 400)

        self.login(self.school.students[0].user)
        self.assertEqual(self.client.get(query).status_code, 403)

    def test_recalculate_requires_admin(self):
        payload = {'class_id': self.school.school_class.id, 'section_id': self.school.section.id,
                   'academic_year': '2024-2025', 'term': 'Term 1'}

        self.login(self.school.teacher_user)
        self.assertEqual(self.client.post('/api/v1/results/recalculate', json=payload).status_code, 403)

        self.login(self.school.admin_user)
        response = self.client.post('/api/v1/results/recalculate', json=payload)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()['data']['failed'], 2)

    # -------------------------------------------------------------- holidays

    def test_holiday_management(self):
        payload = {'name': 'Holi', 'from_date': '2024-03-25'}

        self.login(self.school.teacher_user)
        self.assertEqual(self.client.post('/api/v1/holidays', json=payload).status_code, 403)

        self.login(self.school.admin_user)
        created = self.client.post('/api/v1/holidays', json=payload)
        self.assertEqual(created.status_code, 201)
        self.assertEqual(self.client.post('/api/v1/holidays', json=payload).status_code, 409)

        holiday_id = created.get_json()['data']['id']
        self.assertEqual(self.client.put(f'/api/v1/holidays/{holiday_id}', json={'name': 'Holika'}).status_code, 200)

        listing = self.client.get('/api/v1/holidays?month=3&year=2024').get_json()['data']
        self.assertEqual([holiday['name'] for holiday in listing], ['Holika'])

        days = self.client.get('/api/v1/holidays/working-days?month=3&year=2024').get_json()['data']
        self.assertEqual(days['count'], 20)

        self.assertEqual(self.client.delete(f'/api/v1/holidays/{holiday_id}').status_code, 200)
        self.assertEqual(self.client.delete(f'/api/v1/holidays/{holiday_id}').status_code, 404)

    def test_holiday_lookup_and_upcoming(self):
        self.login(self.school.admin_user)
        created = self.client.post('/api/v1/holidays', json={'name': 'Holi', 'from_date': '2024-03-25'})
        holiday_id = created.get_json()['data']['id']

        self.login(self.school.students[0].user)
        response = self.client.get(f'/api/v1/holidays/{holiday_id}')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()['data']['name'], 'Holi')
        self.assertEqual(self.client.get('/api/v1/holidays/999').status_code, 404)

        upcoming = self.client.get('/api/v1/holidays/upcoming?from=2024-03-01').get_json()['data']
        self.assertEqual([(holiday['name'], holiday['next_date']) for holiday in upcoming], [('Holi', '2024-03-25')])
        self.assertEqual(self.client.get('/api/v1/holidays/upcoming?from=2024-04-01').get_json()['data'], [])
        self.assertEqual(self.client.get('/api/v1/holidays/upcoming?limit=0').status_code, 400)

    def test_holiday_types(self):
        self.login(self.school.teacher_user)
        self.assertEqual(self.client.post('/api/v1/holidays/types', json={'name': 'Festival'}).status_code, 403)

        self.login(self.school.admin_user)
        created = self.client.post('/api/v1/holidays/types', json={'name': 'Festival'})
        self.assertEqual(created.status_code, 201)
        self.assertEqual(self.client.post('/api/v1/holidays/types', json={'name': 'festival'}).status_code, 409)
        self.assertEqual(self.client.post('/api/v1/holidays/types', json={}).status_code, 400)

        self.login(self.school.teacher_user)
        types = self.client.get('/api/v1/holidays/types').get_json()['data']
        self.assertEqual(types, [{'id': created.get_json()['data']['id'], 'name': 'Festival', 'holiday_count': 0}])

    def test_holiday_over_marked_day_is_conflict(self):
        self.login(self.school.admin_user)
        self.client.post('/api/v1/attendance/daily', json=self._attendance_payload())

        response = self.client.post('/api/v1/holidays', json={'name': 'Late notice', 'from_date': '2024-03-04'})

        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.get_json()['details']['dates'], ['2024-03-04'])
        self.assertEqual(self.client.get('/api/v1/holidays').get_json()['data'], [])

    # --------------------------------------------------------------- reports

    def test_report_roles(self):
        self.login(self.school.teacher_user)
        response = self.client.post('/api/v1/reports/financial', json={'month': 3, 'year': 2024, 'format': 'csv'})
        self.assertEqual(response.status_code, 403)

        response = self.client.post('/api/v1/reports/timetable', json={'month': 3, 'year': 2024})
        self.assertEqual(response.status_code, 400)

        response = self.client.post('/api/v1/reports/attendance', json={'month': 3, 'year': 2024, 'title': 42})
        self.assertEqual(response.status_code, 400)

    def test_generate_and_download_report(self):
        self.login(self.school.teacher_user)
        response = self.client.post('/api/v1/reports/attendance', json={'month': 3, 'year': 2024, 'format': 'csv'})
        self.assertEqual(response.status_code, 201)
        report = response.get_json()['data']

        download = self.client.get(f"/api/v1/reports/download/{report['id']}")
        self.assertEqual(download.status_code, 200)
        self.assertTrue(download.data.startswith(b'Class,Attendance Percentage'))
        download.close()

        by_url = self.client.get(report['download_url'])
        self.assertEqual(by_url.status_code, 200)
        by_url.close()

        recent = self.client.get('/api/v1/reports/recent').get_json()['data']
        self.assertEqual([item['id'] for item in recent], [report['id']])

        self.login(self.school.subject_teacher_user)
        self.assertEqual(self.client.get(f"/api/v1/reports/download/{report['id']}").status_code, 403)

        self.login(self.school.admin_user)
        admin_download = self.client.get(f"/api/v1/reports/download/{report['id']}")
        self.assertEqual(admin_download.status_code, 200)
        admin_download.close()

    def test_report_data(self):
        self.login(self.school.admin_user)
        response = self.client.get('/api/v1/reports/data/attendance?month=3&year=2024')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()['data']['average_attendance'], 0)

        missing = self.client.get('/api/v1/reports/data/attendance?month=3&year=2024&class_id=999')
        self.assertEqual(missing.status_code, 404)

    def test_unknown_route_is_json(self):
        response = self.client.get('/api/v1/nothing-here')
        self.assertEqual(response.status_code, 404)
        self.assertFalse(response.get_json()['success'])

    def test_me_and_logout(self):
        self.login(self.school.parent_user)
        me = self.client.get('/api/v1/auth/me')
        self.assertEqual(me.get_json()['data']['role'], 'PARENT')

        self.client.post('/api/v1/auth/logout')
        self.assertEqual(self.client.get('/api/v1/auth/me').status_code, 401)

if __name__ == '__main__':
    unittest.main()
