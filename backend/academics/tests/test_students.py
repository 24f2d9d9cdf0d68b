from datetime import date

from django.core.exceptions import ValidationError
from django.test import TestCase
from rest_framework.test import APIClient

from academics.models import Batch, StudentProfile
from academics.services.student_details import build_student_details, get_student_details
from academics.tests.factories import create_batch, create_department, create_staff, create_student, create_user


class StudentProfileModelTests(TestCase):
    def setUp(self):
        self.batch = create_batch(create_department())

    def test_register_number_is_immutable(self):
        student = create_student('arun', 'REG001', batch=self.batch)
        student.register_number = 'REG999'
        with self.assertRaises(ValidationError):
            student.save()

    def test_only_student_users(self):
        tutor = create_user('tutor', role='tutor')
        with self.assertRaises(ValidationError):
            StudentProfile.objects.create(user=tutor, register_number='REG002', batch=self.batch)


class StudentDetailsTests(TestCase):
    def setUp(self):
        department = create_department('Mechanical')
        self.tutor = create_staff('tutor', 'tutor', department, first_name='Tara', last_name='N')
        self.hod = create_staff('hod', 'hod', department, first_name='Hari')
        self.batch = create_batch(department, tutor=self.tutor)

    def test_composed_fields(self):
        student = create_student('arun', 'REG001', batch=self.batch, hod=self.hod, last_name='Kumar')
        details = get_student_details(student.pk, today=date(2025, 3, 1))
        self.assertEqual(details.full_name, 'Arun Kumar')
        self.assertEqual(details.department_name, 'Mechanical')
        self.assertEqual(details.batch_name, '2023-2027 A')
        self.assertEqual(details.current_semester, 4)
        self.assertEqual(details.semester_from_date, date(2025, 1, 1))
        self.assertEqual(details.tutor_name, 'Tara N')
        self.assertEqual(details.hod_name, 'Hari')

    def test_semester_follows_the_requested_day(self):
        student = create_student('arun', 'REG001', batch=self.batch)
        self.assertEqual(build_student_details(student, date(2025, 9, 1)).current_semester, 5)

    def test_override_wins(self):
        Batch.objects.filter(pk=self.batch.pk).update(current_semester=3, semester_override=True)
        student = create_student('arun', 'REG001', batch=Batch.objects.get(pk=self.batch.pk))
        self.assertEqual(build_student_details(student, date(2025, 9, 1)).current_semester, 3)

    def test_missing_student(self):
        self.assertIsNone(get_student_details(9999))


class AcademicsApiTests(TestCase):
    def setUp(self):
        self.cse = create_department('CSE')
        self.ece = create_department('ECE')
        self.admin = create_user('admin', role='admin')
        self.tutor = create_staff('tutor', 'tutor', self.cse)
        self.hod = create_staff('hod', 'hod', self.ece)
        self.client = APIClient()

    def test_admin_creates_batch_with_calendar(self):
        self.client.force_authenticate(self.admin)
        resp = self.client.post('/api/academics/batches/', {
            'name': '2024-2028', 'section': 'B', 'department': self.cse.pk, 'tutor': self.tutor.pk,
        }, format='json')
        self.assertEqual(resp.status_code, 201, resp.data)
        batch = Batch.objects.get(name='2024-2028')
        self.assertIsNotNone(batch.current_semester)
        self.assertIsNotNone(batch.semester_from_date)

    def test_batch_name_validated(self):
        self.client.force_authenticate(self.admin)
        resp = self.client.post('/api/academics/batches/', {'name': 'batch one', 'department': self.cse.pk}, format='json')
        self.assertEqual(resp.status_code, 400)

    def test_override_keeps_entered_values(self):
        batch = create_batch(self.cse)
        self.client.force_authenticate(self.admin)
        resp = self.client.patch(f'/api/academics/batches/{batch.pk}/', {
            'semester_override': True, 'current_semester': 2,
            'semester_from_date': '2025-01-15', 'semester_to_date': '2025-05-30',
        }, format='json')
        self.assertEqual(resp.status_code, 200, resp.data)
        self.client.get('/api/academics/batches/')
        batch.refresh_from_db()
        self.assertEqual(batch.current_semester, 2)
        self.assertEqual(batch.semester_to_date, date(2025, 5, 30))

    def test_override_requires_semester(self):
        batch = create_batch(self.cse)
        self.client.force_authenticate(self.admin)
        resp = self.client.patch(f'/api/academics/batches/{batch.pk}/', {'semester_override': True}, format='json')
        self.assertEqual(resp.status_code, 400)

    def test_list_refreshes_calendars(self):
        batch = create_batch(self.cse)
        self.client.force_authenticate(self.tutor)
        resp = self.client.get('/api/academics/batches/')
        self.assertEqual(resp.status_code, 200)
        batch.refresh_from_db()
        self.assertIsNotNone(batch.current_semester)
        self.assertEqual(resp.data[0]['current_semester'], batch.current_semester)

    def test_non_admin_cannot_create_department(self):
        self.client.force_authenticate(self.tutor)
        resp = self.client.post('/api/academics/departments/', {'name': 'Civil'}, format='json')
        self.assertEqual(resp.status_code, 403)

    def test_student_list_is_scoped(self):
        cse_batch = create_batch(self.cse, tutor=self.tutor)
        ece_batch = create_batch(self.ece)
        mine = create_student('arun', 'CSE001', batch=cse_batch)
        theirs = create_student('bala', 'ECE001', batch=ece_batch)

        self.client.force_authenticate(self.tutor)
        ids = [s['id'] for s in self.client.get('/api/academics/students/').data]
        self.assertEqual(ids, [mine.pk])

        self.client.force_authenticate(self.hod)
        ids = [s['id'] for s in self.client.get('/api/academics/students/').data]
        self.assertEqual(ids, [theirs.pk])

        self.client.force_authenticate(mine.user)
        self.assertEqual(self.client.get(f'/api/academics/students/{theirs.pk}/').status_code, 404)
        detail = self.client.get(f'/api/academics/students/{mine.pk}/')
        self.assertEqual(detail.data['register_number'], 'CSE001')
