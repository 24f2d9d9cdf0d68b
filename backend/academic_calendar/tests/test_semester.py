from datetime import date
from io import StringIO

from django.core.management import call_command
from django.test import TestCase
from rest_framework.test import APIClient

from academic_calendar.services import semester as semester_service
from academics.models import Batch
from academics.tests.factories import create_batch, create_department, create_user


class CurrentSemesterTests(TestCase):
    def test_even_semester_before_july(self):
        self.assertEqual(semester_service.current_semester('2023-2027', date(2025, 3, 1)), 4)

    def test_odd_semester_from_july(self):
        self.assertEqual(semester_service.current_semester('2023-2027', date(2025, 9, 1)), 5)

    def test_july_first_starts_new_academic_year(self):
        self.assertEqual(semester_service.current_semester('2023-2027', date(2025, 6, 30)), 4)
        self.assertEqual(semester_service.current_semester('2023-2027', date(2025, 7, 1)), 5)

    def test_first_semester_of_new_batch(self):
        self.assertEqual(semester_service.current_semester('2025-2029', date(2025, 8, 15)), 1)

    def test_old_batch_clamps_to_eight(self):
        self.assertEqual(semester_service.current_semester('1990-1994', date(2025, 3, 1)), 8)

    def test_future_batch_clamps_to_one(self):
        self.assertEqual(semester_service.current_semester('2030-2034', date(2025, 3, 1)), 1)

    def test_section_suffix_is_ignored(self):
        self.assertEqual(semester_service.current_semester('2023-2027 B', date(2025, 3, 1)), 4)

    def test_malformed_names_fall_back_to_one(self):
        for name in ('', 'garbage', '2023', 'abc-2027', '2023-2025-2027'):
            with self.subTest(name=name):
                with self.assertLogs('academic_calendar.services.semester', level='WARNING'):
                    self.assertEqual(semester_service.current_semester(name, date(2025, 3, 1)), 1)

    def test_result_always_in_range(self):
        for year in range(2000, 2040, 3):
            for month in (1, 6, 7, 12):
                sem = semester_service.current_semester('2020-2024', date(year, month, 1))
                self.assertTrue(1 <= sem <= 8)


class ParseBatchNameTests(TestCase):
    def test_parts(self):
        parsed = semester_service.parse_batch_name('2023-2027 A')
        self.assertEqual((parsed.start_year, parsed.end_year, parsed.section), (2023, 2027, 'A'))

    def test_non_numeric_year_is_none(self):
        parsed = semester_service.parse_batch_name('abc-2027')
        self.assertIsNone(parsed.start_year)
        self.assertEqual(parsed.end_year, 2027)

    def test_wrong_shape(self):
        self.assertIsNone(semester_service.parse_batch_name('2023'))
        self.assertIsNone(semester_service.parse_batch_name(None))


class SemesterDateRangeTests(TestCase):
    def test_odd_semester_window(self):
        self.assertEqual(
            semester_service.semester_date_range('2023-2027', 5),
            (date(2025, 7, 1), date(2025, 12, 31)),
        )

    def test_even_semester_window(self):
        self.assertEqual(
            semester_service.semester_date_range('2023-2027', 4),
            (date(2025, 1, 1), date(2025, 6, 30)),
        )

    def test_first_and_last_semester(self):
        self.assertEqual(semester_service.semester_date_range('2023-2027', 1), (date(2023, 7, 1), date(2023, 12, 31)))
        self.assertEqual(semester_service.semester_date_range('2023-2027', 8), (date(2027, 1, 1), date(2027, 6, 30)))

    def test_window_contains_the_day_its_semester_was_computed_for(self):
        for as_of in (date(2024, 2, 10), date(2024, 10, 10), date(2026, 5, 5)):
            sem = semester_service.current_semester('2023-2027', as_of)
            start, end = semester_service.semester_date_range('2023-2027', sem)
            self.assertTrue(start <= as_of <= end, (as_of, sem, start, end))

    def test_unparsable_start_year_uses_current_year(self):
        with self.assertLogs('academic_calendar.services.semester', level='WARNING'):
            window = semester_service.semester_date_range('abc-def', 3, today=date(2025, 5, 5))
        self.assertEqual(window, (date(2026, 7, 1), date(2026, 12, 31)))

    def test_invalid_semester_gives_calendar_year(self):
        with self.assertLogs('academic_calendar.services.semester', level='WARNING'):
            window = semester_service.semester_date_range('2023-2027', 'x', today=date(2025, 5, 5))
        self.assertEqual(window, (date(2025, 1, 1), date(2025, 12, 31)))

    def test_unrepresentable_dates_give_calendar_year(self):
        with self.assertLogs('academic_calendar.services.semester', level='WARNING'):
            window = semester_service.semester_date_range('9999-10003', 8, today=date(2025, 5, 5))
        self.assertEqual(window, (date(2025, 1, 1), date(2025, 12, 31)))


class BatchCalendarRefreshTests(TestCase):
    def setUp(self):
        self.department = create_department()

    def test_refresh_stores_derived_window(self):
        batch = create_batch(self.department)
        window = semester_service.refresh_batch_calendar(batch, today=date(2025, 3, 1))
        batch.refresh_from_db()
        self.assertEqual(window.semester, 4)
        self.assertEqual(batch.current_semester, 4)
        self.assertEqual(batch.semester_from_date, date(2025, 1, 1))
        self.assertEqual(batch.semester_to_date, date(2025, 6, 30))

    def test_override_is_left_untouched(self):
        batch = create_batch(
            self.department,
            current_semester=6,
            semester_from_date=date(2025, 2, 1),
            semester_to_date=date(2025, 7, 15),
            semester_override=True,
        )
        window = semester_service.refresh_batch_calendar(batch, today=date(2025, 3, 1))
        batch.refresh_from_db()
        self.assertEqual(window.semester, 6)
        self.assertEqual(batch.current_semester, 6)
        self.assertEqual(batch.semester_to_date, date(2025, 7, 15))

    def test_snapshot_does_not_write(self):
        batch = create_batch(self.department)
        window = semester_service.semester_snapshot(batch, date(2025, 9, 1))
        batch.refresh_from_db()
        self.assertEqual(window.semester, 5)
        self.assertIsNone(batch.current_semester)

    def test_management_command_refreshes_active_batches(self):
        active = create_batch(self.department, name='2023-2027')
        inactive = create_batch(self.department, name='2022-2026', status=Batch.Status.INACTIVE)
        out = StringIO()
        call_command('refresh_batch_calendars', '--date', '2025-09-01', stdout=out)
        active.refresh_from_db()
        inactive.refresh_from_db()
        self.assertEqual(active.current_semester, 5)
        self.assertIsNone(inactive.current_semester)
        self.assertIn('Refreshed 1 batch(es)', out.getvalue())

        call_command('refresh_batch_calendars', '--date', '2025-09-01', '--include-inactive', stdout=StringIO())
        inactive.refresh_from_db()
        self.assertEqual(inactive.current_semester, 7)


class SemesterPreviewViewTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.client.force_authenticate(create_user('viewer', role='admin'))

    def test_preview_current_window(self):
        resp = self.client.get('/api/calendar/semester/', {'batch': '2023-2027 A', 'date': '2025-03-01'})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data['current_semester'], 4)
        self.assertEqual(resp.data['semester_from_date'], '2025-01-01')
        self.assertEqual(resp.data['semester_to_date'], '2025-06-30')
        self.assertEqual(resp.data['section'], 'A')

    def test_preview_explicit_semester(self):
        resp = self.client.get('/api/calendar/semester/', {'batch': '2023-2027', 'semester': '5'})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data['semester_from_date'], '2025-07-01')

    def test_batch_required(self):
        resp = self.client.get('/api/calendar/semester/')
        self.assertEqual(resp.status_code, 400)

    def test_requires_authentication(self):
        resp = APIClient().get('/api/calendar/semester/', {'batch': '2023-2027'})
        self.assertEqual(resp.status_code, 401)
