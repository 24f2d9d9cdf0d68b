from io import StringIO
from unittest import mock

from django.core.management import call_command
from django.test import TestCase

from accounts.exceptions import ProvisioningError
from accounts.models import ProvisioningRun, User
from accounts.services import provisioning
from academics.models import StudentProfile
from academics.tests.factories import create_batch, create_department, create_staff


class StudentProvisioningTests(TestCase):
    def setUp(self):
        self.department = create_department()
        self.tutor = create_staff('tutor', 'tutor', self.department)
        self.hod = create_staff('hod', 'hod', self.department)
        self.batch = create_batch(self.department, tutor=self.tutor)

    def payload(self, **kw):
        data = {
            'first_name': 'Arun',
            'last_name': 'Kumar',
            'email': 'Arun@Example.com',
            'register_number': 'REG001',
            'parent_name': 'Kumar R',
            'gender': 'Male',
            'batch_id': self.batch.pk,
            'password': 'secret123',
        }
        data.update(kw)
        return data

    def test_creates_user_profile_and_reviewers(self):
        run, generated = provisioning.provision_student(self.payload())
        self.assertIsNone(generated)
        self.assertEqual(run.status, ProvisioningRun.Status.COMPLETED)
        self.assertEqual([e['step'] for e in run.completed_steps],
                         ['check_unique', 'create_user', 'create_profile', 'assign_reviewers'])

        profile = StudentProfile.objects.select_related('user').get(register_number='REG001')
        self.assertEqual(profile.user.role, User.Role.STUDENT)
        self.assertEqual(profile.user.email, 'arun@example.com')
        self.assertTrue(profile.user.check_password('secret123'))
        self.assertEqual(profile.tutor_id, self.tutor.pk)
        self.assertEqual(profile.hod_id, self.hod.pk)
        self.assertNotIn('password', run.payload)

    def test_generates_password_when_missing(self):
        run, generated = provisioning.provision_student(self.payload(password=''))
        user = User.objects.get(pk=run.step_result('create_user')['user_id'])
        self.assertTrue(generated)
        self.assertTrue(user.check_password(generated))

    def test_duplicate_email(self):
        User.objects.create_user(username='someone', email='arun@example.com', password='x')
        with self.assertRaisesMessage(ProvisioningError, 'A user with email "arun@example.com" already exists.'):
            provisioning.provision_student(self.payload())
        self.assertFalse(StudentProfile.objects.exists())

    def test_duplicate_register_number(self):
        provisioning.provision_student(self.payload())
        with self.assertRaisesMessage(ProvisioningError, 'Register number "REG001" already exists.'):
            provisioning.provision_student(self.payload(email='other@example.com', username='other'))

    def test_missing_fields(self):
        with self.assertRaises(ProvisioningError):
            provisioning.provision_student(self.payload(first_name=''))
        self.assertFalse(ProvisioningRun.objects.exists())

    def test_failure_compensates_completed_steps(self):
        def explode(payload, results):
            raise RuntimeError('boom')

        steps = provisioning.STUDENT_STEPS[:-1] + (
            provisioning.SagaStep('assign_reviewers', explode, provisioning._clear_reviewers),
        )
        with mock.patch.object(provisioning, 'STUDENT_STEPS', steps):
            with self.assertRaises(ProvisioningError) as ctx:
                provisioning.provision_student(self.payload())

        run = ProvisioningRun.objects.get(pk=ctx.exception.run_id)
        self.assertEqual(run.status, ProvisioningRun.Status.ROLLED_BACK)
        self.assertEqual(run.completed_steps, [])
        self.assertIn('boom', run.error)
        self.assertFalse(User.objects.filter(email='arun@example.com').exists())
        self.assertFalse(StudentProfile.objects.exists())

    def test_unknown_batch(self):
        with self.assertRaisesMessage(ProvisioningError, 'does not exist'):
            provisioning.provision_student(self.payload(batch_id=9999))
        self.assertFalse(User.objects.filter(email='arun@example.com').exists())


class ResumeProvisioningTests(TestCase):
    def setUp(self):
        department = create_department()
        self.batch = create_batch(department)

    def interrupted_run(self):
        """A run that crashed after creating the user."""
        payload, _ = provisioning._clean_student_payload({
            'first_name': 'Bala', 'email': 'bala@example.com', 'register_number': 'REG002', 'batch_id': self.batch.pk,
        })
        run = ProvisioningRun.objects.create(kind=provisioning.STUDENT_KIND, payload=payload)
        results = {'check_unique': provisioning._check_unique(payload, {})}
        results['create_user'] = provisioning._create_user(payload, results)
        run.completed_steps = [{'step': k, 'result': v} for k, v in results.items()]
        run.save()
        return run

    def test_resume_completes_forward(self):
        run = self.interrupted_run()
        out = StringIO()
        call_command('resume_provisioning', stdout=out)
        run.refresh_from_db()
        self.assertEqual(run.status, ProvisioningRun.Status.COMPLETED)
        self.assertTrue(StudentProfile.objects.filter(register_number='REG002').exists())
        self.assertEqual(User.objects.filter(email='bala@example.com').count(), 1)

    def test_rollback_removes_partial_records(self):
        run = self.interrupted_run()
        call_command('resume_provisioning', '--run', str(run.pk), '--rollback', stdout=StringIO())
        run.refresh_from_db()
        self.assertEqual(run.status, ProvisioningRun.Status.ROLLED_BACK)
        self.assertFalse(User.objects.filter(email='bala@example.com').exists())

    def test_settled_runs_are_left_alone(self):
        run = ProvisioningRun.objects.create(kind=provisioning.STUDENT_KIND, status=ProvisioningRun.Status.COMPLETED)
        self.assertIs(provisioning.resume_run(run), run)
        self.assertEqual(run.status, ProvisioningRun.Status.COMPLETED)
