from django.test import TestCase
from rest_framework.test import APIClient

from academics.tests.factories import create_user
from certificates.models import CertificateTemplate


class CertificateTemplateApiTests(TestCase):
    def setUp(self):
        self.admin = create_user('admin1', role='admin')
        self.tutor = create_user('tutor1', role='tutor')
        self.client = APIClient()

    def test_admin_creates_html_template(self):
        self.client.force_authenticate(self.admin)
        resp = self.client.post('/api/certificates/templates/', {
            'name': 'Standard', 'template_type': 'html', 'content': '<p>Mr/Ms {studentName}</p>',
        }, format='json')
        self.assertEqual(resp.status_code, 201, resp.data)
        self.assertEqual(CertificateTemplate.objects.get().name, 'Standard')

    def test_html_template_needs_content(self):
        self.client.force_authenticate(self.admin)
        resp = self.client.post('/api/certificates/templates/', {'name': 'Empty', 'template_type': 'html'}, format='json')
        self.assertEqual(resp.status_code, 400)

    def test_pdf_template_needs_file(self):
        self.client.force_authenticate(self.admin)
        resp = self.client.post('/api/certificates/templates/', {'name': 'Scan', 'template_type': 'pdf'}, format='json')
        self.assertEqual(resp.status_code, 400)
        self.assertIn('file', resp.data)

    def test_non_admin_can_read_but_not_write(self):
        CertificateTemplate.objects.create(name='Standard', content='<p>x</p>')
        self.client.force_authenticate(self.tutor)
        self.assertEqual(self.client.get('/api/certificates/templates/').status_code, 200)
        resp = self.client.post('/api/certificates/templates/', {'name': 'X', 'content': 'y'}, format='json')
        self.assertEqual(resp.status_code, 403)

    def test_placeholders(self):
        self.client.force_authenticate(self.tutor)
        resp = self.client.get('/api/certificates/templates/placeholders/')
        self.assertEqual(resp.status_code, 200)
        self.assertIn('{detailedReason}', resp.data['placeholders'])

    def test_preview_with_sample_data(self):
        tpl = CertificateTemplate.objects.create(name='Standard', content='Mr/Ms {studentName}, {purpose}. He/She')
        self.client.force_authenticate(self.tutor)
        resp = self.client.post(f'/api/certificates/templates/{tpl.pk}/preview/', {}, format='json')
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.data['html'], 'Mr. Sample Student, Bonafide Certificate. He')
