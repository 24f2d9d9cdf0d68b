from datetime import date
from types import SimpleNamespace

from django.test import SimpleTestCase

from certificates.exceptions import MissingStudent, MissingTemplate, TemplateNotRenderable
from certificates.services import renderer


def _request(**kw):
    data = {'pk': 1, 'type': 'Bonafide Certificate', 'sub_type': 'Bank Loan', 'reason': 'Education loan'}
    data.update(kw)
    return SimpleNamespace(**data)


def _student(**kw):
    data = {
        'first_name': 'Arun', 'last_name': 'Kumar', 'register_number': '7376221CS101', 'parent_name': 'Kumar R',
        'gender': 'Male', 'department_name': 'Computer Science', 'batch_name': '2023-2027 A', 'current_semester': 4,
    }
    data.update(kw)
    return SimpleNamespace(**data)


def _template(content, template_type='html'):
    return SimpleNamespace(pk=9, name='Standard', template_type=template_type, content=content)


TODAY = date(2025, 3, 1)


class PlaceholderTests(SimpleTestCase):
    def render(self, content, request=None, student=None, **kw):
        return renderer.render(request or _request(), student or _student(), _template(content), today=TODAY, **kw)

    def test_every_placeholder(self):
        cases = {
            '{studentName}': 'Arun Kumar',
            '{studentId}': '7376221CS101',
            '{purpose}': 'Bonafide Certificate',
            '{subPurpose}': 'Bank Loan',
            '{reason}': 'Bonafide Certificate',
            '{detailedReason}': 'Education loan',
            '{parentName}': 'Kumar R',
            '{department}': 'Computer Science',
            '{batch}': '2023-2027 A',
            '{currentSemester}': '4',
            '{date}': '01/03/2025',
        }
        for token, expected in cases.items():
            with self.subTest(token=token):
                self.assertEqual(self.render(f'[{token}]'), f'[{expected}]')

    def test_every_occurrence_is_replaced(self):
        self.assertEqual(self.render('{studentId}/{studentId}'), '7376221CS101/7376221CS101')

    def test_missing_optional_values_become_na(self):
        student = _student(parent_name='', department_name=None, batch_name=None, current_semester=None)
        out = self.render('{parentName}|{department}|{batch}|{currentSemester}', student=student)
        self.assertEqual(out, 'N/A|N/A|N/A|N/A')

    def test_empty_sub_purpose(self):
        self.assertEqual(self.render('({subPurpose})', request=_request(sub_type='')), '()')

    def test_unknown_tokens_are_left_alone(self):
        self.assertEqual(self.render('{unknown} {studentname}'), '{unknown} {studentname}')

    def test_signature_appended_only_when_asked(self):
        self.assertFalse(self.render('Body').endswith(renderer.SIGNATURE_BLOCK))
        self.assertEqual(self.render('Body', include_signature=True), 'Body' + renderer.SIGNATURE_BLOCK)

    def test_placeholder_list(self):
        self.assertIn('{studentName}', renderer.PLACEHOLDERS)
        self.assertIn('{hisHer}', renderer.PLACEHOLDERS)


class GrammarTests(SimpleTestCase):
    CONTENT = 'Mr/Ms {studentName} S/o or D/o {parentName}. He/She said his/her work. He is here with his book.'

    def test_female_forms(self):
        out = renderer.render(_request(), _student(first_name='Priya', last_name='S', gender='Female', parent_name='Suresh'),
                              _template(self.CONTENT), today=TODAY)
        self.assertEqual(out, 'Ms. Priya S D/o Suresh. She said her work. She is here with her book.')

    def test_default_forms(self):
        for gender in ('Male', 'Other', '', None):
            with self.subTest(gender=gender):
                out = renderer.render(_request(), _student(gender=gender), _template(self.CONTENT), today=TODAY)
                self.assertEqual(out, 'Mr. Arun Kumar S/o Kumar R. He said his work. He is here with his book.')

    def test_grammar_placeholders(self):
        out = renderer.render(_request(), _student(gender='Female'), _template('{salutation}|{parentRelation}|{heShe}|{hisHer}'),
                              today=TODAY)
        self.assertEqual(out, 'Ms.|D/o|She|her')

    def test_whole_words_only(self):
        content = 'Hello there, this is hisself. The Hero said His.'
        out = renderer.render(_request(), _student(gender='Female'), _template(content), today=TODAY)
        self.assertEqual(out, content)

    def test_pronoun_next_to_punctuation(self):
        out = renderer.render(_request(), _student(gender='Female'), _template('(He), his.'), today=TODAY)
        self.assertEqual(out, '(She), her.')


class InsertedValuesAreNotRewrittenTests(SimpleTestCase):
    def test_student_named_he(self):
        student = _student(first_name='He', last_name='Man', gender='Female')
        out = renderer.render(_request(), student, _template('{studentName} went. He/She left.'), today=TODAY)
        self.assertEqual(out, 'He Man went. She left.')

    def test_reason_with_grammar_markers(self):
        req = _request(reason='his/her plan with Mr/Ms X. He said so')
        out = renderer.render(req, _student(gender='Female'), _template('{detailedReason}. He agrees.'), today=TODAY)
        self.assertEqual(out, 'his/her plan with Mr/Ms X. He said so. She agrees.')

    def test_value_containing_a_placeholder(self):
        req = _request(reason='see {studentName}')
        out = renderer.render(req, _student(), _template('{detailedReason}'), today=TODAY)
        self.assertEqual(out, 'see {studentName}')

    def test_pronoun_after_inserted_value(self):
        out = renderer.render(_request(), _student(gender='Female'), _template('{studentId} He'), today=TODAY)
        self.assertEqual(out, '7376221CS101 She')


class IdempotenceTests(SimpleTestCase):
    def test_same_inputs_same_output(self):
        template = _template('Mr/Ms {studentName}, {date}. He/She and his book.')
        first = renderer.render(_request(), _student(), template, today=TODAY)
        second = renderer.render(_request(), _student(), template, today=TODAY)
        self.assertEqual(first, second)

    def test_rendering_output_again_changes_nothing(self):
        template = _template('Mr/Ms {studentName} ({studentId}). He/She said his/her piece.')
        once = renderer.render(_request(), _student(gender='Female'), template, today=TODAY)
        twice = renderer.render(_request(), _student(gender='Female'), _template(once), today=TODAY)
        self.assertEqual(once, twice)


class PreconditionTests(SimpleTestCase):
    def test_missing_template(self):
        with self.assertRaises(MissingTemplate):
            renderer.render(_request(), _student(), None)

    def test_missing_student(self):
        with self.assertRaises(MissingStudent):
            renderer.render(_request(), None, _template('x'))

    def test_file_templates_are_not_rendered(self):
        with self.assertRaises(TemplateNotRenderable):
            renderer.render(_request(), _student(), _template(None, template_type='pdf'))

    def test_control_characters_in_template_are_dropped(self):
        out = renderer.render(_request(), _student(), _template('a\x01b\x02c'), today=TODAY)
        self.assertEqual(out, 'abc')
