"""Turn an HTML certificate template into the final certificate body.

Substitution is an ordered pipeline of rules. Each rule finds its matches in
the text as it stands after the previous rules, but the value it inserts is
parked behind a marker until every rule has run. Inserted values (a student
called "He", a reason mentioning "his/her") are therefore never rewritten by a
later rule. Markers keep the word/non-word class of the value's first and last
character so `\\b` boundaries next to an insertion behave as if the value were
already in place.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date
from typing import Callable, List, Optional, Pattern, Sequence

from django.utils import timezone

from certificates.exceptions import MissingStudent, MissingTemplate, TemplateNotRenderable

logger = logging.getLogger(__name__)

SIGNATURE_BLOCK = "<p style='margin-top: 40px; text-align: right;'>--- E-Signed by Principal ---</p>"
NOT_AVAILABLE = 'N/A'
DATE_FORMAT = '%d/%m/%Y'


@dataclass(frozen=True)
class GrammarProfile:
    salutation: str
    parent_relation: str
    he_she: str
    his_her: str


FEMALE_GRAMMAR = GrammarProfile(salutation='Ms.', parent_relation='D/o', he_she='She', his_her='her')
DEFAULT_GRAMMAR = GrammarProfile(salutation='Mr.', parent_relation='S/o', he_she='He', his_her='his')


def grammar_profile(gender: Optional[str]) -> GrammarProfile:
    return FEMALE_GRAMMAR if gender == 'Female' else DEFAULT_GRAMMAR


@dataclass(frozen=True)
class RenderContext:
    request: object
    student: object
    grammar: GrammarProfile
    today: date


@dataclass(frozen=True)
class SubstitutionRule:
    name: str
    pattern: Pattern
    value: Callable[[RenderContext], str]


def _token(text: str) -> Pattern:
    return re.compile(re.escape(text))


def _word(text: str) -> Pattern:
    return re.compile(rf'\b{re.escape(text)}\b', re.ASCII)


def _or_na(value) -> str:
    if value is None or value == '':
        return NOT_AVAILABLE
    return str(value)


def _student_name(ctx: RenderContext) -> str:
    first = getattr(ctx.student, 'first_name', '') or ''
    last = getattr(ctx.student, 'last_name', '') or ''
    return f"{first} {last}".strip()


PLACEHOLDER_RULES: Sequence[SubstitutionRule] = (
    SubstitutionRule('studentName', _token('{studentName}'), _student_name),
    SubstitutionRule('studentId', _token('{studentId}'), lambda ctx: str(getattr(ctx.student, 'register_number', '') or '')),
    SubstitutionRule('purpose', _token('{purpose}'), lambda ctx: ctx.request.type or ''),
    SubstitutionRule('subPurpose', _token('{subPurpose}'), lambda ctx: ctx.request.sub_type or ''),
    # Legacy alias: older templates used {reason} for the certificate type.
    SubstitutionRule('reason', _token('{reason}'), lambda ctx: ctx.request.type or ''),
    SubstitutionRule('detailedReason', _token('{detailedReason}'), lambda ctx: ctx.request.reason or ''),
    SubstitutionRule('parentName', _token('{parentName}'), lambda ctx: _or_na(getattr(ctx.student, 'parent_name', None))),
    SubstitutionRule('department', _token('{department}'), lambda ctx: _or_na(getattr(ctx.student, 'department_name', None))),
    SubstitutionRule('batch', _token('{batch}'), lambda ctx: _or_na(getattr(ctx.student, 'batch_name', None))),
    SubstitutionRule('currentSemester', _token('{currentSemester}'), lambda ctx: _or_na(getattr(ctx.student, 'current_semester', None))),
    SubstitutionRule('date', _token('{date}'), lambda ctx: ctx.today.strftime(DATE_FORMAT)),
)

GRAMMAR_MARKER_RULES: Sequence[SubstitutionRule] = (
    SubstitutionRule('Mr/Ms', _token('Mr/Ms'), lambda ctx: ctx.grammar.salutation),
    SubstitutionRule('S/o or D/o', _token('S/o or D/o'), lambda ctx: ctx.grammar.parent_relation),
    SubstitutionRule('He/She', _token('He/She'), lambda ctx: ctx.grammar.he_she),
    SubstitutionRule('his/her', _token('his/her'), lambda ctx: ctx.grammar.his_her),
    SubstitutionRule('He', _word('He'), lambda ctx: ctx.grammar.he_she),
    SubstitutionRule('his', _word('his'), lambda ctx: ctx.grammar.his_her),
)

GRAMMAR_PLACEHOLDER_RULES: Sequence[SubstitutionRule] = (
    SubstitutionRule('salutation', _token('{salutation}'), lambda ctx: ctx.grammar.salutation),
    SubstitutionRule('parentRelation', _token('{parentRelation}'), lambda ctx: ctx.grammar.parent_relation),
    SubstitutionRule('heShe', _token('{heShe}'), lambda ctx: ctx.grammar.he_she),
    SubstitutionRule('hisHer', _token('{hisHer}'), lambda ctx: ctx.grammar.his_her),
)

RULES: Sequence[SubstitutionRule] = tuple(PLACEHOLDER_RULES) + tuple(GRAMMAR_MARKER_RULES) + tuple(GRAMMAR_PLACEHOLDER_RULES)

PLACEHOLDERS = tuple(
    rule.pattern.pattern.replace('\\', '')
    for rule in tuple(PLACEHOLDER_RULES) + tuple(GRAMMAR_PLACEHOLDER_RULES)
)

_MARK = '\x01'
_WORD_EDGE = 'Q'
_OTHER_EDGE = '\x02'
_MARKER_RE = re.compile(f'[{_WORD_EDGE}{_OTHER_EDGE}]{_MARK}(\\d+){_MARK}[{_WORD_EDGE}{_OTHER_EDGE}]')
_CONTROL_RE = re.compile(f'[{_MARK}{_OTHER_EDGE}]')
_WORD_CHAR_RE = re.compile(r'\w', re.ASCII)


class _Stash:
    def __init__(self):
        self.values: List[str] = []

    def _edge(self, ch: str) -> str:
        return _WORD_EDGE if _WORD_CHAR_RE.match(ch) else _OTHER_EDGE

    def park(self, value: str) -> str:
        if not value:
            return ''
        self.values.append(value)
        idx = len(self.values) - 1
        return f'{self._edge(value[0])}{_MARK}{idx}{_MARK}{self._edge(value[-1])}'

    def expand(self, text: str) -> str:
        return _MARKER_RE.sub(lambda m: self.values[int(m.group(1))], text)


def apply_rules(text: str, rules: Sequence[SubstitutionRule], ctx: RenderContext) -> str:
    """Apply `rules` in order; no rule sees the values inserted by another."""
    stash = _Stash()
    text = _CONTROL_RE.sub('', text)
    for rule in rules:
        value = rule.value(ctx)
        marker = stash.park(value)
        text = rule.pattern.sub(lambda _m: marker, text)
    return stash.expand(text)


def render(request, student, template, include_signature: bool = False, today: Optional[date] = None) -> str:
    """Produce the certificate body for `request` from an HTML `template`.

    `student` is a `StudentDetails`-like object (names, register number,
    parent name, gender, department/batch names and current semester).
    Raises MissingTemplate / MissingStudent when an input is absent and
    TemplateNotRenderable for file-based templates.
    """
    if template is None:
        raise MissingTemplate('Certificate template not found.')
    if student is None:
        raise MissingStudent('Student details not found.')
    if template.template_type != 'html':
        raise TemplateNotRenderable(
            f'Template "{template.name}" is a {template.template_type} file; use its file instead of rendering.'
        )

    ctx = RenderContext(
        request=request,
        student=student,
        grammar=grammar_profile(getattr(student, 'gender', None)),
        today=today if today is not None else timezone.localdate(),
    )

    content = apply_rules(template.content or '', RULES, ctx)

    if include_signature:
        content += SIGNATURE_BLOCK

    logger.debug('Rendered template %s for request %s (%d chars)', getattr(template, 'pk', None), getattr(request, 'pk', None), len(content))
    return content
