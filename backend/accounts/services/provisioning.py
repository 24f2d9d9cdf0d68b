"""Student provisioning as a saga over a committed step log.

Creating a student writes a user, a student profile and the profile's
reviewer links. Each forward step runs in its own transaction and is appended
to `ProvisioningRun.completed_steps` before the next one starts. When a step
fails, the completed steps are compensated newest first, and each
compensation is removed from the log as soon as it is done. A run left behind
by a crash (status RUNNING or COMPENSATING) is finished from the log alone by
`resume_run()`.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Sequence, Tuple

from django.contrib.auth.hashers import make_password
from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.utils.crypto import get_random_string

from accounts.exceptions import ProvisioningError
from accounts.models import ProvisioningRun, User

logger = logging.getLogger(__name__)

STUDENT_KIND = 'student'
REQUIRED_STUDENT_FIELDS = ('first_name', 'email', 'register_number', 'batch_id')
GENERATED_PASSWORD_LENGTH = 10


@dataclass(frozen=True)
class SagaStep:
    name: str
    forward: Callable[[dict, Dict[str, dict]], dict]
    compensate: Callable[[dict], None]


def _noop(result):
    return None


def _check_unique(payload, results):
    email = payload['email']
    register_number = payload['register_number']
    if User.objects.filter(email__iexact=email).exists():
        raise ProvisioningError(f'A user with email "{email}" already exists.')
    if User.objects.filter(username__iexact=payload['username']).exists():
        raise ProvisioningError(f'A user named "{payload["username"]}" already exists.')

    from academics.models import StudentProfile
    if StudentProfile.objects.filter(register_number__iexact=register_number).exists():
        raise ProvisioningError(f'Register number "{register_number}" already exists.')
    return {}


def _create_user(payload, results):
    user = User(
        username=payload['username'],
        email=payload['email'],
        first_name=payload['first_name'],
        last_name=payload.get('last_name', ''),
        phone_number=payload.get('phone_number', ''),
        role=User.Role.STUDENT,
        password=payload['password_hash'],
    )
    try:
        user.save()
    except IntegrityError:
        raise ProvisioningError(f'A user with email "{payload["email"]}" already exists.')
    return {'user_id': user.pk}


def _delete_user(result):
    User.objects.filter(pk=result.get('user_id')).delete()


def _create_profile(payload, results):
    from academics.models import Batch, StudentProfile

    batch = Batch.objects.filter(pk=payload['batch_id']).first()
    if batch is None:
        raise ProvisioningError(f'Batch {payload["batch_id"]} does not exist.')
    user = User.objects.get(pk=results['create_user']['user_id'])

    profile = StudentProfile(
        user=user,
        register_number=payload['register_number'],
        parent_name=payload.get('parent_name', ''),
        gender=payload.get('gender', ''),
        batch=batch,
    )
    try:
        profile.save()
    except ValidationError as exc:
        raise ProvisioningError('; '.join(exc.messages))
    except IntegrityError:
        raise ProvisioningError(f'Register number "{payload["register_number"]}" already exists.')
    return {'profile_id': profile.pk}


def _delete_profile(result):
    from academics.models import StudentProfile
    StudentProfile.objects.filter(pk=result.get('profile_id')).delete()


def _assign_reviewers(payload, results):
    from academics.models import StudentProfile
    from academics.services import get_department_hod_id

    profile_id = results['create_profile']['profile_id']
    profile = StudentProfile.objects.select_related('batch').get(pk=profile_id)
    tutor_id = payload.get('tutor_id') or profile.batch.tutor_id
    hod_id = payload.get('hod_id') or get_department_hod_id(profile.batch.department_id)
    StudentProfile.objects.filter(pk=profile_id).update(tutor_id=tutor_id, hod_id=hod_id)
    return {'profile_id': profile_id, 'tutor_id': tutor_id, 'hod_id': hod_id}


def _clear_reviewers(result):
    from academics.models import StudentProfile
    StudentProfile.objects.filter(pk=result.get('profile_id')).update(tutor=None, hod=None)


STUDENT_STEPS: Tuple[SagaStep, ...] = (
    SagaStep('check_unique', _check_unique, _noop),
    SagaStep('create_user', _create_user, _delete_user),
    SagaStep('create_profile', _create_profile, _delete_profile),
    SagaStep('assign_reviewers', _assign_reviewers, _clear_reviewers),
)

SAGAS = {
    STUDENT_KIND: STUDENT_STEPS,
}


def _save(run, *fields):
    run.save(update_fields=list(fields) + ['updated_at'])


def compensate(run: ProvisioningRun, steps: Sequence[SagaStep], error: str = '') -> ProvisioningRun:
    """Undo the logged steps of `run`, newest first."""
    run.status = ProvisioningRun.Status.COMPENSATING
    if error:
        run.error = error
    _save(run, 'status', 'error')

    by_name = {step.name: step for step in steps}
    while run.completed_steps:
        entry = run.completed_steps[-1]
        step = by_name.get(entry.get('step'))
        try:
            if step is not None:
                with transaction.atomic():
                    step.compensate(entry.get('result') or {})
        except Exception as exc:
            logger.exception('Compensation of step %s failed for run %s', entry.get('step'), run.pk)
            run.status = ProvisioningRun.Status.FAILED
            run.error = f'{run.error}\nCompensation of {entry.get("step")} failed: {exc}'.strip()
            _save(run, 'status', 'error')
            raise
        run.completed_steps = run.completed_steps[:-1]
        _save(run, 'completed_steps')

    run.status = ProvisioningRun.Status.ROLLED_BACK
    _save(run, 'status')
    logger.info('Provisioning run %s rolled back', run.pk)
    return run


def execute(run: ProvisioningRun, steps: Sequence[SagaStep]) -> ProvisioningRun:
    """Run the steps of `run` that are not in its log yet."""
    results = {entry['step']: entry.get('result') or {} for entry in run.completed_steps}
    for step in steps:
        if step.name in results:
            continue
        try:
            with transaction.atomic():
                result = step.forward(run.payload, results) or {}
        except ProvisioningError as exc:
            logger.warning('Provisioning run %s failed at %s: %s', run.pk, step.name, exc)
            compensate(run, steps, error=str(exc))
            raise ProvisioningError(str(exc), run_id=run.pk) from exc
        except Exception as exc:
            logger.exception('Provisioning run %s crashed at %s', run.pk, step.name)
            compensate(run, steps, error=f'{step.name}: {exc}')
            raise ProvisioningError('Account creation failed; nothing was kept.', run_id=run.pk) from exc

        results[step.name] = result
        run.completed_steps = list(run.completed_steps) + [{'step': step.name, 'result': result}]
        _save(run, 'completed_steps')

    run.status = ProvisioningRun.Status.COMPLETED
    _save(run, 'status')
    logger.info('Provisioning run %s completed (%s)', run.pk, run.kind)
    return run


def _clean_student_payload(data: dict) -> Tuple[dict, Optional[str]]:
    payload = {k: (v.strip() if isinstance(v, str) else v) for k, v in data.items() if v is not None}
    missing = [f for f in REQUIRED_STUDENT_FIELDS if not payload.get(f)]
    if missing:
        raise ProvisioningError(f'Missing required fields: {", ".join(missing)}')

    payload['email'] = payload['email'].lower()
    payload.setdefault('username', payload['register_number'])

    generated = None
    password = payload.pop('password', '') or ''
    if not password:
        generated = get_random_string(GENERATED_PASSWORD_LENGTH)
        password = generated
    payload['password_hash'] = make_password(password)
    return payload, generated


def provision_student(data: dict, started_by=None) -> Tuple[ProvisioningRun, Optional[str]]:
    """Create a student account with its profile.

    Returns the completed run and the generated password, if one was
    generated. Raises ProvisioningError with a user-facing message; by then
    every completed step has been undone.
    """
    payload, generated = _clean_student_payload(dict(data))
    run = ProvisioningRun.objects.create(kind=STUDENT_KIND, payload=payload, started_by=started_by)
    execute(run, STUDENT_STEPS)
    return run, generated


def resume_run(run: ProvisioningRun, rollback: bool = False) -> ProvisioningRun:
    """Finish a run left behind by a crash.

    RUNNING runs continue forward unless `rollback` is set; COMPENSATING and
    FAILED runs continue compensating. Settled runs are returned unchanged.
    """
    steps = SAGAS.get(run.kind)
    if steps is None:
        raise ProvisioningError(f'Unknown provisioning kind "{run.kind}".', run_id=run.pk)

    if run.status in (ProvisioningRun.Status.COMPLETED, ProvisioningRun.Status.ROLLED_BACK):
        return run
    if run.status == ProvisioningRun.Status.RUNNING and not rollback:
        return execute(run, steps)
    return compensate(run, steps)
