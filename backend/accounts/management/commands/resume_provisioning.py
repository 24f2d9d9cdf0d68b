from django.core.management.base import BaseCommand, CommandError

from accounts.exceptions import ProvisioningError
from accounts.models import ProvisioningRun
from accounts.services import provisioning

UNSETTLED = (
    ProvisioningRun.Status.RUNNING,
    ProvisioningRun.Status.COMPENSATING,
    ProvisioningRun.Status.FAILED,
)


class Command(BaseCommand):
    help = 'Finish provisioning runs interrupted mid-way, forward or by rolling back'

    def add_arguments(self, parser):
        parser.add_argument('--run', dest='run_id', type=int, help='Only this run id')
        parser.add_argument('--rollback', action='store_true', help='Undo unfinished runs instead of completing them')

    def handle(self, *args, **options):
        qs = ProvisioningRun.objects.filter(status__in=UNSETTLED).order_by('created_at')
        if options.get('run_id'):
            qs = ProvisioningRun.objects.filter(pk=options['run_id'])
            if not qs.exists():
                raise CommandError(f'Provisioning run {options["run_id"]} not found')

        failures = 0
        for run in qs:
            before = run.status
            try:
                provisioning.resume_run(run, rollback=options['rollback'])
            except ProvisioningError as exc:
                failures += 1
                self.stdout.write(self.style.WARNING(f'Run {run.pk}: {before} -> {run.status} ({exc})'))
                continue
            except Exception as exc:
                failures += 1
                self.stdout.write(self.style.ERROR(f'Run {run.pk}: compensation failed, left as {run.status} ({exc})'))
                continue
            self.stdout.write(self.style.SUCCESS(f'Run {run.pk}: {before} -> {run.status}'))

        if failures:
            self.stdout.write(self.style.WARNING(f'{failures} run(s) did not complete'))
