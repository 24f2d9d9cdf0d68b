from datetime import date

from django.core.management.base import BaseCommand, CommandError

from academics.models import Batch
from academic_calendar.services import semester as semester_service


class Command(BaseCommand):
    help = 'Recompute current semester and semester dates for every batch that is not manually overridden.'

    def add_arguments(self, parser):
        parser.add_argument('--date', dest='as_of', help='Compute as of this date (yyyy-mm-dd) instead of today')
        parser.add_argument('--include-inactive', action='store_true', help='Also refresh inactive batches')

    def handle(self, *args, **options):
        as_of = None
        if options.get('as_of'):
            try:
                as_of = date.fromisoformat(options['as_of'])
            except ValueError:
                raise CommandError(f"Invalid --date: {options['as_of']}")

        qs = Batch.objects.all()
        if not options.get('include_inactive'):
            qs = qs.filter(status=Batch.Status.ACTIVE)

        skipped = qs.filter(semester_override=True).count()
        count = semester_service.refresh_batches(qs.iterator(), today=as_of)

        self.stdout.write(self.style.SUCCESS(f'Refreshed {count} batch(es); {skipped} overridden batch(es) left as entered.'))
