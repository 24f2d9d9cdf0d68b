import csv

from django.core.management.base import BaseCommand, CommandError

from accounts.exceptions import ProvisioningError
from accounts.services import provisioning
from academics.models import Batch

COLUMNS = ('first_name', 'last_name', 'email', 'phone_number', 'register_number', 'parent_name', 'gender', 'password')


class Command(BaseCommand):
    help = 'Import students from CSV into a batch, one provisioning run per row'

    def add_arguments(self, parser):
        parser.add_argument('--file', '-f', dest='file', help='CSV file path', required=True)
        parser.add_argument('--batch', dest='batch_id', type=int, help='Batch id the students join', required=True)

    def handle(self, *args, **options):
        path = options['file']
        batch = Batch.objects.filter(pk=options['batch_id']).first()
        if batch is None:
            raise CommandError(f'Batch {options["batch_id"]} not found')

        try:
            with open(path, newline='', encoding='utf-8') as csvfile:
                rows = list(csv.DictReader(csvfile))
        except FileNotFoundError:
            raise CommandError(f'File not found: {path}')

        self.stdout.write(self.style.SUCCESS(f'Importing {len(rows)} student(s) into {batch}'))

        created = 0
        for line_no, row in enumerate(rows, start=2):
            data = {key: (row.get(key) or '').strip() for key in COLUMNS}
            data['batch_id'] = batch.pk
            try:
                run, generated = provisioning.provision_student(data)
            except ProvisioningError as exc:
                self.stdout.write(self.style.ERROR(f'Line {line_no}: {exc}'))
                continue
            created += 1
            if generated:
                self.stdout.write(f'Line {line_no}: {data["register_number"]} password {generated}')

        self.stdout.write(self.style.SUCCESS(f'Created {created} of {len(rows)} student(s)'))
