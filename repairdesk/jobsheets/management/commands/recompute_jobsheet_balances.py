from django.core.management.base import BaseCommand
from django.db import transaction
from repairdesk.jobsheets.models import JobSheet


class Command(BaseCommand):
    help = 'Re-derives total, paid and balance of every job sheet from its costs and recorded payments'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Report drift without saving changes',
        )

    def handle(self, *args, **options):
        dry_run = options['dry_run']
        if dry_run:
            self.stdout.write(self.style.WARNING("DRY RUN MODE: No changes will be saved."))

        job_sheets = JobSheet.objects.order_by('id')
        self.stdout.write(f"Checking {job_sheets.count()} job sheets...")
        fixed = 0

        with transaction.atomic():
            for job_sheet in job_sheets.select_for_update():
                stored = (job_sheet.total_amount, job_sheet.paid_amount, job_sheet.balance_amount)
                amounts = job_sheet.refresh_amounts()
                derived = (amounts.total, amounts.paid, amounts.balance)
                if stored == derived:
                    continue

                fixed += 1
                self.stdout.write(self.style.NOTICE(
                    f"  - {job_sheet.job_number}: total {stored[0]} -> {derived[0]}, "
                    f"paid {stored[1]} -> {derived[1]}, balance {stored[2]} -> {derived[2]}"
                ))
                job_sheet.save(update_fields=['total_amount', 'paid_amount', 'balance_amount', 'updated_at'])

            if dry_run:
                self.stdout.write(self.style.WARNING(f"\nDry run complete. {fixed} job sheet(s) would change. Rolling back."))
                transaction.set_rollback(True)
            else:
                self.stdout.write(self.style.SUCCESS(f"\nRecompute complete. {fixed} job sheet(s) updated."))
