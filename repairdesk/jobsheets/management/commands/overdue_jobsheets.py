from datetime import date
from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone
from repairdesk.jobsheets.models import JobSheet


class Command(BaseCommand):
    help = 'Lists job sheets past their expected completion date'

    def add_arguments(self, parser):
        parser.add_argument('--location', type=int, help='Only job sheets of this location id')
        parser.add_argument('--date', help='Evaluate as of this date (YYYY-MM-DD), default today')

    def handle(self, *args, **options):
        today = timezone.localdate()
        if options.get('date'):
            try:
                today = date.fromisoformat(options['date'])
            except ValueError:
                raise CommandError(f"Invalid date '{options['date']}', expected YYYY-MM-DD")

        queryset = JobSheet.objects.overdue(today).select_related('customer', 'location')
        if options.get('location'):
            queryset = queryset.filter(location_id=options['location'])
        queryset = queryset.order_by('expected_completion_date', 'id')

        count = 0
        for job_sheet in queryset:
            count += 1
            days = (today - job_sheet.expected_completion_date).days
            self.stdout.write(
                f"{job_sheet.job_number}  {job_sheet.status:<15} {job_sheet.location.name:<20} "
                f"{job_sheet.customer.name} ({job_sheet.customer.phone})  "
                f"due {job_sheet.expected_completion_date}, {days} day(s) late, balance {job_sheet.balance_amount}"
            )

        if count:
            self.stdout.write(self.style.WARNING(f"\n{count} overdue job sheet(s) as of {today}"))
        else:
            self.stdout.write(self.style.SUCCESS(f"No overdue job sheets as of {today}"))
