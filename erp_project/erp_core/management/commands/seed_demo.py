import datetime
from decimal import Decimal
from django.core.management import call_command
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction
from django.utils import timezone
from erp_core.models import Client, Employee
from erp_core.services.attendance import mark_attendance

# repeating pattern for generated working days
ATTENDANCE_CYCLE = ("present", "present", "present", "half_day", "present", "absent")
POSITIONS = ("Clerk", "Cashier", "Storekeeper", "Driver")


class Command(BaseCommand):
    help = (
        "Seed a demo client (via create_demo_tenant) plus extra staff "
        "and a history of weekday attendance."
    )

    def add_arguments(self, parser):
        parser.add_argument(
            "--company", type=str, default="Demo Ltd",
            help="Name of the demo client (default: Demo Ltd)")
        parser.add_argument(
            "--username", type=str, default="demo",
            help="Owner account for the demo client")
        parser.add_argument(
            "--employees", type=int, default=3,
            help="Extra employees to add besides E-001")
        parser.add_argument(
            "--days", type=int, default=10,
            help="Past days of attendance to mark for every employee")

    def handle(self, *args, **options):
        company = options["company"]
        if options["employees"] < 0 or options["days"] < 0:
            raise CommandError("--employees and --days cannot be negative")

        self.stdout.write(self.style.NOTICE(f"Seeding demo data for {company}..."))
        call_command("create_demo_tenant", company_name=company,
                     username=options["username"], stdout=self.stdout)
        client = Client.objects.get(company_name=company)

        with transaction.atomic():
            staff = self.add_employees(client, options["employees"])
            marks = self.backfill_attendance(staff, options["days"])

        self.stdout.write(f"{len(staff)} employees, {marks} attendance marks")
        self.stdout.write(self.style.SUCCESS("Demo data seeded successfully!"))

    def add_employees(self, client, count):
        today = timezone.localdate()
        for n in range(2, count + 2):
            Employee.objects.get_or_create(
                client=client, employee_code=f"E-{n:03d}",
                defaults={
                    "name": f"Demo Employee {n}",
                    "position": POSITIONS[n % len(POSITIONS)],
                    "salary": Decimal("1200.00") + 100 * n,
                    "hire_date": today,
                })
        return list(Employee.objects.for_client(client).filter(
            status="active").order_by("employee_code"))

    def backfill_attendance(self, staff, days):
        today = timezone.localdate()
        marks = 0
        for offset in range(1, days + 1):
            day = today - datetime.timedelta(days=offset)
            if day.weekday() >= 5:
                continue
            for i, employee in enumerate(staff):
                status = ATTENDANCE_CYCLE[(offset + i) % len(ATTENDANCE_CYCLE)]
                mark_attendance(employee, day, status, notes="seeded")
                marks += 1
        return marks
