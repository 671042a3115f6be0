import datetime
from decimal import Decimal
from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone
from erp_core.models import (Bill, Client, Customer, Employee, Invoice,
                             Membership, Vendor)
from erp_core.services.attendance import mark_attendance
from erp_core.services.invoicing import create_bill, create_invoice, send_invoice
from erp_core.services.periods import (activate_period, create_fiscal_year,
                                       resolve_period)
from erp_core.services.posting import (ensure_system_accounts,
                                       record_expense_entry,
                                       record_sales_entry)

User = get_user_model()


class Command(BaseCommand):
    help = (
        "Create a demo tenant (client), user, and sample financial data for testing."
    )

    # Define command-line arguments
    def add_arguments(self, parser):
        parser.add_argument(
            "--company-name",  # Define flag
            default="Demo Company",
            help="Name of the demo client to create.",
        )
        parser.add_argument(
            "--username", default="demo", help="Username for the demo user."
        )
        parser.add_argument(
            "--password", default="demo123", help="Password for the demo user."
        )

    @transaction.atomic
    def handle(self, *args, **options):
        # Read arguments from add_arguments()
        company_name = options["company_name"]
        username = options["username"]
        password = options["password"]
        today = timezone.localdate()

        # 1. Create client (code, slug and subscription dates are generated)
        client, _ = Client.objects.get_or_create(
            company_name=company_name,
            defaults={"contact_person": "Demo Owner", "email": "owner@example.com"},
        )
        self.stdout.write(self.style.SUCCESS(f"Created client: {client}"))

        # 2. Create user and make them the owner
        user, created = User.objects.get_or_create(
            username=username,
            defaults={"email": f"{username}@example.com"},
        )
        if created:  # if user newly created
            user.set_password(password)
            user.save()
        Membership.objects.get_or_create(
            user=user, client=client, defaults={"role": "owner"})
        user.default_client = client
        user.save()
        self.stdout.write(
            self.style.SUCCESS(f"Created user: {user.username} (pw={password})")
        )

        # 3. Fiscal year with month periods, current month active
        fy_name = str(today.year)
        if not client.fiscalyear_set.filter(name=fy_name).exists():
            create_fiscal_year(
                client, fy_name,
                datetime.date(today.year, 1, 1), datetime.date(today.year, 12, 31),
                monthly_periods=True, user=user,
            )
        period = activate_period(resolve_period(client, today), user=user)
        self.stdout.write(self.style.SUCCESS(f"Active period: {period.name}"))

        # 4. Chart of accounts
        ensure_system_accounts(client)
        self.stdout.write(self.style.SUCCESS("Created system accounts"))

        # 5. Parties and documents
        customer, _ = Customer.objects.get_or_create(
            client=client, customer_code="C-001",
            defaults={"customer_name": f"{company_name[:20]} Customer"})
        vendor, _ = Vendor.objects.get_or_create(
            client=client, vendor_code="V-001",
            defaults={"vendor_name": f"{company_name[:20]} Supplier"})

        inv_no = f"INV-{today:%Y%m}-{Invoice.objects.for_client(client).count() + 1:03d}"
        invoice = create_invoice(
            client, customer, inv_no, today, Decimal("1000.00"),
            tax_amount=Decimal("150.00"), period=period, user=user)
        send_invoice(invoice, user=user)
        self.stdout.write(self.style.SUCCESS(f"Created invoice: {invoice.invoice_number}"))

        bill_no = f"BILL-{today:%Y%m}-{Bill.objects.for_client(client).count() + 1:03d}"
        create_bill(client, vendor, bill_no, today, Decimal("400.00"),
                    tax_amount=Decimal("0.00"), period=period, user=user)

        # 6. Day book postings
        record_sales_entry(client, today, "Counter sales", Decimal("250.00"),
                           category="Retail", period=period, user=user)
        record_expense_entry(client, today, "Office supplies", Decimal("80.00"),
                             category="Office", period=period, user=user)

        # 7. Staff and today's attendance
        employee, _ = Employee.objects.get_or_create(
            client=client, employee_code="E-001",
            defaults={"name": "Demo Employee", "position": "Clerk",
                      "salary": Decimal("1500.00"), "hire_date": today})
        mark_attendance(employee, today, "present")

        self.stdout.write(self.style.SUCCESS("Demo data created successfully!"))
