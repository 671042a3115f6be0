import datetime
import logging
from decimal import Decimal
from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Count, F, Q, Sum
from django.utils import timezone
# Import models
from ..models import Bill, Invoice, JournalEntry
from ..models.bill import BILL_OPEN_STATUSES
from ..models.invoice import INV_OPEN_STATUSES
from .audit_helper import log_action
from .posting import CENT, post_journal, reverse_journal, system_account
from .periods import resolve_period

logger = logging.getLogger(__name__)


def _default_tax(subtotal):
    return (Decimal(subtotal) * settings.ERP_DEFAULT_TAX_RATE).quantize(CENT)


def _document_journal(reference_type, document):
    return JournalEntry.objects.filter(
        client=document.client,
        reference_type=reference_type,
        reference_id=document.pk,
        status="posted",
        reversed_by__isnull=True,
    ).first()


# ----------------------------------------------
# Invoice workflows (Accounts Receivable)
# ----------------------------------------------
def create_invoice(client, customer, invoice_number, invoice_date, subtotal, *,
                   tax_amount=None, due_date=None, period=None, notes="", user=None):
    """Draft invoice; due date defaults from the customer's payment terms."""
    if customer.client_id != client.pk:
        raise ValidationError("Customer must belong to the same client.")
    if due_date is None:
        due_date = invoice_date + datetime.timedelta(days=customer.payment_terms)
    if tax_amount is None:
        tax_amount = _default_tax(subtotal)

    with transaction.atomic():
        invoice = Invoice.objects.create(
            client=client,
            period=period or resolve_period(client, invoice_date),
            customer=customer,
            invoice_number=invoice_number,
            invoice_date=invoice_date,
            due_date=due_date,
            subtotal=subtotal,
            tax_amount=tax_amount,
            notes=notes,
        )
        log_action(action="create", instance=invoice, user=user,
                   changes={"total": str(invoice.total_amount)})
    return invoice


"""Move invoice from draft → sent and recognise the revenue."""
def send_invoice(invoice: Invoice, user=None):
    with transaction.atomic():
        inv = Invoice.objects.select_for_update().get(pk=invoice.pk)
        if inv.total_amount <= 0:
            raise ValidationError("Invoice total must be > 0 to post revenue")

        # idempotency: don't post twice
        if not _document_journal("invoice", inv):
            lines = [
                {"account": system_account(inv.client, "receivables"),
                 "debit": inv.total_amount},
                {"account": system_account(inv.client, "sales"),
                 "credit": inv.subtotal},
            ]
            if inv.tax_amount > 0:
                lines.append({"account": system_account(inv.client, "tax_payable"),
                              "credit": inv.tax_amount})
            post_journal(
                inv.client,
                inv.invoice_date,
                lines,
                description=f"Invoice {inv.invoice_number}",
                period=inv.period,
                reference_type="invoice",
                reference_id=inv.pk,
                user=user,
            )
        inv.transition_to("sent")
        log_action(action="send", instance=inv, user=user)

    logger.info("Invoice %s sent", inv.invoice_number)
    invoice.refresh_from_db()
    return invoice


def record_invoice_payment(invoice: Invoice, amount, *, payment_date=None,
                           account_type="cash", user=None):
    """
    Receive money against a sent invoice.
    The invoice becomes paid once nothing is outstanding.
    """
    amount = Decimal(str(amount)).quantize(CENT)
    if amount <= 0:
        raise ValidationError("Payment amount must be positive")

    with transaction.atomic():
        inv = Invoice.objects.select_for_update().get(pk=invoice.pk)
        if inv.status not in ("sent", "overdue"):
            raise ValidationError(f"Cannot record a payment on a {inv.status} invoice")
        # Validate invoice outstanding
        if amount > inv.outstanding_amount:
            raise ValidationError("Payment exceeds invoice outstanding amount")

        day = payment_date or timezone.localdate()
        post_journal(
            inv.client,
            day,
            [
                {"account": system_account(
                    inv.client, "bank" if account_type == "bank" else "cash"),
                 "debit": amount},
                {"account": system_account(inv.client, "receivables"),
                 "credit": amount},
            ],
            description=f"Payment for invoice {inv.invoice_number}",
            reference_type="invoice_payment",
            reference_id=inv.pk,
            user=user,
        )
        inv.paid_amount += amount
        if inv.paid_amount == inv.total_amount:
            inv.transition_to("paid")
        else:
            inv.save(update_fields=["paid_amount", "total_amount", "updated_at"])
        log_action(action="payment", instance=inv, user=user,
                   changes={"amount": str(amount), "paid": str(inv.paid_amount)})

    invoice.refresh_from_db()
    return invoice


def cancel_invoice(invoice: Invoice, user=None):
    with transaction.atomic():
        inv = Invoice.objects.select_for_update().get(pk=invoice.pk)
        if inv.paid_amount > 0:
            raise ValidationError("Cannot cancel an invoice with recorded payments")
        journal = _document_journal("invoice", inv)
        if journal:
            reverse_journal(journal, user=user)
        inv.transition_to("cancelled")
        log_action(action="cancel", instance=inv, user=user)
    invoice.refresh_from_db()
    return invoice


# ------------------------------------
# Bill workflows (Accounts Payable)
# ------------------------------------
def create_bill(client, vendor, bill_number, bill_date, subtotal, *,
                tax_amount=None, due_date=None, period=None, notes="", user=None):
    if vendor.client_id != client.pk:
        raise ValidationError("Vendor must belong to the same client.")
    if due_date is None:
        due_date = bill_date + datetime.timedelta(days=vendor.payment_terms)
    if tax_amount is None:
        tax_amount = _default_tax(subtotal)

    with transaction.atomic():
        bill = Bill.objects.create(
            client=client,
            period=period or resolve_period(client, bill_date),
            vendor=vendor,
            bill_number=bill_number,
            bill_date=bill_date,
            due_date=due_date,
            subtotal=subtotal,
            tax_amount=tax_amount,
            notes=notes,
        )
        log_action(action="create", instance=bill, user=user,
                   changes={"total": str(bill.total_amount)})
    return bill


"""Move bill from draft → approved and book the liability."""
def approve_bill(bill: Bill, user=None):
    with transaction.atomic():
        b = Bill.objects.select_for_update().get(pk=bill.pk)
        if b.total_amount <= 0:
            raise ValidationError("Bill total must be > 0 to post")

        if not _document_journal("bill", b):
            lines = [
                {"account": system_account(b.client, "purchases"), "debit": b.subtotal},
                {"account": system_account(b.client, "payables"),
                 "credit": b.total_amount},
            ]
            # input tax is set off against tax payable
            if b.tax_amount > 0:
                lines.insert(1, {"account": system_account(b.client, "tax_payable"),
                                 "debit": b.tax_amount})
            post_journal(
                b.client,
                b.bill_date,
                lines,
                description=f"Bill {b.bill_number}",
                period=b.period,
                reference_type="bill",
                reference_id=b.pk,
                user=user,
            )
        b.transition_to("approved")
        log_action(action="approve", instance=b, user=user)

    logger.info("Bill %s approved", b.bill_number)
    bill.refresh_from_db()
    return bill


def record_bill_payment(bill: Bill, amount, *, payment_date=None,
                        account_type="cash", user=None):
    amount = Decimal(str(amount)).quantize(CENT)
    if amount <= 0:
        raise ValidationError("Payment amount must be positive")

    with transaction.atomic():
        b = Bill.objects.select_for_update().get(pk=bill.pk)
        if b.status not in ("approved", "overdue"):
            raise ValidationError(f"Cannot record a payment on a {b.status} bill")
        if amount > b.outstanding_amount:
            raise ValidationError("Payment exceeds bill outstanding amount")

        post_journal(
            b.client,
            payment_date or timezone.localdate(),
            [
                {"account": system_account(b.client, "payables"), "debit": amount},
                {"account": system_account(
                    b.client, "bank" if account_type == "bank" else "cash"),
                 "credit": amount},
            ],
            description=f"Payment for bill {b.bill_number}",
            reference_type="bill_payment",
            reference_id=b.pk,
            user=user,
        )
        b.paid_amount += amount
        if b.paid_amount == b.total_amount:
            b.transition_to("paid")
        else:
            b.save(update_fields=["paid_amount", "total_amount", "updated_at"])
        log_action(action="payment", instance=b, user=user,
                   changes={"amount": str(amount), "paid": str(b.paid_amount)})

    bill.refresh_from_db()
    return bill


def cancel_bill(bill: Bill, user=None):
    with transaction.atomic():
        b = Bill.objects.select_for_update().get(pk=bill.pk)
        if b.paid_amount > 0:
            raise ValidationError("Cannot cancel a bill with recorded payments")
        journal = _document_journal("bill", b)
        if journal:
            reverse_journal(journal, user=user)
        b.transition_to("cancelled")
        log_action(action="cancel", instance=b, user=user)
    bill.refresh_from_db()
    return bill


# ------------------------------------
# Due dates & summaries
# ------------------------------------
def mark_overdue(client, today):
    """Sent invoices and approved bills past their due date become overdue."""
    invoices = bills = 0
    with transaction.atomic():
        for inv in Invoice.objects.select_for_update().filter(
                client=client, status="sent", due_date__lt=today):
            inv.transition_to("overdue")
            invoices += 1
        for b in Bill.objects.select_for_update().filter(
                client=client, status="approved", due_date__lt=today):
            b.transition_to("overdue")
            bills += 1
    if invoices or bills:
        logger.info("%s: %d invoice(s) and %d bill(s) now overdue",
                    client.client_code, invoices, bills)
    return {"invoices": invoices, "bills": bills}


def _summary(qs, open_statuses, today):
    totals = qs.aggregate(
        outstanding=Sum(F("total_amount") - F("paid_amount"),
                        filter=Q(status__in=open_statuses)),
        paid_count=Count("id", filter=Q(status="paid")),
        count=Count("id"),
    )
    overdue = list(
        qs.filter(due_date__lt=today)
        .exclude(status__in=("paid", "cancelled"))
        .order_by("due_date")
    )
    return {
        "total_outstanding": totals["outstanding"] or Decimal("0.00"),
        "overdue": overdue,
        "overdue_count": len(overdue),
        "paid_count": totals["paid_count"],
        "count": totals["count"],
    }


def receivables_summary(client, today):
    return _summary(Invoice.objects.for_client(client), INV_OPEN_STATUSES, today)


def payables_summary(client, today):
    return _summary(Bill.objects.for_client(client), BILL_OPEN_STATUSES, today)
