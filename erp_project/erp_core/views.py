import datetime
import json
import logging
from decimal import Decimal, InvalidOperation
from functools import wraps

from django.core.exceptions import FieldDoesNotExist, ValidationError
from django.db import transaction
from django.db.models.deletion import ProtectedError
from django.http import HttpResponse, JsonResponse
from django.shortcuts import get_object_or_404
from django.utils import timezone
from django.views import View
from django.views.decorators.http import require_GET, require_POST

from .models import (Account, AccountingPeriod, AssetLiabilityItem, Bill,
                     CashBookEntry, Challan, Customer, Employee, ExpenseEntry,
                     FiscalYear, InventoryItem, Invoice, JournalEntry,
                     LegalDocument, PurchaseEntry, SalesEntry, TaxRecord, Vendor)
from .services import attendance, invoicing, periods, posting, reports
from .services.audit_helper import log_action

logger = logging.getLogger(__name__)

REQUIRED_FIELDS_MESSAGE = "Please fill in all required fields"
PROTECTED_MESSAGE = "Cannot delete this record, it is still referenced"


def _error(message, status=400, **extra):
    return JsonResponse({"ok": False, "error": message, **extra}, status=status)


def _validation_message(exc):
    return "; ".join(exc.messages) if hasattr(exc, "messages") else str(exc)


def _payload(request):
    """JSON body, falling back to form data."""
    if request.content_type == "application/json":
        try:
            return json.loads(request.body or b"{}")
        except json.JSONDecodeError:
            raise ValidationError("Request body is not valid JSON")
    return request.POST.dict()


def _is_blank(value):
    return value is None or (isinstance(value, str) and not value.strip())


def _parse_date(raw, field):
    try:
        return datetime.date.fromisoformat(raw)
    except (TypeError, ValueError):
        raise ValidationError(f"Enter a valid date for {field}")


def tenant_required(view):
    """403 unless the user is signed in and has a current client."""
    @wraps(view)
    def wrapper(request, *args, **kwargs):
        if not request.user.is_authenticated or getattr(request, "client", None) is None:
            return _error("Not allowed", status=403)
        try:
            return view(request, *args, **kwargs)
        except ValidationError as e:
            logger.warning("Refused %s %s: %s", request.method, request.path,
                           _validation_message(e))
            return _error(_validation_message(e))
        except ProtectedError:
            logger.warning("Refused %s %s: record still referenced", request.method, request.path)
            return _error(PROTECTED_MESSAGE)
    return wrapper


# ----------------------------------------------
# Generic tenant-scoped CRUD
# ----------------------------------------------
class TenantResourceView(View):
    """
    List/create on the collection URL, update/delete on "<pk>/".
    Subclasses declare model, fields, required_fields and ordering.
    """

    model = None
    fields = ()
    required_fields = ()
    read_only_fields = ()
    ordering = ("-id",)
    http_method_names = ["get", "post", "patch", "delete"]

    def dispatch(self, request, *args, **kwargs):
        if not request.user.is_authenticated or getattr(request, "client", None) is None:
            return _error("Not allowed", status=403)
        try:
            return super().dispatch(request, *args, **kwargs)
        except ValidationError as e:
            logger.warning("Refused %s on %s: %s", request.method,
                           self.model.__name__, _validation_message(e))
            return _error(_validation_message(e))
        except ProtectedError:
            logger.warning("Refused delete on %s: record still referenced",
                           self.model.__name__)
            return _error(PROTECTED_MESSAGE)

    # ---------- helpers ----------
    def get_queryset(self):
        return self.model.objects.filter(client=self.request.client).order_by(*self.ordering)

    def get_object(self, pk):
        # another tenant's row is simply not found
        return get_object_or_404(self.get_queryset(), pk=pk)

    def has_field(self, name):
        try:
            self.model._meta.get_field(name)
        except FieldDoesNotExist:
            return False
        return True

    def serialize(self, obj):
        data = {"id": obj.pk}
        for name in self.fields:
            field = self.model._meta.get_field(name)
            if field.is_relation:
                data[name] = getattr(obj, field.attname)
            else:
                data[name] = getattr(obj, name)
        return data

    def clean_data(self, payload):
        """Convert incoming values to Python; FKs resolve inside the tenant."""
        data, errors = {}, {}
        for name in self.fields:
            if name not in payload or name in self.read_only_fields:
                continue
            field = self.model._meta.get_field(name)
            raw = payload[name]
            try:
                if field.is_relation:
                    if _is_blank(raw):
                        data[name] = None
                        continue
                    related = field.related_model.objects.filter(pk=raw)
                    if any(f.name == "client" for f in field.related_model._meta.fields):
                        related = related.filter(client=self.request.client)
                    obj = related.first()
                    if obj is None:
                        raise ValidationError(f"Unknown {name} {raw}")
                    data[name] = obj
                else:
                    data[name] = field.to_python(None if _is_blank(raw) and field.null else raw)
            except ValidationError as e:
                errors[name] = e.messages
        if errors:
            raise ValidationError(errors)
        return data

    def missing_fields(self, payload):
        return [f for f in self.required_fields if _is_blank(payload.get(f))]

    # ---------- hooks ----------
    def perform_create(self, data):
        if self.has_field("period") and data.get("period") is None:
            data["period"] = periods.require_active_period(self.request.client)
        obj = self.model(client=self.request.client, **data)
        obj.save()
        log_action(action="create", instance=obj, user=self.request.user)
        return obj

    def perform_update(self, obj, data):
        before = {k: str(getattr(obj, k)) for k in data}
        for key, value in data.items():
            setattr(obj, key, value)
        obj.save()
        log_action(action="update", instance=obj, user=self.request.user,
                   changes={k: [before[k], str(v)] for k, v in data.items()})
        return obj

    def perform_destroy(self, obj):
        log_action(action="delete", instance=obj, user=self.request.user)
        obj.delete()

    # ---------- HTTP ----------
    def get(self, request, pk=None):
        if pk is not None:
            return JsonResponse({"ok": True, "item": self.serialize(self.get_object(pk))})
        qs = self.get_queryset()
        period_id = request.GET.get("period")
        if period_id and self.has_field("period"):
            qs = qs.filter(period_id=period_id)
        return JsonResponse({"ok": True, "items": [self.serialize(o) for o in qs]})

    def post(self, request, pk=None):
        if pk is not None:
            return _error("Method not allowed", status=405)
        payload = _payload(request)
        missing = self.missing_fields(payload)
        if missing:
            # nothing is written when a required field is empty
            return _error(REQUIRED_FIELDS_MESSAGE, missing=missing)
        obj = self.perform_create(self.clean_data(payload))
        return JsonResponse({"ok": True, "item": self.serialize(obj)}, status=201)

    def patch(self, request, pk=None):
        if pk is None:
            return _error("Method not allowed", status=405)
        obj = self.get_object(pk)
        payload = _payload(request)
        obj = self.perform_update(obj, self.clean_data(payload))
        return JsonResponse({"ok": True, "item": self.serialize(obj)})

    def delete(self, request, pk=None):
        if pk is None:
            return _error("Method not allowed", status=405)
        obj = self.get_object(pk)
        # the audit row goes away with a refused delete
        with transaction.atomic():
            self.perform_destroy(obj)
        return JsonResponse({"ok": True})


class AccountResource(TenantResourceView):
    model = Account
    fields = ("code", "name", "account_type", "parent", "is_active")
    required_fields = ("code", "name", "account_type")
    ordering = ("code",)


class FiscalYearResource(TenantResourceView):
    model = FiscalYear
    fields = ("name", "start_date", "end_date", "status")
    required_fields = ("name", "start_date", "end_date")
    ordering = ("-start_date",)


class PeriodResource(TenantResourceView):
    model = AccountingPeriod
    fields = ("name", "period_type", "start_date", "end_date", "fiscal_year", "status")
    required_fields = ("name", "start_date", "end_date")
    # status only changes through the activate/close endpoints
    read_only_fields = ("status",)
    ordering = ("-start_date",)

    def perform_create(self, data):
        activate = str(self.request.GET.get("activate", "true")).lower() != "false"
        return periods.create_period(
            self.request.client,
            data["name"],
            data["start_date"],
            data["end_date"],
            period_type=data.get("period_type") or "monthly",
            fiscal_year=data.get("fiscal_year"),
            activate=activate,
            user=self.request.user,
        )

    def perform_destroy(self, obj):
        periods.delete_period(obj, user=self.request.user)


class CustomerResource(TenantResourceView):
    model = Customer
    fields = ("customer_code", "customer_name", "contact_person", "email", "phone",
              "address", "payment_terms", "credit_limit", "is_active")
    required_fields = ("customer_code", "customer_name")
    ordering = ("customer_name",)


class VendorResource(TenantResourceView):
    model = Vendor
    fields = ("vendor_code", "vendor_name", "contact_person", "email", "phone",
              "address", "payment_terms", "is_active")
    required_fields = ("vendor_code", "vendor_name")
    ordering = ("vendor_name",)


class InvoiceResource(TenantResourceView):
    model = Invoice
    fields = ("invoice_number", "customer", "period", "invoice_date", "due_date",
              "subtotal", "tax_amount", "total_amount", "paid_amount", "status", "notes")
    required_fields = ("invoice_number", "customer", "invoice_date", "subtotal")
    read_only_fields = ("total_amount", "paid_amount", "status")
    ordering = ("-invoice_date", "-id")

    def perform_create(self, data):
        return invoicing.create_invoice(
            self.request.client,
            data["customer"],
            data["invoice_number"],
            data["invoice_date"],
            data["subtotal"],
            tax_amount=data.get("tax_amount"),
            due_date=data.get("due_date"),
            period=data.get("period"),
            notes=data.get("notes") or "",
            user=self.request.user,
        )


class BillResource(TenantResourceView):
    model = Bill
    fields = ("bill_number", "vendor", "period", "bill_date", "due_date",
              "subtotal", "tax_amount", "total_amount", "paid_amount", "status", "notes")
    required_fields = ("bill_number", "vendor", "bill_date", "subtotal")
    read_only_fields = ("total_amount", "paid_amount", "status")
    ordering = ("-bill_date", "-id")

    def perform_create(self, data):
        return invoicing.create_bill(
            self.request.client,
            data["vendor"],
            data["bill_number"],
            data["bill_date"],
            data["subtotal"],
            tax_amount=data.get("tax_amount"),
            due_date=data.get("due_date"),
            period=data.get("period"),
            notes=data.get("notes") or "",
            user=self.request.user,
        )


class DayBookResource(TenantResourceView):
    """Rows are posted to the ledger on create and reversed on delete."""

    fields = ("date", "description", "amount", "category", "period", "journal")
    required_fields = ("date", "description", "amount")
    read_only_fields = ("journal",)
    ordering = ("-date", "-id")
    http_method_names = ["get", "post", "delete"]
    recorder = None

    def perform_create(self, data):
        period = data.pop("period", None) or periods.require_active_period(self.request.client)
        return type(self).recorder(
            self.request.client,
            data.pop("date"),
            data.pop("description"),
            data.pop("amount"),
            period=period,
            user=self.request.user,
            **data,
        )

    def perform_destroy(self, obj):
        posting.delete_daybook_entry(obj, user=self.request.user)


class SalesResource(DayBookResource):
    model = SalesEntry
    recorder = posting.record_sales_entry


class ExpenseResource(DayBookResource):
    model = ExpenseEntry
    recorder = posting.record_expense_entry


class PurchaseResource(DayBookResource):
    model = PurchaseEntry
    fields = DayBookResource.fields + ("payment_status",)
    recorder = posting.record_purchase_entry


class CashBookResource(TenantResourceView):
    model = CashBookEntry
    fields = ("entry_date", "particulars", "voucher_number", "transaction_type",
              "account_type", "account_name", "amount", "contra_account",
              "narration", "period", "journal")
    required_fields = ("entry_date", "particulars", "amount")
    read_only_fields = ("journal",)
    ordering = ("-entry_date", "-id")
    http_method_names = ["get", "post", "delete"]

    def perform_create(self, data):
        data["period"] = data.get("period") or periods.require_active_period(self.request.client)
        return posting.record_cash_book_entry(
            self.request.client,
            data.pop("entry_date"),
            data.pop("particulars"),
            data.pop("amount"),
            user=self.request.user,
            **{k: v for k, v in data.items() if v not in (None, "")},
        )

    def perform_destroy(self, obj):
        posting.delete_daybook_entry(obj, user=self.request.user)


class EmployeeResource(TenantResourceView):
    model = Employee
    fields = ("employee_code", "name", "email", "phone", "department", "position",
              "hire_date", "salary", "status")
    required_fields = ("employee_code", "name", "position")
    ordering = ("employee_code",)


class AssetLiabilityResource(TenantResourceView):
    model = AssetLiabilityItem
    fields = ("kind", "category", "description", "amount", "as_of")
    required_fields = ("kind", "category", "amount", "as_of")
    ordering = ("kind", "category")


class TaxRecordResource(TenantResourceView):
    model = TaxRecord
    fields = ("tax_type", "amount", "period_label", "due_date", "status", "description")
    required_fields = ("tax_type", "amount")
    ordering = ("-created_at",)


class LegalDocumentResource(TenantResourceView):
    model = LegalDocument
    fields = ("title", "document_type", "document_number", "authority", "description",
              "issue_date", "expiry_date", "status")
    required_fields = ("title", "document_type")
    ordering = ("expiry_date",)


class ChallanResource(TenantResourceView):
    model = Challan
    fields = ("challan_number", "date", "sender_name", "sender_address",
              "receiver_name", "receiver_address", "goods_description", "quantity",
              "units", "weight", "batch_number", "truck_number", "driver_name",
              "courier_service")
    required_fields = ("challan_number", "date", "sender_name", "receiver_name",
                       "goods_description", "quantity")
    ordering = ("-date",)


class InventoryResource(TenantResourceView):
    model = InventoryItem
    fields = ("name", "current_stock")
    required_fields = ("name",)
    ordering = ("name",)


# ----------------------------------------------
# Periods
# ----------------------------------------------
@require_GET
@tenant_required
def active_period_view(request):
    period = periods.get_active_period(request.client)
    if period is None:
        return JsonResponse({"ok": True, "period": None})
    return JsonResponse({"ok": True, "period": PeriodResource().serialize(period)})


@require_POST
@tenant_required
def activate_period_view(request, pk):
    period = get_object_or_404(AccountingPeriod, pk=pk, client=request.client)
    period = periods.activate_period(period, user=request.user)
    return JsonResponse({"ok": True, "status": period.status})


@require_POST
@tenant_required
def close_period_view(request, pk):
    period = get_object_or_404(AccountingPeriod, pk=pk, client=request.client)
    period = periods.close_period(period, user=request.user)
    return JsonResponse({"ok": True, "status": period.status})


# ----------------------------------------------
# General ledger
# ----------------------------------------------
@require_POST
@tenant_required
def post_journal_view(request):
    payload = _payload(request)
    raw_lines = payload.get("lines") or []
    if _is_blank(payload.get("entry_date")) or not raw_lines:
        return _error(REQUIRED_FIELDS_MESSAGE,
                      missing=[f for f in ("entry_date", "lines") if not payload.get(f)])

    try:
        account_ids = [int(line.get("account")) for line in raw_lines]
    except (TypeError, ValueError):
        raise ValidationError("Each journal line needs a numeric account id")
    accounts = {
        a.pk: a for a in Account.objects.for_client(request.client).filter(pk__in=account_ids)
    }
    lines = []
    for account_id, line in zip(account_ids, raw_lines):
        account = accounts.get(account_id)
        if account is None:
            return _error(f"Unknown account {line.get('account')}")
        lines.append({
            "account": account,
            "debit": line.get("debit") or 0,
            "credit": line.get("credit") or 0,
            "description": line.get("description") or "",
        })

    period = None
    if payload.get("period"):
        period = get_object_or_404(AccountingPeriod, pk=payload["period"], client=request.client)
    je = posting.post_journal(
        request.client,
        _parse_date(payload["entry_date"], "entry_date"),
        lines,
        description=payload.get("description") or "",
        period=period,
        user=request.user,
    )
    return JsonResponse({"ok": True, "journal": je.pk, "status": je.status}, status=201)


@require_POST
@tenant_required
def reverse_journal_view(request, pk):
    je = get_object_or_404(JournalEntry, pk=pk, client=request.client)
    reversal = posting.reverse_journal(je, user=request.user)
    return JsonResponse({"ok": True, "journal": reversal.pk}, status=201)


@require_GET
@tenant_required
def ledger_view(request):
    period = _report_period(request)
    rows = posting.ledger_for_period(request.client, period)
    account_id = request.GET.get("account")
    if account_id:
        rows = rows.filter(account_id=account_id)
    return JsonResponse({"ok": True, "items": [
        {
            "id": row.pk,
            "journal": row.journal_id,
            "transaction_date": row.transaction_date,
            "account_code": row.account.code,
            "account_name": row.account.name,
            "description": row.description,
            "debit_amount": row.debit_amount,
            "credit_amount": row.credit_amount,
        }
        for row in rows
    ]})


# ----------------------------------------------
# Invoices & bills
# ----------------------------------------------
def _amount(payload):
    try:
        return Decimal(str(payload.get("amount")))
    except (InvalidOperation, TypeError):
        raise ValidationError("Please enter a valid amount")


def _payment_date(payload):
    raw = payload.get("payment_date")
    return _parse_date(raw, "payment_date") if raw else timezone.localdate()


@require_POST
@tenant_required
def send_invoice_view(request, pk):
    invoice = get_object_or_404(Invoice, pk=pk, client=request.client)
    invoicing.send_invoice(invoice, user=request.user)
    return JsonResponse({"ok": True, "status": invoice.status})


@require_POST
@tenant_required
def pay_invoice_view(request, pk):
    invoice = get_object_or_404(Invoice, pk=pk, client=request.client)
    payload = _payload(request)
    invoicing.record_invoice_payment(
        invoice, _amount(payload),
        payment_date=_payment_date(payload),
        account_type=payload.get("account_type") or "cash",
        user=request.user,
    )
    return JsonResponse({"ok": True, "status": invoice.status,
                         "outstanding": invoice.outstanding_amount})


@require_POST
@tenant_required
def cancel_invoice_view(request, pk):
    invoice = get_object_or_404(Invoice, pk=pk, client=request.client)
    invoicing.cancel_invoice(invoice, user=request.user)
    return JsonResponse({"ok": True, "status": invoice.status})


@require_POST
@tenant_required
def approve_bill_view(request, pk):
    bill = get_object_or_404(Bill, pk=pk, client=request.client)
    invoicing.approve_bill(bill, user=request.user)
    return JsonResponse({"ok": True, "status": bill.status})


@require_POST
@tenant_required
def pay_bill_view(request, pk):
    bill = get_object_or_404(Bill, pk=pk, client=request.client)
    payload = _payload(request)
    invoicing.record_bill_payment(
        bill, _amount(payload),
        payment_date=_payment_date(payload),
        account_type=payload.get("account_type") or "cash",
        user=request.user,
    )
    return JsonResponse({"ok": True, "status": bill.status,
                         "outstanding": bill.outstanding_amount})


@require_GET
@tenant_required
def receivables_view(request):
    summary = invoicing.receivables_summary(request.client, timezone.localdate())
    summary["overdue"] = [i.invoice_number for i in summary["overdue"]]
    return JsonResponse({"ok": True, **summary})


@require_GET
@tenant_required
def payables_view(request):
    summary = invoicing.payables_summary(request.client, timezone.localdate())
    summary["overdue"] = [b.bill_number for b in summary["overdue"]]
    return JsonResponse({"ok": True, **summary})


# ----------------------------------------------
# Reports
# ----------------------------------------------
def _report_period(request):
    period_id = request.GET.get("period")
    if period_id:
        return get_object_or_404(AccountingPeriod, pk=period_id, client=request.client)
    return periods.require_active_period(request.client)


def _plain(rows):
    return [{k: v for k, v in row.items() if k != "account"} for row in rows]


@require_GET
@tenant_required
def trial_balance_view(request):
    report = reports.trial_balance(request.client, _report_period(request))
    report["rows"] = _plain(report["rows"])
    return JsonResponse({"ok": True, **report})


@require_GET
@tenant_required
def balance_sheet_view(request):
    report = reports.balance_sheet(request.client, _report_period(request))
    for key in ("assets", "liabilities", "equity"):
        report[key] = _plain(report[key])
    return JsonResponse({"ok": True, **report})


@require_GET
@tenant_required
def income_statement_view(request):
    report = reports.income_statement(request.client, _report_period(request))
    for key in ("revenue", "expenses"):
        report[key] = _plain(report[key])
    return JsonResponse({"ok": True, **report})


@require_GET
@tenant_required
def report_csv_view(request):
    period = _report_period(request)
    content = reports.report_to_csv(reports.account_balances(request.client, period))
    response = HttpResponse(content, content_type="text/csv")
    response["Content-Disposition"] = (
        f'attachment; filename="financial-report-{period.start_date:%Y-%m}.csv"')
    return response


@require_GET
@tenant_required
def position_view(request):
    return JsonResponse({
        "ok": True,
        **reports.net_worth(request.client),
        "tax": reports.tax_totals(request.client),
    })


# ----------------------------------------------
# Attendance
# ----------------------------------------------
@require_POST
@tenant_required
def mark_attendance_view(request):
    payload = _payload(request)
    missing = [f for f in ("employee", "attendance_date", "status") if _is_blank(payload.get(f))]
    if missing:
        return _error(REQUIRED_FIELDS_MESSAGE, missing=missing)
    employee = get_object_or_404(Employee, pk=payload["employee"], client=request.client)
    record = attendance.mark_attendance(
        employee,
        _parse_date(payload["attendance_date"], "attendance_date"),
        payload["status"],
        notes=payload.get("notes") or "",
    )
    return JsonResponse({"ok": True, "id": record.pk, "status": record.status})


@require_GET
@tenant_required
def attendance_summary_view(request):
    today = timezone.localdate()
    try:
        year = int(request.GET.get("year", today.year))
        month = int(request.GET.get("month", today.month))
    except ValueError:
        return _error("year and month must be numbers")
    if not 1 <= month <= 12:
        return _error("month must be between 1 and 12")
    if request.GET.get("rebuild", "true").lower() != "false":
        attendance.summarize_month(request.client, year, month)
    return JsonResponse({"ok": True, "rows": attendance.monthly_report(request.client, year, month)})
