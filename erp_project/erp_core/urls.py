from django.urls import path

from . import views

# (prefix, resource view) pairs; each gets "<prefix>/" and "<prefix>/<pk>/"
RESOURCES = [
    ("accounts", views.AccountResource),
    ("fiscal-years", views.FiscalYearResource),
    ("periods", views.PeriodResource),
    ("customers", views.CustomerResource),
    ("vendors", views.VendorResource),
    ("invoices", views.InvoiceResource),
    ("bills", views.BillResource),
    ("sales", views.SalesResource),
    ("expenses", views.ExpenseResource),
    ("purchases", views.PurchaseResource),
    ("cash-book", views.CashBookResource),
    ("employees", views.EmployeeResource),
    ("assets-liabilities", views.AssetLiabilityResource),
    ("taxes", views.TaxRecordResource),
    ("legal-documents", views.LegalDocumentResource),
    ("challans", views.ChallanResource),
    ("inventory", views.InventoryResource),
]

app_name = "erp_core"

urlpatterns = [
    # Periods
    path("periods/active/", views.active_period_view, name="period-active"),
    path("periods/<int:pk>/activate/", views.activate_period_view, name="period-activate"),
    path("periods/<int:pk>/close/", views.close_period_view, name="period-close"),
    # General ledger
    path("journals/", views.post_journal_view, name="journal-post"),
    path("journals/<int:pk>/reverse/", views.reverse_journal_view, name="journal-reverse"),
    path("ledger/", views.ledger_view, name="ledger"),
    # Receivables / payables
    path("invoices/<int:pk>/send/", views.send_invoice_view, name="invoice-send"),
    path("invoices/<int:pk>/pay/", views.pay_invoice_view, name="invoice-pay"),
    path("invoices/<int:pk>/cancel/", views.cancel_invoice_view, name="invoice-cancel"),
    path("bills/<int:pk>/approve/", views.approve_bill_view, name="bill-approve"),
    path("bills/<int:pk>/pay/", views.pay_bill_view, name="bill-pay"),
    path("receivables/", views.receivables_view, name="receivables"),
    path("payables/", views.payables_view, name="payables"),
    # Reports
    path("reports/trial-balance/", views.trial_balance_view, name="trial-balance"),
    path("reports/balance-sheet/", views.balance_sheet_view, name="balance-sheet"),
    path("reports/income-statement/", views.income_statement_view, name="income-statement"),
    path("reports/export.csv", views.report_csv_view, name="report-csv"),
    path("reports/position/", views.position_view, name="position"),
    # Attendance
    path("attendance/mark/", views.mark_attendance_view, name="attendance-mark"),
    path("attendance/summary/", views.attendance_summary_view, name="attendance-summary"),
]

for prefix, view in RESOURCES:
    urlpatterns += [
        path(f"{prefix}/", view.as_view(), name=f"{prefix}-list"),
        path(f"{prefix}/<int:pk>/", view.as_view(), name=f"{prefix}-detail"),
    ]
