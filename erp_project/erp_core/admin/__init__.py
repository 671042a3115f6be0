from .account import AccountAdmin
from .actions import (activate_periods, approve_bills, close_periods,
                      extend_subscriptions, grant_access, revoke_access,
                      send_invoices)
from .auditlog import AuditLogAdmin, ProfitLossSnapshotAdmin
from .bill import BillAdmin, VendorAdmin
from .daybook import (CashBookEntryAdmin, ExpenseEntryAdmin, PurchaseEntryAdmin,
                      SalesEntryAdmin)
from .documents import (AssetLiabilityItemAdmin, ChallanAdmin, InventoryItemAdmin,
                        LegalDocumentAdmin, TaxRecordAdmin)
from .employee import (AttendanceRecordAdmin, EmployeeAdmin,
                       MonthlyAttendanceSummaryAdmin)
from .forms import UserAdminChangeForm, UserAdminCreationForm
from .inlines import AttendanceInline, LedgerEntryInline, MembershipInline
from .invoice import CustomerAdmin, InvoiceAdmin
from .journal import JournalEntryAdmin, LedgerEntryAdmin
from .membership import ClientAdmin, MembershipAdmin, UserAdmin
from .mixins import TenantAdminMixin
from .period import AccountingPeriodAdmin, FiscalYearAdmin
