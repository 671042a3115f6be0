from .account import Account
from .auditlog import AuditLog
from .bill import Bill
from .daybook import CashBookEntry, ExpenseEntry, PurchaseEntry, SalesEntry
from .documents import Challan, InventoryItem, LegalDocument
from .employee import AttendanceRecord, Employee, MonthlyAttendanceSummary
from .invoice import Invoice
from .journal import JournalEntry, LedgerEntry
from .party import Customer, Vendor
from .period import AccountingPeriod, FiscalYear
from .position import AssetLiabilityItem, TaxRecord
from .snapshot import ProfitLossSnapshot
from .tenancy import Client, Membership, User
