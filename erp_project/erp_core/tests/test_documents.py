import datetime
from decimal import Decimal
from django.core.exceptions import ValidationError
from django.test import TestCase
from erp_core.models import (AssetLiabilityItem, Challan, InventoryItem,
                             LegalDocument, TaxRecord)
from erp_core.services.reports import net_worth, tax_totals

from .helpers import make_client

TODAY = datetime.date(2025, 9, 15)


class LegalDocumentTests(TestCase):

    def setUp(self):
        self.client_a = make_client()

    def doc(self, title, expiry, status="active", client=None):
        return LegalDocument.objects.create(
            client=client or self.client_a, title=title, document_type="License",
            issue_date=datetime.date(2024, 1, 1), expiry_date=expiry, status=status)

    def test_expiring_within_window(self):
        soon = self.doc("Trade license", TODAY + datetime.timedelta(days=10))
        self.doc("Fire permit", TODAY + datetime.timedelta(days=45))
        self.doc("Old lease", TODAY - datetime.timedelta(days=1))
        self.doc("Archived", TODAY + datetime.timedelta(days=5), status="archived")
        self.doc("Elsewhere", TODAY + datetime.timedelta(days=5), client=make_client("B Co"))

        self.assertEqual(list(LegalDocument.expiring_within(self.client_a, TODAY)), [soon])
        self.assertEqual(LegalDocument.expiring_within(self.client_a, TODAY, days=60).count(), 2)

    def test_expiry_before_issue_is_refused(self):
        with self.assertRaises(ValidationError):
            self.doc("Backwards", datetime.date(2023, 1, 1))


class ChallanTests(TestCase):

    def test_challan_number_unique_per_client(self):
        client_a, client_b = make_client(), make_client("B Co")
        fields = dict(challan_number="CH-1", date=TODAY, sender_name="Us",
                      receiver_name="Them", goods_description="Boxes", quantity="10")
        Challan.objects.create(client=client_a, **fields)
        Challan.objects.create(client=client_b, **fields)
        with self.assertRaises(ValidationError):
            Challan.objects.create(client=client_a, **fields)


class InventoryTests(TestCase):

    def setUp(self):
        self.item = InventoryItem.objects.create(
            client=make_client(), name="Rice 25kg", current_stock=10)

    def test_adjust_stock_up_and_down(self):
        self.item.adjust_stock(5)
        self.item.adjust_stock(-12)
        self.assertEqual(self.item.current_stock, 3)
        self.assertEqual(InventoryItem.objects.get(pk=self.item.pk).current_stock, 3)

    def test_stock_cannot_go_negative(self):
        with self.assertRaises(ValidationError):
            self.item.adjust_stock(-11)
        self.assertEqual(InventoryItem.objects.get(pk=self.item.pk).current_stock, 10)


class PositionRegisterTests(TestCase):

    def setUp(self):
        self.client_a = make_client()

    def add(self, kind, category, amount):
        return AssetLiabilityItem.objects.create(
            client=self.client_a, kind=kind, category=category,
            amount=Decimal(amount), as_of=TODAY)

    def test_net_worth(self):
        self.add("asset", "cash", "5000.00")
        self.add("asset", "inventory", "1500.00")
        self.add("liability", "short_loans", "2000.00")

        self.assertEqual(net_worth(self.client_a), {
            "total_assets": Decimal("6500.00"),
            "total_liabilities": Decimal("2000.00"),
            "net_worth": Decimal("4500.00"),
        })

    def test_empty_register_is_zero(self):
        self.assertEqual(net_worth(self.client_a)["net_worth"], Decimal("0.00"))

    def test_negative_amount_is_refused(self):
        with self.assertRaises(ValidationError):
            self.add("asset", "cash", "-1.00")

    def test_tax_totals(self):
        for amount, status in [("100.00", "paid"), ("40.00", "pending"), ("10.00", "overdue")]:
            TaxRecord.objects.create(client=self.client_a, tax_type="VAT",
                                     amount=Decimal(amount), status=status)
        TaxRecord.objects.create(client=make_client("B Co"), tax_type="VAT",
                                 amount=Decimal("999.00"))

        self.assertEqual(tax_totals(self.client_a),
                         {"paid": Decimal("100.00"), "pending": Decimal("50.00")})
