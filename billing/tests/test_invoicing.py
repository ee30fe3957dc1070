from datetime import date
from decimal import Decimal

from django.test import SimpleTestCase, TestCase

from billing.exceptions import AccountNotFound, InsufficientStock, InvalidInvoice
from billing.models import (
    Account,
    AuditLog,
    InventoryItem,
    Invoice,
    InvoiceItem,
    Service,
)
from billing.services import InvoiceGenerationService
from billing.services.invoicing import normalize_selections

DUE = date(2030, 1, 31)


class NormalizeSelectionsTest(SimpleTestCase):
    def test_blank_quantity_defaults_to_one(self):
        self.assertEqual(
            normalize_selections([("3", None), (4, ""), ("5", "2")]),
            [(3, 1), (4, 1), (5, 2)],
        )

    def test_invalid_selections(self):
        for selections in ([], None, [(1, 0)], [(1, "two")], [("x", 1)]):
            with self.subTest(selections=selections):
                with self.assertRaises(InvalidInvoice):
                    normalize_selections(selections)


# ============================================================
# Invoice Generation Tests
# ============================================================


class InvoiceGenerationTest(TestCase):
    def setUp(self):
        self.patient = Account.objects.create(username="patient")
        self.admin = Account.objects.create(username="billing-admin", role=Account.Role.ADMIN)

        self.bandages = InventoryItem.objects.create(
            name="Bandage Roll", unit="roll", current_stock=5, low_stock_threshold=2
        )
        self.kits = InventoryItem.objects.create(
            name="Suture Kit", unit="kit", current_stock=2, low_stock_threshold=1
        )

        self.consultation = Service.objects.create(
            name="Consultation", category="General", unit_cost=Decimal("10.00")
        )
        self.dressing = Service.objects.create(
            name="Wound Dressing",
            category="Nursing",
            unit_cost=Decimal("25.00"),
            linked_inventory_item=self.bandages,
        )
        self.suturing = Service.objects.create(
            name="Suturing",
            category="Procedures",
            unit_cost=Decimal("40.00"),
            linked_inventory_item=self.kits,
        )

    def generate(self, selections, **kwargs):
        return InvoiceGenerationService.generate(
            self.patient.uuid, DUE, selections, actor=self.admin, **kwargs
        )

    def test_generate_invoice(self):
        invoice = self.generate(
            [(self.dressing.id, 2), (self.consultation.id, 1)],
            record_reference="MR-7",
            ip_address="10.0.0.1",
        )

        self.assertEqual(invoice.total_amount, Decimal("60.00"))
        self.assertEqual(invoice.status, Invoice.Status.PARTIAL)
        self.assertEqual(invoice.record_reference, "MR-7")
        names = [(item.service_name, item.quantity) for item in invoice.items.all()]
        self.assertEqual(names, [("Wound Dressing", 2), ("Consultation", 1)])

        self.bandages.refresh_from_db()
        self.assertEqual(self.bandages.current_stock, 3)

        entry = AuditLog.objects.get(action_type=AuditLog.Action.INVOICE_GENERATED)
        self.assertEqual(entry.target_id, str(invoice.id))
        self.assertEqual(entry.actor, self.admin)
        self.assertEqual(entry.actor_label, "billing-admin")
        self.assertEqual(entry.ip_address, "10.0.0.1")

    def test_insufficient_stock_writes_nothing(self):
        with self.assertRaises(InsufficientStock) as ctx:
            self.generate([(self.dressing.id, 6)])

        self.assertIn('"Bandage Roll"', ctx.exception.message)
        self.assertEqual(Invoice.objects.count(), 0)
        self.assertEqual(InvoiceItem.objects.count(), 0)
        self.assertEqual(AuditLog.objects.count(), 0)
        self.bandages.refresh_from_db()
        self.assertEqual(self.bandages.current_stock, 5)

    def test_later_shortage_restores_earlier_reservation(self):
        with self.assertRaises(InsufficientStock):
            self.generate([(self.dressing.id, 5), (self.suturing.id, 3)])

        self.bandages.refresh_from_db()
        self.kits.refresh_from_db()
        self.assertEqual(self.bandages.current_stock, 5)
        self.assertEqual(self.kits.current_stock, 2)
        self.assertEqual(Invoice.objects.count(), 0)

    def test_repeated_service_reserves_cumulatively(self):
        with self.assertRaises(InsufficientStock):
            self.generate([(self.dressing.id, 3), (self.dressing.id, 3)])

        self.bandages.refresh_from_db()
        self.assertEqual(self.bandages.current_stock, 5)

    def test_unknown_service_is_skipped(self):
        invoice = self.generate([(999999, 1), (self.consultation.id, 3)])

        self.assertEqual(invoice.items.count(), 1)
        self.assertEqual(invoice.total_amount, Decimal("30.00"))

    def test_only_unknown_services_gives_zero_total(self):
        invoice = self.generate([(999999, 1)])

        self.assertEqual(invoice.items.count(), 0)
        self.assertEqual(invoice.total_amount, Decimal("0.00"))
        self.assertEqual(invoice.status, Invoice.Status.PAID)

    def test_line_items_are_snapshots(self):
        invoice = self.generate([(self.consultation.id, 1)])

        self.consultation.unit_cost = Decimal("99.00")
        self.consultation.name = "Renamed Consultation"
        self.consultation.save()

        item = invoice.items.get()
        item.refresh_from_db()
        self.assertEqual(item.cost_per_unit, Decimal("10.00"))
        self.assertEqual(item.service_name, "Consultation")
        invoice.refresh_from_db()
        self.assertEqual(invoice.total_amount, Decimal("10.00"))

    def test_unknown_patient(self):
        with self.assertRaises(AccountNotFound):
            InvoiceGenerationService.generate(
                "not-a-uuid", DUE, [(self.consultation.id, 1)]
            )
        self.assertEqual(Invoice.objects.count(), 0)

    def test_empty_selection(self):
        with self.assertRaises(InvalidInvoice):
            self.generate([])
