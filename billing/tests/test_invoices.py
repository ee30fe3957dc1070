import uuid
from datetime import date
from decimal import Decimal

from django.test import TestCase

from billing.exceptions import (
    InsufficientFunds,
    InvalidAmount,
    InvalidInvoice,
    InvalidPaymentAmount,
    InvoiceNotFound,
    Unauthorized,
)
from billing.models import Account, Invoice, InvoiceItem, WalletTransaction
from billing.services import InvoiceService, LedgerService, LineItem

DUE = date(2030, 1, 31)


def make_invoice(account, lines=None):
    lines = lines or [
        LineItem("X-Ray", Decimal("25.00"), 2),
        LineItem("Consultation", Decimal("10.00"), 1),
    ]
    return InvoiceService.create_invoice(account.uuid, DUE, lines)


# ============================================================
# Invoice Creation Tests
# ============================================================


class CreateInvoiceTest(TestCase):
    def setUp(self):
        self.account = Account.objects.create(username="patient")

    def test_create_invoice_totals_line_items(self):
        invoice = make_invoice(self.account)

        self.assertEqual(invoice.total_amount, Decimal("60.00"))
        self.assertEqual(invoice.amount_paid, Decimal("0.00"))
        self.assertEqual(invoice.status, Invoice.Status.PARTIAL)
        self.assertEqual(invoice.items.count(), 2)
        self.assertEqual(
            sum(item.line_total for item in invoice.items.all()),
            invoice.total_amount,
        )

    def test_create_invoice_keeps_record_reference(self):
        invoice = InvoiceService.create_invoice(
            self.account.uuid,
            DUE,
            [LineItem("Lab Panel", "12.34", 1)],
            record_reference="MR-1001",
        )
        invoice.refresh_from_db()
        self.assertEqual(invoice.record_reference, "MR-1001")
        self.assertEqual(invoice.total_amount, Decimal("12.34"))

    def test_create_invoice_without_items_raises(self):
        with self.assertRaises(InvalidInvoice):
            InvoiceService.create_invoice(self.account.uuid, DUE, [])
        self.assertEqual(Invoice.objects.count(), 0)

    def test_bad_line_rolls_back_whole_invoice(self):
        lines = [
            LineItem("X-Ray", Decimal("25.00"), 2),
            LineItem("Broken", Decimal("10.00"), 0),
        ]
        with self.assertRaises(InvalidInvoice):
            InvoiceService.create_invoice(self.account.uuid, DUE, lines)

        self.assertEqual(Invoice.objects.count(), 0)
        self.assertEqual(InvoiceItem.objects.count(), 0)

    def test_negative_cost_raises(self):
        with self.assertRaises(InvalidAmount):
            InvoiceService.create_invoice(
                self.account.uuid, DUE, [LineItem("Refund", Decimal("-1.00"), 1)]
            )

    def test_total_beyond_column_limit_raises(self):
        with self.assertRaises(InvalidAmount):
            InvoiceService.create_invoice(
                self.account.uuid, DUE, [LineItem("Transplant", "9999999999.99", 2)]
            )
        self.assertEqual(Invoice.objects.count(), 0)
        self.assertEqual(InvoiceItem.objects.count(), 0)

    def test_zero_total_invoice_is_paid(self):
        invoice = InvoiceService.create_invoice(
            self.account.uuid, DUE, [LineItem("Free Checkup", Decimal("0.00"), 1)]
        )
        self.assertEqual(invoice.status, Invoice.Status.PAID)


# ============================================================
# Card Payment Tests
# ============================================================


class ApplyPaymentTest(TestCase):
    def setUp(self):
        self.account = Account.objects.create(username="patient")
        self.other = Account.objects.create(username="someone-else")
        self.invoice = make_invoice(self.account)

    def test_full_payment_marks_invoice_paid(self):
        payment = InvoiceService.apply_payment(self.invoice.id, self.account.uuid, "60.00")

        self.invoice.refresh_from_db()
        self.assertEqual(self.invoice.amount_paid, Decimal("60.00"))
        self.assertEqual(self.invoice.status, Invoice.Status.PAID)
        self.assertEqual(payment.invoice.status, Invoice.Status.PAID)

        with self.assertRaises(InvalidPaymentAmount):
            InvoiceService.apply_payment(self.invoice.id, self.account.uuid, "0.01")

        self.invoice.refresh_from_db()
        self.assertEqual(self.invoice.amount_paid, Decimal("60.00"))

    def test_partial_payments(self):
        InvoiceService.apply_payment(self.invoice.id, self.account.uuid, "20.00")
        self.invoice.refresh_from_db()
        self.assertEqual(self.invoice.status, Invoice.Status.PARTIAL)
        self.assertEqual(self.invoice.outstanding_balance, Decimal("40.00"))

        InvoiceService.apply_payment(self.invoice.id, self.account.uuid, "40.00")
        self.invoice.refresh_from_db()
        self.assertEqual(self.invoice.status, Invoice.Status.PAID)
        self.assertEqual(
            Invoice.derive_status(self.invoice.total_amount, self.invoice.amount_paid),
            self.invoice.status,
        )

    def test_card_payment_leaves_wallet_alone(self):
        LedgerService.deposit(self.account.uuid, "5.00")

        payment = InvoiceService.apply_payment(self.invoice.id, self.account.uuid, "25.00")

        self.account.refresh_from_db()
        self.assertEqual(self.account.wallet_balance, Decimal("5.00"))
        tx = payment.transaction
        self.assertEqual(tx.transaction_type, WalletTransaction.TransactionType.PAYMENT)
        self.assertEqual(tx.funding_source, WalletTransaction.FundingSource.EXTERNAL)
        self.assertEqual(tx.amount, Decimal("-25.00"))
        self.assertEqual(tx.reference_id, f"invoice_{self.invoice.id}")
        self.assertEqual(tx.balance_after, Decimal("5.00"))

    def test_invalid_amounts(self):
        for amount in ("0", "-5", "abc", "60.01", "1e30"):
            with self.subTest(amount=amount):
                with self.assertRaises(InvalidPaymentAmount):
                    InvoiceService.apply_payment(self.invoice.id, self.account.uuid, amount)

        self.invoice.refresh_from_db()
        self.assertEqual(self.invoice.amount_paid, Decimal("0.00"))

    def test_other_account_is_refused(self):
        with self.assertRaises(Unauthorized):
            InvoiceService.apply_payment(self.invoice.id, self.other.uuid, "10.00")

        self.invoice.refresh_from_db()
        self.assertEqual(self.invoice.amount_paid, Decimal("0.00"))

    def test_missing_invoice(self):
        with self.assertRaises(InvoiceNotFound):
            InvoiceService.apply_payment(999999, self.account.uuid, "10.00")

    def test_payment_idempotency(self):
        key = str(uuid.uuid4())

        first = InvoiceService.apply_payment(
            self.invoice.id, self.account.uuid, "10.00", idempotency_key=key
        )
        second = InvoiceService.apply_payment(
            self.invoice.id, self.account.uuid, "10.00", idempotency_key=key
        )

        self.assertEqual(first.transaction.id, second.transaction.id)
        self.invoice.refresh_from_db()
        self.assertEqual(self.invoice.amount_paid, Decimal("10.00"))


# ============================================================
# Wallet Payment Tests
# ============================================================


class PayInvoiceFromWalletTest(TestCase):
    def setUp(self):
        self.account = Account.objects.create(username="patient")
        self.invoice = make_invoice(self.account)

    def test_wallet_payment_settles_outstanding_balance(self):
        LedgerService.deposit(self.account.uuid, "100.00")
        InvoiceService.apply_payment(self.invoice.id, self.account.uuid, "15.00")

        payment = InvoiceService.pay_invoice_from_wallet(self.invoice.id, self.account.uuid)

        self.account.refresh_from_db()
        self.invoice.refresh_from_db()
        self.assertEqual(self.account.wallet_balance, Decimal("55.00"))
        self.assertEqual(self.invoice.amount_paid, Decimal("60.00"))
        self.assertEqual(self.invoice.status, Invoice.Status.PAID)
        self.assertEqual(payment.transaction.amount, Decimal("-45.00"))
        self.assertEqual(payment.transaction.funding_source, WalletTransaction.FundingSource.WALLET)
        self.assertEqual(
            payment.transaction.description, f"Payment for Invoice #{self.invoice.id}"
        )

    def test_insufficient_funds_changes_nothing(self):
        LedgerService.deposit(self.account.uuid, "59.99")

        with self.assertRaises(InsufficientFunds):
            InvoiceService.pay_invoice_from_wallet(self.invoice.id, self.account.uuid)

        self.account.refresh_from_db()
        self.invoice.refresh_from_db()
        self.assertEqual(self.account.wallet_balance, Decimal("59.99"))
        self.assertEqual(self.invoice.amount_paid, Decimal("0.00"))
        self.assertEqual(self.invoice.status, Invoice.Status.PARTIAL)
        self.assertFalse(
            WalletTransaction.objects.filter(
                transaction_type=WalletTransaction.TransactionType.PAYMENT
            ).exists()
        )

    def test_already_paid_invoice_is_refused(self):
        LedgerService.deposit(self.account.uuid, "100.00")
        InvoiceService.pay_invoice_from_wallet(self.invoice.id, self.account.uuid)

        with self.assertRaises(InvalidPaymentAmount):
            InvoiceService.pay_invoice_from_wallet(self.invoice.id, self.account.uuid)

        self.account.refresh_from_db()
        self.assertEqual(self.account.wallet_balance, Decimal("40.00"))

    def test_stale_outstanding_amount_is_refused(self):
        LedgerService.deposit(self.account.uuid, "100.00")
        InvoiceService.apply_payment(self.invoice.id, self.account.uuid, "10.00")

        with self.assertRaises(InvalidPaymentAmount):
            InvoiceService.pay_invoice_from_wallet(
                self.invoice.id, self.account.uuid, outstanding_amount="60.00"
            )

        payment = InvoiceService.pay_invoice_from_wallet(
            self.invoice.id, self.account.uuid, outstanding_amount="50.00"
        )
        self.assertEqual(payment.invoice.status, Invoice.Status.PAID)

    def test_admin_cannot_pay(self):
        admin = Account.objects.create(username="admin", role=Account.Role.ADMIN)
        LedgerService.deposit(admin.uuid, "100.00")
        invoice = make_invoice(admin)

        with self.assertRaises(Unauthorized):
            InvoiceService.pay_invoice_from_wallet(invoice.id, admin.uuid)

        admin.refresh_from_db()
        self.assertEqual(admin.wallet_balance, Decimal("100.00"))

    def test_other_account_is_refused(self):
        other = Account.objects.create(username="other")
        LedgerService.deposit(other.uuid, "100.00")

        with self.assertRaises(Unauthorized):
            InvoiceService.pay_invoice_from_wallet(self.invoice.id, other.uuid)


# ============================================================
# Lookup Tests
# ============================================================


class InvoiceLookupTest(TestCase):
    def setUp(self):
        self.account = Account.objects.create(username="patient")
        self.other = Account.objects.create(username="other")
        self.invoice = make_invoice(self.account)

    def test_get_invoice(self):
        invoice = InvoiceService.get_invoice(self.invoice.id, self.account.uuid)
        self.assertEqual(invoice.id, self.invoice.id)
        self.assertEqual(len(invoice.items.all()), 2)

    def test_get_invoice_scoped_to_other_account(self):
        with self.assertRaises(InvoiceNotFound):
            InvoiceService.get_invoice(self.invoice.id, self.other.uuid)

    def test_invoices_for(self):
        second = make_invoice(self.account)
        make_invoice(self.other)

        ids = [invoice.id for invoice in InvoiceService.invoices_for(self.account.uuid)]
        self.assertEqual(ids, [second.id, self.invoice.id])
