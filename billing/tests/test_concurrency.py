import threading
from decimal import Decimal

from django.db import connection
from django.test import TransactionTestCase

from billing.exceptions import BillingError, InsufficientFunds, InsufficientStock
from billing.models import Account, InventoryItem, Invoice, Service, WalletTransaction
from billing.services import InvoiceGenerationService, InvoiceService, LedgerService


def run_concurrently(*calls):
    """Start every call at the same moment; return (results, errors)."""
    barrier = threading.Barrier(len(calls))
    results, errors = [], []
    lock = threading.Lock()

    def worker(call):
        try:
            barrier.wait()
            outcome = call()
            with lock:
                results.append(outcome)
        except BillingError as exc:
            with lock:
                errors.append(exc)
        finally:
            connection.close()

    threads = [threading.Thread(target=worker, args=(call,)) for call in calls]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    return results, errors


# ============================================================
# Concurrency Tests
# ============================================================


class ConcurrentWithdrawalTest(TransactionTestCase):
    def test_double_spend_is_prevented(self):
        account = Account.objects.create(username="patient")
        LedgerService.deposit(account.uuid, "100.00")

        results, errors = run_concurrently(
            lambda: LedgerService.withdraw(account.uuid, "60.00"),
            lambda: LedgerService.withdraw(account.uuid, "60.00"),
        )

        self.assertEqual(len(results), 1)
        self.assertEqual(len(errors), 1)
        self.assertIsInstance(errors[0], InsufficientFunds)
        account.refresh_from_db()
        self.assertEqual(account.wallet_balance, Decimal("40.00"))
        self.assertEqual(
            WalletTransaction.objects.filter(
                transaction_type=WalletTransaction.TransactionType.WITHDRAWAL
            ).count(),
            1,
        )

    def test_concurrent_deposits_are_all_counted(self):
        account = Account.objects.create(username="patient")

        results, errors = run_concurrently(
            *[lambda: LedgerService.deposit(account.uuid, "10.00") for _ in range(5)]
        )

        self.assertEqual(len(results), 5)
        self.assertEqual(errors, [])
        account.refresh_from_db()
        self.assertEqual(account.wallet_balance, Decimal("50.00"))


class ConcurrentInvoiceTest(TransactionTestCase):
    def setUp(self):
        self.patient = Account.objects.create(username="patient")
        self.admin = Account.objects.create(username="admin", role=Account.Role.ADMIN)

    def test_stock_is_never_oversold(self):
        item = InventoryItem.objects.create(name="Bandage", unit="roll", current_stock=5)
        service = Service.objects.create(
            name="Dressing",
            category="Nursing",
            unit_cost=Decimal("25.00"),
            linked_inventory_item=item,
        )

        def generate():
            return InvoiceGenerationService.generate(
                self.patient.uuid, "2030-01-31", [(service.id, 3)], actor=self.admin
            )

        results, errors = run_concurrently(generate, generate)

        self.assertEqual(len(results), 1)
        self.assertEqual(len(errors), 1)
        self.assertIsInstance(errors[0], InsufficientStock)
        item.refresh_from_db()
        self.assertEqual(item.current_stock, 2)
        self.assertEqual(Invoice.objects.count(), 1)

    def test_wallet_and_card_payment_cannot_overpay(self):
        LedgerService.deposit(self.patient.uuid, "100.00")
        invoice = Invoice.objects.create(
            account=self.patient,
            due_date="2030-01-31",
            total_amount=Decimal("60.00"),
        )

        results, errors = run_concurrently(
            lambda: InvoiceService.pay_invoice_from_wallet(invoice.id, self.patient.uuid),
            lambda: InvoiceService.apply_payment(invoice.id, self.patient.uuid, "60.00"),
        )

        self.assertEqual(len(results), 1)
        self.assertEqual(len(errors), 1)
        invoice.refresh_from_db()
        self.assertEqual(invoice.amount_paid, Decimal("60.00"))
        self.assertEqual(invoice.status, Invoice.Status.PAID)
