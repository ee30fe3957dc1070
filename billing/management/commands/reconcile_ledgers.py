from decimal import Decimal

from django.core.management.base import BaseCommand, CommandError
from django.db.models import Sum

from billing.models import Account, WalletTransaction


class Command(BaseCommand):
    help = (
        "Check that every wallet balance equals the sum of its wallet-funded "
        "transactions."
    )

    def add_arguments(self, parser):
        parser.add_argument(
            "--account",
            help="Only check the account with this UUID.",
        )

    def handle(self, *args, **options):
        accounts = Account.objects.order_by("id")
        if options["account"]:
            accounts = accounts.filter(uuid=options["account"])
            if not accounts.exists():
                raise CommandError(f"Account {options['account']} not found.")

        mismatches = 0
        checked = 0
        for account in accounts.iterator():
            checked += 1
            total = WalletTransaction.wallet_entries(account).aggregate(
                total=Sum("amount")
            )["total"] or Decimal("0.00")

            if total != account.wallet_balance:
                mismatches += 1
                self.stdout.write(
                    self.style.ERROR(
                        f"{account.username} ({account.uuid}): balance "
                        f"{account.wallet_balance:.2f} != ledger {total:.2f}"
                    )
                )

        if mismatches:
            raise CommandError(f"{mismatches} of {checked} ledger(s) do not reconcile.")
        self.stdout.write(self.style.SUCCESS(f"{checked} ledger(s) reconciled."))
