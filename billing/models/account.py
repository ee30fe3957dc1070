import uuid

from django.db import models

from billing.models.base import BaseModel


class Account(BaseModel):
    """
    A hospital portal user holding a stored-value wallet.

    Balance is kept in currency units with two decimal places. The
    non-negative invariant is enforced by the service layer through
    select_for_update() lock-check-write sequences, and backed by a
    database check constraint so a direct column update cannot break it.
    """

    class Role(models.TextChoices):
        PATIENT = "PATIENT", "Patient"
        DOCTOR = "DOCTOR", "Doctor"
        ADMIN = "ADMIN", "Admin"

    uuid = models.UUIDField(
        default=uuid.uuid4, unique=True, editable=False, db_index=True
    )
    username = models.CharField(max_length=150, unique=True)
    email = models.EmailField(blank=True)
    role = models.CharField(max_length=10, choices=Role.choices, default=Role.PATIENT)
    wallet_balance = models.DecimalField(max_digits=12, decimal_places=2, default=0)

    class Meta(BaseModel.Meta):
        constraints = [
            models.CheckConstraint(
                condition=models.Q(wallet_balance__gte=0),
                name="account_wallet_balance_non_negative",
            ),
        ]

    def __str__(self):
        return f"{self.username} (balance={self.wallet_balance:.2f})"

    @property
    def is_admin(self):
        return self.role == self.Role.ADMIN
