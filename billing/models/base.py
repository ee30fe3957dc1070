from django.db import models


class BaseModel(models.Model):
    """
    Abstract base model providing common timestamp fields.

    Every concrete billing model inherits from this so that creation and
    modification times are tracked the same way across the ledger, catalog
    and invoice tables.
    """

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True
        ordering = ["-created_at"]


class AppendOnlyModel(BaseModel):
    """
    Abstract base for audit-style rows that are written once and never changed.

    Saving an already persisted instance or deleting one raises TypeError.
    Bulk ``QuerySet.update()`` bypasses this; services never issue one on
    these tables.
    """

    class Meta(BaseModel.Meta):
        abstract = True

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise TypeError(f"{type(self).__name__} rows are immutable once written.")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise TypeError(f"{type(self).__name__} rows cannot be deleted.")
