from django.contrib import admin

from billing.models import (
    Account,
    AuditLog,
    InventoryItem,
    Invoice,
    InvoiceItem,
    Service,
    WalletTransaction,
)


class ReadOnlyAdminMixin:
    """
    Mixin that makes an admin model completely read-only.

    Balances, ledger rows and invoices only change through the billing
    services, which take the row locks; the admin site must not bypass them.
    """

    def has_add_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


class InvoiceItemInline(ReadOnlyAdminMixin, admin.TabularInline):
    model = InvoiceItem
    fields = ("service_name", "cost_per_unit", "quantity")
    readonly_fields = fields
    extra = 0


@admin.register(Account)
class AccountAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = ("id", "username", "role", "wallet_balance", "created_at")
    list_filter = ("role",)
    search_fields = ("username", "email", "uuid")
    readonly_fields = ("uuid", "wallet_balance", "created_at", "updated_at")


@admin.register(WalletTransaction)
class WalletTransactionAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = (
        "id",
        "account",
        "transaction_type",
        "funding_source",
        "amount",
        "balance_after",
        "reference_id",
        "created_at",
    )
    list_filter = ("transaction_type", "funding_source")
    search_fields = ("account__username", "account__uuid", "reference_id")


@admin.register(Invoice)
class InvoiceAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = (
        "id",
        "account",
        "due_date",
        "total_amount",
        "amount_paid",
        "status",
        "created_at",
    )
    list_filter = ("status",)
    search_fields = ("account__username", "record_reference")
    inlines = (InvoiceItemInline,)


@admin.register(Service)
class ServiceAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "category", "unit_cost", "is_active", "linked_inventory_item")
    list_filter = ("category", "is_active")
    search_fields = ("name",)


@admin.register(InventoryItem)
class InventoryItemAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = ("id", "name", "current_stock", "unit", "low_stock_threshold", "last_updated")
    search_fields = ("name",)


@admin.register(AuditLog)
class AuditLogAdmin(ReadOnlyAdminMixin, admin.ModelAdmin):
    list_display = ("id", "action_type", "target_id", "actor_label", "ip_address", "created_at")
    list_filter = ("action_type",)
