# accounting/admin.py
"""
Django admin configuration for accounting models.

The admin interface is for viewing only. All mutations MUST go through
the command layer (accounting/commands.py), which enforces posting rules
and keeps header totals in step with the details.
"""

from django.contrib import admin
from django.utils.html import format_html

from .models import Account, TransactionDetail, TransactionHeader, TransactionSequence


class ReadOnlyModelAdmin(admin.ModelAdmin):
    """
    Base admin class for read-only models.

    To modify these models, use the command layer (accounting/commands.py).
    """

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


class TransactionDetailInline(admin.TabularInline):
    """Inline display of detail lines within a transaction (read-only)."""
    model = TransactionDetail
    extra = 0
    readonly_fields = ["line_no", "account", "description", "debit", "credit"]
    fields = ["line_no", "account", "description", "debit", "credit"]

    def has_add_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


# =============================================================================
# Account Admin
# =============================================================================

@admin.register(Account)
class AccountAdmin(ReadOnlyModelAdmin):
    """Admin interface for Chart of Accounts (read-only)."""

    list_display = [
        "code", "name", "account_type", "subtype", "normal_balance",
        "opening_balance", "is_active", "parent",
    ]
    list_filter = ["account_type", "subtype", "is_active"]
    search_fields = ["code", "name"]
    list_select_related = ["parent"]
    ordering = ["code"]

    fieldsets = (
        (None, {
            "fields": ("code", "name"),
        }),
        ("Classification", {
            "fields": ("account_type", "subtype", "normal_balance", "is_active"),
        }),
        ("Hierarchy", {
            "fields": ("parent",),
        }),
        ("Balance", {
            "fields": ("opening_balance",),
        }),
        ("Timestamps", {
            "fields": ("created_at", "updated_at"),
            "classes": ("collapse",),
        }),
    )
    readonly_fields = [
        "code", "name", "account_type", "subtype", "normal_balance",
        "is_active", "parent", "opening_balance", "created_at", "updated_at",
    ]


# =============================================================================
# Transaction Admin
# =============================================================================

@admin.register(TransactionHeader)
class TransactionHeaderAdmin(ReadOnlyModelAdmin):
    """Admin interface for transactions (read-only)."""

    list_display = [
        "id", "number", "date", "description_truncated", "transaction_type",
        "posted_colored", "total_debit", "total_credit", "relation",
    ]
    list_filter = ["is_posted", "transaction_type", "date"]
    search_fields = ["number", "description"]
    date_hierarchy = "date"
    list_select_related = ["relation", "user", "posted_by"]
    ordering = ["-date", "-id"]

    fieldsets = (
        (None, {
            "fields": ("number", "date", "transaction_type"),
        }),
        ("Content", {
            "fields": ("description", "relation", "total_debit", "total_credit"),
        }),
        ("Posting", {
            "fields": ("is_posted", "posted_at", "posted_by"),
        }),
        ("Audit", {
            "fields": ("user", "created_at", "updated_at"),
            "classes": ("collapse",),
        }),
    )
    readonly_fields = [
        "number", "date", "transaction_type", "description", "relation",
        "total_debit", "total_credit", "is_posted", "posted_at", "posted_by",
        "user", "created_at", "updated_at",
    ]
    inlines = [TransactionDetailInline]

    @admin.display(description="Description")
    def description_truncated(self, obj):
        if len(obj.description) > 50:
            return f"{obj.description[:50]}..."
        return obj.description

    @admin.display(description="Posted", ordering="is_posted")
    def posted_colored(self, obj):
        color = "#28a745" if obj.is_posted else "#999"
        label = "POSTED" if obj.is_posted else "UNPOSTED"
        return format_html('<span style="color: {}; font-weight: bold;">{}</span>', color, label)


@admin.register(TransactionSequence)
class TransactionSequenceAdmin(ReadOnlyModelAdmin):
    """Number counters per type and month (read-only)."""

    list_display = ["prefix", "next_value", "updated_at"]
    search_fields = ["prefix"]
    ordering = ["-prefix"]
