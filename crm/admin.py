"""
CRM Admin - Vitrine Backend
Django admin configuration for leads, deals, transactions, interactions
and the activity feed.
"""

from django.contrib import admin

from services.formatters import format_currency

from .models import ActivityLog, Deal, Interaction, Lead, Transaction


@admin.register(Lead)
class LeadAdmin(admin.ModelAdmin):
    list_display = ['contact_name', 'contact_phone', 'owner', 'property', 'origin', 'status', 'created_at']
    list_filter = ['origin', 'status', 'created_at']
    search_fields = ['contact_name', 'contact_phone', 'contact_email', 'owner__username']
    readonly_fields = ['created_at', 'updated_at']
    raw_id_fields = ['owner', 'property']


@admin.register(Deal)
class DealAdmin(admin.ModelAdmin):
    list_display = ['title', 'owner', 'value_brl', 'probability', 'status', 'expected_close_date', 'closed_at']
    list_filter = ['status', 'expected_close_date']
    search_fields = ['title', 'lead__contact_name', 'owner__username']
    readonly_fields = ['closed_at', 'created_at', 'updated_at']
    raw_id_fields = ['owner', 'lead', 'property']

    @admin.display(description='Value', ordering='value')
    def value_brl(self, obj):
        return format_currency(obj.value)


@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):
    list_display = ['date', 'owner', 'amount_brl', 'commission_pct', 'commission_brl', 'deal']
    list_filter = ['date']
    search_fields = ['description', 'deal__title', 'owner__username']
    readonly_fields = ['created_at']
    raw_id_fields = ['owner', 'deal']

    @admin.display(description='Amount', ordering='amount')
    def amount_brl(self, obj):
        return format_currency(obj.amount)

    @admin.display(description='Commission', ordering='commission_amount')
    def commission_brl(self, obj):
        return format_currency(obj.commission_amount)


@admin.register(Interaction)
class InteractionAdmin(admin.ModelAdmin):
    list_display = ['type', 'direction', 'lead', 'deal', 'owner', 'created_at']
    list_filter = ['type', 'direction', 'created_at']
    search_fields = ['message', 'lead__contact_name', 'deal__title', 'owner__username']
    readonly_fields = ['created_at']
    raw_id_fields = ['owner', 'lead', 'deal']


@admin.register(ActivityLog)
class ActivityLogAdmin(admin.ModelAdmin):
    list_display = ['created_at', 'owner', 'action', 'resource_type', 'resource_id']
    list_filter = ['action', 'resource_type', 'created_at']
    search_fields = ['owner__username', 'resource_id']
    readonly_fields = ['owner', 'action', 'resource_type', 'resource_id', 'payload', 'created_at']

    def has_add_permission(self, request):
        return False
