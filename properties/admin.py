"""
Properties Admin - Vitrine Backend
Django admin configuration for broker profiles, listings, photos and visits.
"""

from django.contrib import admin
from django.db.models import Count, Q
from django.utils.html import format_html

from services.color_utils import get_contrast_color

from .models import BrokerProfile, Property, PropertyImage, PropertyView


# =============================================================================
# INLINE ADMIN CLASSES
# =============================================================================

class PropertyImageInline(admin.TabularInline):
    """Inline editing of photos within the listing admin"""
    model = PropertyImage
    extra = 0
    fields = ['image_url', 'is_cover', 'created_at']
    readonly_fields = ['created_at']


# =============================================================================
# MAIN ADMIN CLASSES
# =============================================================================

@admin.register(BrokerProfile)
class BrokerProfileAdmin(admin.ModelAdmin):
    list_display = ['name', 'slug', 'plan_type', 'credits', 'active_listings', 'color_swatch', 'created_at']
    list_filter = ['plan_type', 'created_at']
    search_fields = ['name', 'slug', 'user__username', 'user__email', 'phone_number']
    readonly_fields = ['created_at', 'updated_at']

    def get_queryset(self, request):
        return super().get_queryset(request).annotate(
            active_count=Count('user__properties', filter=Q(user__properties__is_active=True))
        )

    @admin.display(description='Active listings', ordering='active_count')
    def active_listings(self, obj):
        return obj.active_count

    @admin.display(description='Colour')
    def color_swatch(self, obj):
        return format_html(
            '<span style="background:{};color:{};padding:2px 8px;border-radius:4px">{}</span>',
            obj.primary_color,
            get_contrast_color(obj.primary_color),
            obj.primary_color,
        )


@admin.register(Property)
class PropertyAdmin(admin.ModelAdmin):
    """
    Admin interface for listings.

    Features:
    - Filtering by publication state and neighborhood
    - Inline photo editing
    - Bulk publish/unpublish
    """

    list_display = ['title', 'owner', 'neighborhood', 'price', 'bedrooms', 'area_m2', 'is_active', 'created_at']
    list_filter = ['is_active', 'bedrooms', 'created_at']
    search_fields = ['title', 'slug', 'address', 'neighborhood', 'owner__username']
    readonly_fields = ['slug', 'created_at', 'updated_at']
    inlines = [PropertyImageInline]
    actions = ['publish', 'unpublish']

    fieldsets = (
        ('Listing', {
            'fields': ('owner', 'title', 'slug', 'description', 'is_active')
        }),
        ('Location', {
            'fields': ('address', 'neighborhood')
        }),
        ('Characteristics', {
            'fields': ('price', 'bedrooms', 'bathrooms', 'garages', 'area_m2')
        }),
        ('Contact & Media', {
            'fields': ('whatsapp_number', 'video_url')
        }),
        ('Metadata', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    @admin.action(description='Publish selected listings')
    def publish(self, request, queryset):
        updated = queryset.update(is_active=True)
        self.message_user(request, f"{updated} listing(s) published.")

    @admin.action(description='Unpublish selected listings')
    def unpublish(self, request, queryset):
        updated = queryset.update(is_active=False)
        self.message_user(request, f"{updated} listing(s) unpublished.")


@admin.register(PropertyView)
class PropertyViewAdmin(admin.ModelAdmin):
    list_display = ['property', 'owner', 'ip', 'referrer', 'created_at']
    list_filter = ['created_at']
    search_fields = ['property__title', 'owner__username', 'ip', 'referrer']
    readonly_fields = ['property', 'owner', 'ip', 'user_agent', 'referrer', 'created_at']


# Admin site customization
admin.site.site_header = "Vitrine Administration"
admin.site.site_title = "Vitrine Admin"
admin.site.index_title = "Storefront & CRM"
