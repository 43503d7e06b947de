"""
Properties models for the Vitrine storefront.

This module implements the core storefront entities:
- BrokerProfile: the broker behind a portal (plan, brand colour, contact)
- Property: a listing published on the broker's portal
- PropertyImage: photos attached to a listing, one of them the cover
- PropertyView: a visit to a public listing page

Design Philosophy: the models store data; filtering, sorting and paging
for the public portal happen in services.listing_pipeline.
"""

import logging

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator, validate_ipv46_address
from django.db import models
from django.utils.text import slugify

from services.business_logic import PLAN_CHOICES, PLAN_FREE
from services.color_utils import DEFAULT_BRAND_COLOR, normalize_hex
from services.listing_pipeline import ListingImage, ListingRecord

logger = logging.getLogger(__name__)


def unique_slug(base: str, queryset, fallback: str = 'item') -> str:
    """
    Slugify base and append -2, -3... until no row in queryset uses it.
    """
    root = slugify(base) or fallback
    candidate = root
    suffix = 2
    while queryset.filter(slug=candidate).exists():
        candidate = f"{root}-{suffix}"
        suffix += 1
    return candidate


# =============================================================================
# BROKER PROFILE MODEL
# =============================================================================

class BrokerProfile(models.Model):
    """
    Public identity and subscription state of a broker.

    The slug addresses the broker's portal: /api/v1/portal/<slug>/.
    """

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='broker_profile'
    )

    # Identity
    name = models.CharField(max_length=255)
    slug = models.SlugField(
        max_length=255,
        unique=True,
        help_text="Portal address, derived from the name"
    )
    phone_number = models.CharField(max_length=30, blank=True, default='')
    profile_picture = models.URLField(max_length=500, blank=True, default='')
    custom_logo = models.URLField(max_length=500, blank=True, default='')

    # Theme
    primary_color = models.CharField(
        max_length=7,
        default=normalize_hex(DEFAULT_BRAND_COLOR),
        help_text="Brand colour as #RRGGBB"
    )

    # Subscription
    plan_type = models.CharField(
        max_length=20,
        choices=PLAN_CHOICES,
        default=PLAN_FREE,
        db_index=True
    )
    credits = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'broker_profiles'
        ordering = ['name']

    def __str__(self):
        return f"{self.name} ({self.plan_type})"

    def save(self, *args, **kwargs):
        if not self.slug:
            others = BrokerProfile.objects.exclude(pk=self.pk)
            self.slug = unique_slug(self.name, others, fallback='corretor')
        if self.primary_color:
            self.primary_color = normalize_hex(self.primary_color)
        super().save(*args, **kwargs)

    @property
    def active_listing_count(self) -> int:
        return self.user.properties.filter(is_active=True).count()


# =============================================================================
# PROPERTY MODEL
# =============================================================================

class Property(models.Model):
    """
    A listing on a broker's portal.

    Listings are ordered newest first; the portal pipeline relies on this
    order for its default 'newest' sort.
    """

    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='properties'
    )

    # Identification
    title = models.CharField(max_length=255)
    slug = models.SlugField(max_length=255)
    description = models.TextField(blank=True, default='')

    # Location
    address = models.CharField(max_length=255)
    neighborhood = models.CharField(max_length=120, blank=True, null=True)

    # Characteristics
    price = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        validators=[MinValueValidator(0)]
    )
    bedrooms = models.PositiveSmallIntegerField(blank=True, null=True)
    bathrooms = models.PositiveSmallIntegerField(blank=True, null=True)
    garages = models.PositiveSmallIntegerField(blank=True, null=True)
    area_m2 = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        blank=True,
        null=True,
        validators=[MinValueValidator(0)],
        help_text="Floor area in square meters"
    )

    # Contact and media
    whatsapp_number = models.CharField(max_length=30)
    video_url = models.URLField(max_length=500, blank=True, null=True)

    is_active = models.BooleanField(default=True, db_index=True)

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'properties'
        ordering = ['-created_at', '-id']
        verbose_name_plural = 'properties'
        constraints = [
            models.UniqueConstraint(fields=['owner', 'slug'], name='unique_property_slug_per_owner'),
        ]

    def __str__(self):
        return f"{self.title} - {self.neighborhood or self.address}"

    def save(self, *args, **kwargs):
        if not self.slug:
            siblings = Property.objects.filter(owner_id=self.owner_id).exclude(pk=self.pk)
            self.slug = unique_slug(self.title, siblings, fallback='imovel')
        super().save(*args, **kwargs)

    @property
    def cover_image(self):
        record = self.to_listing_record()
        return record.cover_image

    def to_listing_record(self) -> ListingRecord:
        """Snapshot this listing for the portal pipeline."""
        images = tuple(
            ListingImage(url=image.image_url, is_cover=image.is_cover)
            for image in self.images.all()
        )
        return ListingRecord(
            id=self.pk,
            title=self.title,
            address=self.address,
            neighborhood=self.neighborhood,
            price=self.price,
            bedrooms=self.bedrooms,
            bathrooms=self.bathrooms,
            area_m2=float(self.area_m2) if self.area_m2 is not None else None,
            created_at=self.created_at,
            images=images,
            slug=self.slug,
        )


# =============================================================================
# PROPERTY IMAGE MODEL
# =============================================================================

class PropertyImage(models.Model):
    """
    A photo of a listing.

    At most one image per listing carries is_cover; saving a new cover
    clears the flag on the others.
    """

    property = models.ForeignKey(
        Property,
        on_delete=models.CASCADE,
        related_name='images'
    )
    image_url = models.URLField(max_length=500)
    is_cover = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'property_images'
        ordering = ['created_at', 'id']

    def __str__(self):
        marker = ' [cover]' if self.is_cover else ''
        return f"Image {self.pk} of {self.property_id}{marker}"

    def save(self, *args, **kwargs):
        super().save(*args, **kwargs)
        if self.is_cover:
            cleared = (
                PropertyImage.objects
                .filter(property_id=self.property_id, is_cover=True)
                .exclude(pk=self.pk)
                .update(is_cover=False)
            )
            if cleared:
                logger.debug(f"Moved cover of property {self.property_id} to image {self.pk}")


# =============================================================================
# PROPERTY VIEW MODEL
# =============================================================================

class PropertyView(models.Model):
    """
    One visit to a public listing page.

    owner is denormalized from the listing so a broker's visits can be
    counted without joining through properties.
    """

    property = models.ForeignKey(
        Property,
        on_delete=models.CASCADE,
        related_name='views'
    )
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='property_views'
    )
    ip = models.GenericIPAddressField(blank=True, null=True)
    user_agent = models.CharField(max_length=500, blank=True, default='')
    referrer = models.CharField(max_length=500, blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        db_table = 'property_views'
        ordering = ['-created_at', '-id']

    def __str__(self):
        return f"View of {self.property_id} at {self.created_at}"

    @classmethod
    def record(cls, listing, meta):
        """Store a visit from the request META of a portal page."""
        forwarded = meta.get('HTTP_X_FORWARDED_FOR', '')
        ip = forwarded.split(',')[0].strip() if forwarded else meta.get('REMOTE_ADDR')
        if ip:
            try:
                validate_ipv46_address(ip)
            except ValidationError:
                logger.debug(f"Discarding invalid client address {ip!r}")
                ip = None

        return cls.objects.create(
            property=listing,
            owner_id=listing.owner_id,
            ip=ip or None,
            user_agent=meta.get('HTTP_USER_AGENT', '')[:500],
            referrer=meta.get('HTTP_REFERER', '')[:500],
        )
