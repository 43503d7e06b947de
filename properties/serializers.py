"""
API Serializers for Vitrine Properties.

This module defines the serialization layer between the storefront models
(and the portal pipeline records) and the REST API:
- Dashboard serializers (broker managing their own listings)
- Portal serializers (public listing cards and broker card)
- Theme serializer (brand colour with contrast evaluation)
"""

from django.db import transaction
from rest_framework import serializers

from services.business_logic import build_whatsapp_url
from services.color_utils import evaluate_theme_color, is_valid_hex, normalize_hex

from .models import BrokerProfile, Property, PropertyImage


# =============================================================================
# IMAGE SERIALIZERS
# =============================================================================

class PropertyImageSerializer(serializers.ModelSerializer):

    class Meta:
        model = PropertyImage
        fields = ['id', 'image_url', 'is_cover', 'created_at']
        read_only_fields = ['id', 'created_at']


# =============================================================================
# DASHBOARD SERIALIZERS
# =============================================================================

class PropertyListSerializer(serializers.ModelSerializer):
    """
    Listing summary for the broker's dashboard grid.

    Includes the resolved cover image instead of the full gallery.
    """

    cover_image = serializers.SerializerMethodField()

    class Meta:
        model = Property
        fields = [
            'id',
            'title',
            'slug',
            'address',
            'neighborhood',
            'price',
            'bedrooms',
            'bathrooms',
            'area_m2',
            'is_active',
            'cover_image',
            'created_at',
        ]
        read_only_fields = fields

    def get_cover_image(self, obj):
        cover = obj.cover_image
        return cover.url if cover else None


class PropertyDetailSerializer(serializers.ModelSerializer):
    """
    Complete listing serializer used for create, retrieve and update.

    The gallery is writable: passing `images` on update replaces it.
    """

    images = PropertyImageSerializer(many=True, required=False)
    cover_image = serializers.SerializerMethodField()

    class Meta:
        model = Property
        fields = [
            'id',
            'title',
            'slug',
            'description',
            'address',
            'neighborhood',
            'price',
            'bedrooms',
            'bathrooms',
            'garages',
            'area_m2',
            'whatsapp_number',
            'video_url',
            'is_active',
            'images',
            'cover_image',
            'created_at',
            'updated_at',
        ]
        read_only_fields = ['id', 'slug', 'cover_image', 'created_at', 'updated_at']

    def get_cover_image(self, obj):
        cover = obj.cover_image
        return cover.url if cover else None

    def validate_title(self, value):
        cleaned = (value or '').strip()
        if len(cleaned) < 3:
            raise serializers.ValidationError("O título deve ter pelo menos 3 caracteres.")
        return cleaned

    def validate_whatsapp_number(self, value):
        digits = ''.join(ch for ch in value if ch.isdigit())
        if len(digits) < 10:
            raise serializers.ValidationError("Informe um número de WhatsApp com DDD.")
        return value.strip()

    def validate_images(self, value):
        covers = [image for image in value if image.get('is_cover')]
        if len(covers) > 1:
            raise serializers.ValidationError("Apenas uma imagem pode ser a capa.")
        return value

    def _save_images(self, instance, images):
        for image in images:
            PropertyImage.objects.create(property=instance, **image)

    @transaction.atomic
    def create(self, validated_data):
        images = validated_data.pop('images', [])
        instance = super().create(validated_data)
        self._save_images(instance, images)
        return instance

    @transaction.atomic
    def update(self, instance, validated_data):
        images = validated_data.pop('images', None)
        instance = super().update(instance, validated_data)
        if images is not None:
            instance.images.all().delete()
            self._save_images(instance, images)
        return instance


# =============================================================================
# PORTAL SERIALIZERS
# =============================================================================

class ListingCardSerializer(serializers.Serializer):
    """Read-only card for a services.listing_pipeline.ListingRecord."""

    id = serializers.IntegerField()
    title = serializers.CharField()
    slug = serializers.CharField()
    address = serializers.CharField()
    neighborhood = serializers.CharField(allow_null=True)
    price = serializers.DecimalField(max_digits=14, decimal_places=2)
    bedrooms = serializers.IntegerField(allow_null=True)
    bathrooms = serializers.IntegerField(allow_null=True)
    area_m2 = serializers.FloatField(allow_null=True)
    cover_image = serializers.SerializerMethodField()

    def get_cover_image(self, record):
        cover = record.cover_image
        return cover.url if cover else None


class BrokerCardSerializer(serializers.ModelSerializer):
    """Public broker header shown on the portal."""

    whatsapp_url = serializers.SerializerMethodField()
    theme = serializers.SerializerMethodField()

    class Meta:
        model = BrokerProfile
        fields = [
            'name',
            'slug',
            'phone_number',
            'profile_picture',
            'custom_logo',
            'primary_color',
            'whatsapp_url',
            'theme',
        ]
        read_only_fields = fields

    def get_whatsapp_url(self, obj):
        if not obj.phone_number:
            return None
        return build_whatsapp_url(obj.phone_number)

    def get_theme(self, obj):
        return evaluate_theme_color(obj.primary_color).to_dict()


class PortalQuerySerializer(serializers.Serializer):
    """Validates the pagination part of a portal request."""

    page = serializers.IntegerField(required=False, default=1)


class PortalListingDetailSerializer(serializers.ModelSerializer):
    """Public listing page with gallery and WhatsApp call to action."""

    images = PropertyImageSerializer(many=True, read_only=True)
    cover_image = serializers.SerializerMethodField()
    broker = serializers.SerializerMethodField()

    class Meta:
        model = Property
        fields = [
            'id',
            'title',
            'slug',
            'description',
            'address',
            'neighborhood',
            'price',
            'bedrooms',
            'bathrooms',
            'garages',
            'area_m2',
            'video_url',
            'images',
            'cover_image',
            'broker',
            'created_at',
        ]
        read_only_fields = fields

    def get_cover_image(self, obj):
        cover = obj.cover_image
        return cover.url if cover else None

    def get_broker(self, obj):
        profile = getattr(obj.owner, 'broker_profile', None)
        if profile is None:
            return None
        return {'name': profile.name, 'slug': profile.slug}


# =============================================================================
# THEME SERIALIZER
# =============================================================================

class ThemeSerializer(serializers.ModelSerializer):
    """
    Brand colour of the broker's portal.

    Accepts 3 or 6 digit hex with or without '#', stores the normalized
    6-digit form and reports the contrast evaluation.
    """

    evaluation = serializers.SerializerMethodField()

    class Meta:
        model = BrokerProfile
        fields = ['primary_color', 'evaluation']

    def validate_primary_color(self, value):
        normalized = normalize_hex((value or '').strip())
        if not is_valid_hex(normalized):
            raise serializers.ValidationError("Cor inválida. Use o formato #RRGGBB ou #RGB.")
        return normalized

    def get_evaluation(self, obj):
        return evaluate_theme_color(obj.primary_color).to_dict()
