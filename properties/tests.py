# ===== PROPERTIES APP TEST SUITE =====
"""
Test suite for the storefront app
File: properties/tests.py

Test Coverage:
- BrokerProfile, Property and PropertyImage model behaviour
- Broker dashboard API (filters, pagination, plan limits)
- Public portal endpoints backed by the listing pipeline
- Visit recording on public listing pages
- Theme endpoints and colour validation
"""

from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.test import TestCase
from django.urls import reverse

from rest_framework import status
from rest_framework.test import APITestCase

from services.business_logic import PLAN_PREMIUM, PLAN_PRO
from services.listing_pipeline import EMPTY_NO_LISTINGS, EMPTY_NO_MATCHES

from .models import BrokerProfile, Property, PropertyImage, PropertyView

User = get_user_model()


def make_broker(username='ana', name='Ana Souza', plan_type='free', **extra):
    user = User.objects.create_user(username=username, password='senha-segura-123')
    profile = BrokerProfile.objects.create(user=user, name=name, plan_type=plan_type, **extra)
    return user, profile


def make_property(owner, title='Apartamento', price='500000', **extra):
    fields = {
        'address': 'Rua das Flores, 100',
        'neighborhood': 'Centro',
        'whatsapp_number': '11987654321',
        'bedrooms': 2,
    }
    fields.update(extra)
    return Property.objects.create(owner=owner, title=title, price=Decimal(price), **fields)


# =============================================================================
# MODEL TESTS
# =============================================================================

class BrokerProfileModelTest(TestCase):
    """Test BrokerProfile slugs and colour normalization"""

    def test_slug_derived_from_name(self):
        _, profile = make_broker(name='Imobiliária São João')
        self.assertEqual(profile.slug, 'imobiliaria-sao-joao')

    def test_duplicate_names_get_distinct_slugs(self):
        _, first = make_broker(username='a', name='Casa Nova')
        _, second = make_broker(username='b', name='Casa Nova')
        self.assertEqual(first.slug, 'casa-nova')
        self.assertEqual(second.slug, 'casa-nova-2')

    def test_primary_color_normalized_on_save(self):
        _, profile = make_broker(primary_color='f00')
        self.assertEqual(profile.primary_color, '#FF0000')

    def test_default_primary_color(self):
        _, profile = make_broker()
        self.assertEqual(profile.primary_color, '#0B3B66')

    def test_active_listing_count_ignores_inactive(self):
        user, profile = make_broker()
        make_property(user, title='Casa 1')
        make_property(user, title='Casa 2', is_active=False)
        self.assertEqual(profile.active_listing_count, 1)


class PropertyModelTest(TestCase):
    """Test Property slugs, ordering and pipeline conversion"""

    def setUp(self):
        self.user, self.profile = make_broker()

    def test_slug_unique_per_owner(self):
        first = make_property(self.user, title='Casa na Praia')
        second = make_property(self.user, title='Casa na Praia')
        self.assertEqual(first.slug, 'casa-na-praia')
        self.assertEqual(second.slug, 'casa-na-praia-2')

    def test_same_slug_allowed_for_different_owners(self):
        other, _ = make_broker(username='bruno', name='Bruno')
        first = make_property(self.user, title='Loft')
        second = make_property(other, title='Loft')
        self.assertEqual(first.slug, second.slug)

    def test_default_ordering_newest_first(self):
        older = make_property(self.user, title='Antigo')
        newer = make_property(self.user, title='Novo')
        self.assertEqual(list(Property.objects.all()), [newer, older])

    def test_to_listing_record(self):
        listing = make_property(self.user, title='Cobertura', area_m2=Decimal('120.50'))
        PropertyImage.objects.create(property=listing, image_url='https://img.test/1.jpg')

        record = listing.to_listing_record()

        self.assertEqual(record.id, listing.pk)
        self.assertEqual(record.price, Decimal('500000'))
        self.assertEqual(record.area_m2, 120.5)
        self.assertEqual(record.slug, 'cobertura')
        self.assertEqual(record.cover_image.url, 'https://img.test/1.jpg')

    def test_cover_image_none_without_photos(self):
        listing = make_property(self.user)
        self.assertIsNone(listing.cover_image)


class PropertyImageModelTest(TestCase):
    """Test the single-cover rule"""

    def setUp(self):
        user, _ = make_broker()
        self.listing = make_property(user)

    def test_new_cover_clears_previous(self):
        first = PropertyImage.objects.create(property=self.listing, image_url='https://img.test/a.jpg', is_cover=True)
        second = PropertyImage.objects.create(property=self.listing, image_url='https://img.test/b.jpg', is_cover=True)

        first.refresh_from_db()
        self.assertFalse(first.is_cover)
        self.assertTrue(second.is_cover)
        self.assertEqual(self.listing.cover_image.url, 'https://img.test/b.jpg')

    def test_first_image_is_cover_fallback(self):
        PropertyImage.objects.create(property=self.listing, image_url='https://img.test/a.jpg')
        PropertyImage.objects.create(property=self.listing, image_url='https://img.test/b.jpg')
        self.assertEqual(self.listing.cover_image.url, 'https://img.test/a.jpg')


# =============================================================================
# DASHBOARD API TESTS
# =============================================================================

class PropertiesAPITestCase(APITestCase):
    """Base class for API tests with an authenticated broker"""

    def setUp(self):
        cache.clear()
        self.user, self.profile = make_broker(plan_type=PLAN_PRO)
        self.client.force_authenticate(user=self.user)


class PropertyViewSetTest(PropertiesAPITestCase):
    """Test the broker's listing CRUD"""

    def valid_payload(self, **overrides):
        payload = {
            'title': 'Apartamento Jardins',
            'address': 'Alameda Santos, 1000',
            'neighborhood': 'Jardins',
            'price': '850000.00',
            'bedrooms': 3,
            'whatsapp_number': '(11) 98765-4321',
            'images': [
                {'image_url': 'https://img.test/sala.jpg'},
                {'image_url': 'https://img.test/fachada.jpg', 'is_cover': True},
            ],
        }
        payload.update(overrides)
        return payload

    def test_list_only_own_listings(self):
        other, _ = make_broker(username='outro', name='Outro')
        make_property(self.user, title='Meu')
        make_property(other, title='Alheio')

        response = self.client.get(reverse('property-list'))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        titles = [item['title'] for item in response.data['results']]
        self.assertEqual(titles, ['Meu'])

    def test_list_paginated_by_nine(self):
        for index in range(10):
            make_property(self.user, title=f'Imóvel {index}')

        response = self.client.get(reverse('property-list'))

        self.assertEqual(response.data['count'], 10)
        self.assertEqual(len(response.data['results']), 9)
        self.assertIsNotNone(response.data['next'])

    def test_filter_price_desc(self):
        make_property(self.user, title='Barato', price='200000')
        make_property(self.user, title='Caro', price='900000')
        make_property(self.user, title='Médio', price='500000')

        response = self.client.get(reverse('property-list'), {'sort': 'price-desc'})

        titles = [item['title'] for item in response.data['results']]
        self.assertEqual(titles, ['Caro', 'Médio', 'Barato'])

    def test_filter_search_and_bedrooms(self):
        make_property(self.user, title='Casa', neighborhood='Moema', bedrooms=3)
        make_property(self.user, title='Studio', neighborhood='Moema', bedrooms=1)
        make_property(self.user, title='Casa', neighborhood='Pinheiros', bedrooms=3)

        response = self.client.get(reverse('property-list'), {'search': 'moema', 'bedrooms': '3'})

        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['title'], 'Casa')

    def test_bedrooms_all_disables_filter(self):
        make_property(self.user, bedrooms=1)
        make_property(self.user, bedrooms=4)

        response = self.client.get(reverse('property-list'), {'bedrooms': 'all'})

        self.assertEqual(response.data['count'], 2)

    def test_create_with_gallery(self):
        response = self.client.post(reverse('property-list'), self.valid_payload(), format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['slug'], 'apartamento-jardins')
        self.assertEqual(response.data['cover_image'], 'https://img.test/fachada.jpg')
        self.assertEqual(len(response.data['images']), 2)
        self.assertEqual(Property.objects.get().owner, self.user)

    def test_create_rejects_two_covers(self):
        payload = self.valid_payload(images=[
            {'image_url': 'https://img.test/a.jpg', 'is_cover': True},
            {'image_url': 'https://img.test/b.jpg', 'is_cover': True},
        ])

        response = self.client.post(reverse('property-list'), payload, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('images', response.data)

    def test_create_rejects_negative_price(self):
        response = self.client.post(reverse('property-list'), self.valid_payload(price='-1'), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_free_plan_limit_blocks_create(self):
        self.profile.plan_type = 'free'
        self.profile.save()
        make_property(self.user, title='Um')
        make_property(self.user, title='Dois')

        response = self.client.post(reverse('property-list'), self.valid_payload(), format='json')

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(Property.objects.count(), 2)

    def test_inactive_listing_does_not_take_a_slot(self):
        self.profile.plan_type = 'free'
        self.profile.save()
        make_property(self.user, title='Um')
        make_property(self.user, title='Dois')

        response = self.client.post(
            reverse('property-list'), self.valid_payload(is_active=False), format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

    def test_reactivating_over_limit_forbidden(self):
        self.profile.plan_type = 'free'
        self.profile.save()
        make_property(self.user, title='Um')
        make_property(self.user, title='Dois')
        paused = make_property(self.user, title='Pausado', is_active=False)

        url = reverse('property-detail', kwargs={'pk': paused.pk})
        response = self.client.patch(url, {'is_active': True}, format='json')

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_update_replaces_gallery(self):
        listing = make_property(self.user)
        PropertyImage.objects.create(property=listing, image_url='https://img.test/old.jpg')

        url = reverse('property-detail', kwargs={'pk': listing.pk})
        response = self.client.patch(
            url, {'images': [{'image_url': 'https://img.test/new.jpg'}]}, format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(
            list(listing.images.values_list('image_url', flat=True)),
            ['https://img.test/new.jpg'],
        )

    def test_cannot_touch_other_brokers_listing(self):
        other, _ = make_broker(username='outro', name='Outro')
        foreign = make_property(other)

        response = self.client.delete(reverse('property-detail', kwargs={'pk': foreign.pk}))

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertTrue(Property.objects.filter(pk=foreign.pk).exists())

    def test_plan_usage(self):
        make_property(self.user)

        response = self.client.get(reverse('property-plan-usage'))

        self.assertEqual(response.data['plan_type'], PLAN_PRO)
        self.assertEqual(response.data['active_listings'], 1)
        self.assertEqual(response.data['limit'], 15)
        self.assertEqual(response.data['remaining'], 14)
        self.assertTrue(response.data['can_create'])
        self.assertFalse(response.data['has_crm_access'])

    def test_unauthenticated_rejected(self):
        self.client.force_authenticate(user=None)
        response = self.client.get(reverse('property-list'))
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


# =============================================================================
# PUBLIC PORTAL TESTS
# =============================================================================

class PortalAPITest(APITestCase):
    """Test the public portal backed by the listing pipeline"""

    def setUp(self):
        cache.clear()
        self.user, self.profile = make_broker(name='Vitrine Teste', plan_type=PLAN_PREMIUM,
                                              phone_number='11912345678')
        self.url = reverse('portal-listings', kwargs={'broker_slug': self.profile.slug})

    def test_unknown_broker_returns_404(self):
        response = self.client.get(reverse('portal-listings', kwargs={'broker_slug': 'ninguem'}))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_price_desc_first_page(self):
        for step in range(1, 11):
            make_property(self.user, title=f'Imóvel {step}', price=str(step * 100000))

        response = self.client.get(self.url, {'sort': 'price-desc'})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        prices = [Decimal(item['price']) for item in response.data['results']]
        self.assertEqual(len(prices), 9)
        self.assertEqual(prices[0], Decimal('1000000'))
        self.assertEqual(prices, sorted(prices, reverse=True))
        self.assertEqual(response.data['total_pages'], 2)
        self.assertEqual(response.data['filtered_count'], 10)
        self.assertTrue(response.data['has_next'])
        self.assertIsNone(response.data['empty_state'])

    def test_second_page_holds_remainder(self):
        for step in range(1, 11):
            make_property(self.user, title=f'Imóvel {step}', price=str(step * 100000))

        response = self.client.get(self.url, {'sort': 'price-desc', 'page': 2})

        self.assertEqual(len(response.data['results']), 1)
        self.assertEqual(Decimal(response.data['results'][0]['price']), Decimal('100000'))
        self.assertFalse(response.data['has_next'])

    def test_empty_portal_reports_no_listings(self):
        response = self.client.get(self.url)

        self.assertEqual(response.data['results'], [])
        self.assertEqual(response.data['total_count'], 0)
        self.assertEqual(response.data['empty_state'], EMPTY_NO_LISTINGS)

    def test_filters_excluding_everything_report_no_matches(self):
        make_property(self.user, price='300000')

        response = self.client.get(self.url, {'min_price': '900000'})

        self.assertEqual(response.data['total_count'], 1)
        self.assertEqual(response.data['filtered_count'], 0)
        self.assertEqual(response.data['empty_state'], EMPTY_NO_MATCHES)

    def test_inactive_listings_hidden(self):
        make_property(self.user, title='Publicado')
        make_property(self.user, title='Rascunho', is_active=False)

        response = self.client.get(self.url)

        titles = [item['title'] for item in response.data['results']]
        self.assertEqual(titles, ['Publicado'])
        self.assertEqual(response.data['total_count'], 1)

    def test_malformed_filters_are_ignored(self):
        make_property(self.user)

        response = self.client.get(self.url, {'min_price': 'barato', 'bedrooms': 'muitos', 'sort': 'aleatorio'})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['filtered_count'], 1)
        self.assertEqual(response.data['filters']['sort'], 'newest')

    def test_broker_card(self):
        response = self.client.get(self.url)

        broker = response.data['broker']
        self.assertEqual(broker['name'], 'Vitrine Teste')
        self.assertEqual(broker['whatsapp_url'], 'https://wa.me/11912345678')
        self.assertTrue(broker['theme']['is_valid'])

    def test_listing_cards_carry_cover(self):
        listing = make_property(self.user)
        PropertyImage.objects.create(property=listing, image_url='https://img.test/capa.jpg', is_cover=True)

        response = self.client.get(self.url)

        self.assertEqual(response.data['results'][0]['cover_image'], 'https://img.test/capa.jpg')

    def test_listing_detail(self):
        listing = make_property(self.user, title='Casa Verde')

        response = self.client.get(reverse(
            'portal-listing-detail',
            kwargs={'broker_slug': self.profile.slug, 'property_slug': listing.slug},
        ))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['title'], 'Casa Verde')
        self.assertEqual(response.data['broker']['slug'], self.profile.slug)
        self.assertTrue(response.data['whatsapp_url'].startswith('https://wa.me/11987654321?text='))
        self.assertNotIn('whatsapp_number', response.data)

    def test_inactive_listing_detail_returns_404(self):
        listing = make_property(self.user, is_active=False)

        response = self.client.get(reverse(
            'portal-listing-detail',
            kwargs={'broker_slug': self.profile.slug, 'property_slug': listing.slug},
        ))

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertFalse(PropertyView.objects.exists())

    def test_listing_detail_records_visit(self):
        listing = make_property(self.user, title='Casa Verde')
        url = reverse(
            'portal-listing-detail',
            kwargs={'broker_slug': self.profile.slug, 'property_slug': listing.slug},
        )

        self.client.get(
            url,
            HTTP_USER_AGENT='Mozilla/5.0',
            HTTP_REFERER='https://instagram.com/',
            HTTP_X_FORWARDED_FOR='203.0.113.7, 10.0.0.1',
        )

        visit = PropertyView.objects.get()
        self.assertEqual(visit.property, listing)
        self.assertEqual(visit.owner, self.user)
        self.assertEqual(visit.ip, '203.0.113.7')
        self.assertEqual(visit.user_agent, 'Mozilla/5.0')
        self.assertEqual(visit.referrer, 'https://instagram.com/')

    def test_invalid_forwarded_address_dropped(self):
        listing = make_property(self.user)

        self.client.get(
            reverse(
                'portal-listing-detail',
                kwargs={'broker_slug': self.profile.slug, 'property_slug': listing.slug},
            ),
            HTTP_X_FORWARDED_FOR='desconhecido',
        )

        self.assertIsNone(PropertyView.objects.get().ip)


# =============================================================================
# THEME TESTS
# =============================================================================

class ThemeAPITest(PropertiesAPITestCase):
    """Test brand colour read/update"""

    def test_get_theme(self):
        response = self.client.get(reverse('theme'))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['primary_color'], '#0B3B66')
        self.assertEqual(response.data['evaluation']['foreground'], '#FFFFFF')

    def test_update_normalizes_short_hex(self):
        response = self.client.put(reverse('theme'), {'primary_color': 'fff'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['primary_color'], '#FFFFFF')
        self.assertEqual(response.data['evaluation']['foreground'], '#000000')
        self.profile.refresh_from_db()
        self.assertEqual(self.profile.primary_color, '#FFFFFF')

    def test_invalid_color_rejected(self):
        response = self.client.put(reverse('theme'), {'primary_color': 'azul'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('primary_color', response.data)
        self.profile.refresh_from_db()
        self.assertEqual(self.profile.primary_color, '#0B3B66')

    def test_profile_created_on_first_use(self):
        newcomer = User.objects.create_user(username='novo', password='senha-segura-123')
        self.client.force_authenticate(user=newcomer)

        response = self.client.get(reverse('theme'))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(BrokerProfile.objects.filter(user=newcomer).exists())

    def test_palettes_evaluated(self):
        response = self.client.get(reverse('theme-palettes'))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data[0]['hex'], '#0b3b66')
        self.assertTrue(all(item['evaluation']['is_valid'] for item in response.data))
