# ===== SERVICES LAYER TEST SUITE =====
"""
Test suite for the services layer
File: services/tests.py

Test Coverage:
- Colour utilities (hex parsing, HSL, WCAG contrast, theme evaluation)
- Listing pipeline (filter, sort, paginate, empty states, browsing state)
- Plan limits and the service exceptions
- CRM report aggregation and WhatsApp links
- pt-BR formatters
"""

from datetime import datetime, timedelta
from decimal import Decimal
from itertools import permutations

from django.test import SimpleTestCase
from django.utils import timezone

from . import CRMAccessDenied, PlanLimitExceeded, enforce_crm_access, enforce_listing_limit
from .business_logic import (
    PLAN_CREDITS, PLAN_FREE, PLAN_PREMIUM, PLAN_PRO,
    build_whatsapp_message, build_whatsapp_url, calculate_crm_report,
    can_create_listing, get_listing_limit, has_crm_access, remaining_listing_slots,
)
from .color_utils import (
    BLACK, COLOR_PALETTES, DEFAULT_BRAND_COLOR, HSL, WHITE,
    evaluate_theme_color, get_contrast_color, get_contrast_ratio, get_luminance,
    hex_to_hsl, hex_to_rgb, is_valid_hex, meets_wcag_aa, normalize_hex, rgb_to_hsl,
)
from .formatters import (
    days_between, format_currency, format_date, format_datetime, format_percentage,
    format_phone, normalize_phone, parse_currency,
)
from .listing_pipeline import (
    ANY_BEDROOMS, EMPTY_NO_LISTINGS, EMPTY_NO_MATCHES, PAGE_SIZE,
    ExactBedrooms, FilterSpec, ListingBrowser, ListingImage, ListingRecord, SortMode,
    build_listing_page, filter_listings, paginate, parse_bedroom_filter,
    resolve_cover_image, sort_listings,
)


def listing(id, price, **extra):
    fields = {'title': f'Imóvel {id}', 'address': f'Rua {id}'}
    fields.update(extra)
    return ListingRecord(id=id, price=Decimal(price), **fields)


# =============================================================================
# COLOUR UTILITY TESTS
# =============================================================================

class HexParsingTest(SimpleTestCase):
    """Test hex validation and normalization"""

    def test_valid_forms(self):
        for value in ['#fff', '#FFF', '#0b3b66', '#0B3B66']:
            self.assertTrue(is_valid_hex(value), value)

    def test_invalid_forms(self):
        for value in ['fff', '#ffff', '#12345', '#GGGGGG', '', '#1234567', None, 123]:
            self.assertFalse(is_valid_hex(value), value)

    def test_normalize_expands_and_uppercases(self):
        self.assertEqual(normalize_hex('f00'), '#FF0000')
        self.assertEqual(normalize_hex('#0b3b66'), '#0B3B66')
        self.assertEqual(normalize_hex('#abc'), '#AABBCC')

    def test_normalize_is_idempotent(self):
        for value in ['f00', '#0b3b66', 'zz', '#12']:
            once = normalize_hex(value)
            self.assertEqual(normalize_hex(once), once)

    def test_normalize_leaves_malformed_for_validation(self):
        self.assertEqual(normalize_hex('zz'), '#ZZ')
        self.assertFalse(is_valid_hex(normalize_hex('zz')))
        self.assertEqual(normalize_hex(None), '')

    def test_hex_to_rgb(self):
        self.assertEqual(hex_to_rgb('#0B3B66'), (11, 59, 102))
        self.assertEqual(hex_to_rgb('f00'), (255, 0, 0))
        self.assertIsNone(hex_to_rgb('#xyz123'))


class HSLConversionTest(SimpleTestCase):

    def test_primary_colours(self):
        self.assertEqual(hex_to_hsl('#FF0000'), HSL(0, 100, 50))
        self.assertEqual(hex_to_hsl('#00FF00'), HSL(120, 100, 50))
        self.assertEqual(hex_to_hsl('#0000FF'), HSL(240, 100, 50))

    def test_greys_have_no_hue_or_saturation(self):
        self.assertEqual(rgb_to_hsl(255, 255, 255), HSL(0, 0, 100))
        self.assertEqual(rgb_to_hsl(0, 0, 0), HSL(0, 0, 0))
        self.assertEqual(rgb_to_hsl(128, 128, 128), HSL(0, 0, 50))

    def test_brand_colour(self):
        self.assertEqual(str(hex_to_hsl(DEFAULT_BRAND_COLOR)), '208 81% 22%')

    def test_hue_rounding_wraps_to_zero(self):
        self.assertEqual(hex_to_hsl('#FF0001').hue, 0)

    def test_unparseable_returns_none(self):
        self.assertIsNone(hex_to_hsl('nope'))


class ContrastTest(SimpleTestCase):

    def test_luminance_bounds(self):
        self.assertAlmostEqual(get_luminance(0, 0, 0), 0.0)
        self.assertAlmostEqual(get_luminance(255, 255, 255), 1.0)

    def test_black_on_white_is_maximum(self):
        self.assertAlmostEqual(get_contrast_ratio(BLACK, WHITE), 21.0, places=6)

    def test_ratio_is_symmetric(self):
        self.assertAlmostEqual(
            get_contrast_ratio('#0B3B66', '#FFCC00'),
            get_contrast_ratio('#FFCC00', '#0B3B66'),
        )

    def test_same_colour_is_one(self):
        self.assertAlmostEqual(get_contrast_ratio('#123456', '#123456'), 1.0)

    def test_unparseable_is_one(self):
        self.assertEqual(get_contrast_ratio('#GGGGGG', WHITE), 1.0)
        self.assertEqual(get_contrast_ratio('#12', BLACK), 1.0)

    def test_three_letter_words_can_be_hex(self):
        # 'bad' expands to #BBAADD
        self.assertTrue(is_valid_hex(normalize_hex('bad')))
        self.assertGreater(get_contrast_ratio('bad', WHITE), 1.0)

    def test_contrast_color_choice(self):
        self.assertEqual(get_contrast_color('#000000'), WHITE)
        self.assertEqual(get_contrast_color('#FFFFFF'), BLACK)
        self.assertEqual(get_contrast_color(DEFAULT_BRAND_COLOR), WHITE)
        # Pure red reads better with black text (5.25 vs 4.00)
        self.assertEqual(get_contrast_color('#FF0000'), BLACK)

    def test_wcag_aa(self):
        self.assertTrue(meets_wcag_aa(DEFAULT_BRAND_COLOR, WHITE))
        self.assertFalse(meets_wcag_aa('#FF0000', WHITE))
        self.assertFalse(meets_wcag_aa('#777777', '#888888'))


class ThemeEvaluationTest(SimpleTestCase):

    def test_brand_colour_evaluation(self):
        evaluation = evaluate_theme_color('#0b3b66')

        self.assertTrue(evaluation.is_valid)
        self.assertEqual(evaluation.color, '#0B3B66')
        self.assertEqual(evaluation.hsl, '208 81% 22%')
        self.assertEqual(evaluation.foreground, WHITE)
        self.assertTrue(evaluation.meets_wcag_aa)
        self.assertEqual(evaluation.warning, '')

    def test_invalid_colour_evaluation(self):
        evaluation = evaluate_theme_color('azul')

        self.assertFalse(evaluation.is_valid)
        self.assertIsNone(evaluation.hsl)
        self.assertIn('#RRGGBB', evaluation.warning)

    def test_to_dict_rounds_ratio(self):
        data = evaluate_theme_color('#000').to_dict()
        self.assertEqual(data['contrast_ratio'], 21.0)
        self.assertEqual(data['foreground'], WHITE)

    def test_every_palette_is_valid_and_legible(self):
        for palette in COLOR_PALETTES:
            evaluation = evaluate_theme_color(palette['hex'])
            self.assertTrue(evaluation.is_valid, palette['name'])
            self.assertTrue(evaluation.meets_wcag_aa, palette['name'])


# =============================================================================
# LISTING PIPELINE TESTS
# =============================================================================

class CoverImageTest(SimpleTestCase):

    def test_flagged_cover_wins(self):
        images = (ListingImage('a.jpg'), ListingImage('b.jpg', is_cover=True))
        self.assertEqual(resolve_cover_image(images).url, 'b.jpg')

    def test_first_image_fallback(self):
        images = (ListingImage('a.jpg'), ListingImage('b.jpg'))
        self.assertEqual(resolve_cover_image(images).url, 'a.jpg')

    def test_no_images(self):
        self.assertIsNone(resolve_cover_image(()))
        self.assertIsNone(listing(1, 100).cover_image)


class FilterSpecTest(SimpleTestCase):

    def test_defaults(self):
        spec = FilterSpec()
        self.assertIsNone(spec.search)
        self.assertIs(spec.bedrooms, ANY_BEDROOMS)
        self.assertIs(spec.sort, SortMode.NEWEST)
        self.assertFalse(spec.is_filtering)

    def test_from_params(self):
        spec = FilterSpec.from_params({
            'search': '  Centro ',
            'min_price': '100000',
            'max_price': '',
            'bedrooms': '3',
            'sort': 'price-asc',
        })

        self.assertEqual(spec.search, 'Centro')
        self.assertEqual(spec.min_price, Decimal('100000'))
        self.assertIsNone(spec.max_price)
        self.assertEqual(spec.bedrooms, ExactBedrooms(3))
        self.assertIs(spec.sort, SortMode.PRICE_ASC)
        self.assertTrue(spec.is_filtering)

    def test_malformed_params_dropped(self):
        spec = FilterSpec.from_params({'min_price': 'muito', 'bedrooms': 'x', 'sort': 'random'})
        self.assertEqual(spec, FilterSpec())

    def test_bedroom_tokens(self):
        self.assertIs(parse_bedroom_filter('all'), ANY_BEDROOMS)
        self.assertIs(parse_bedroom_filter(''), ANY_BEDROOMS)
        self.assertIs(parse_bedroom_filter(None), ANY_BEDROOMS)
        self.assertIs(parse_bedroom_filter('-1'), ANY_BEDROOMS)
        self.assertEqual(parse_bedroom_filter(0), ExactBedrooms(0))


class FilterListingsTest(SimpleTestCase):

    def setUp(self):
        self.listings = [
            listing(1, 300000, title='Apartamento Moema', bedrooms=2),
            listing(2, 800000, title='Casa', neighborhood='Pinheiros', bedrooms=3),
            listing(3, 500000, title='Studio', address='Av. Paulista, 900', bedrooms=1),
            listing(4, 450000, title='Loft', bedrooms=None),
        ]

    def ids(self, spec):
        return [item.id for item in filter_listings(self.listings, spec)]

    def test_search_is_case_insensitive_over_three_fields(self):
        self.assertEqual(self.ids(FilterSpec(search='MOEMA')), [1])
        self.assertEqual(self.ids(FilterSpec(search='pinheiros')), [2])
        self.assertEqual(self.ids(FilterSpec(search='paulista')), [3])

    def test_price_bounds_inclusive(self):
        spec = FilterSpec(min_price=Decimal('300000'), max_price=Decimal('500000'))
        self.assertEqual(self.ids(spec), [1, 3, 4])

    def test_exact_bedrooms_excludes_unknown(self):
        self.assertEqual(self.ids(FilterSpec(bedrooms=ExactBedrooms(3))), [2])

    def test_any_bedrooms_keeps_unknown(self):
        self.assertEqual(self.ids(FilterSpec()), [1, 2, 3, 4])

    def test_inverted_range_matches_nothing(self):
        spec = FilterSpec(min_price=Decimal('600000'), max_price=Decimal('400000'))
        self.assertEqual(self.ids(spec), [])

    def test_result_independent_of_input_order(self):
        spec = FilterSpec(min_price=Decimal('400000'))
        forward = {item.id for item in filter_listings(self.listings, spec)}
        backward = {item.id for item in filter_listings(list(reversed(self.listings)), spec)}
        self.assertEqual(forward, backward)

    def test_predicates_commute(self):
        predicates = [
            FilterSpec(min_price=Decimal('400000')),
            FilterSpec(max_price=Decimal('600000')),
            FilterSpec(bedrooms=ExactBedrooms(1)),
        ]
        combined = FilterSpec(
            min_price=Decimal('400000'), max_price=Decimal('600000'), bedrooms=ExactBedrooms(1)
        )
        expected = set(self.ids(combined))
        self.assertEqual(expected, {3})

        for order in permutations(predicates):
            remaining = self.listings
            for spec in order:
                remaining = filter_listings(remaining, spec)
            self.assertEqual({item.id for item in remaining}, expected, order)


class SortListingsTest(SimpleTestCase):

    def setUp(self):
        self.listings = [
            listing(1, 500000, area_m2=80.0),
            listing(2, 200000, area_m2=None),
            listing(3, 500000, area_m2=120.0),
            listing(4, 900000, area_m2=60.0),
        ]

    def ids(self, mode):
        return [item.id for item in sort_listings(self.listings, mode)]

    def test_newest_keeps_input_order(self):
        self.assertEqual(self.ids(SortMode.NEWEST), [1, 2, 3, 4])

    def test_price_ascending_is_stable(self):
        self.assertEqual(self.ids(SortMode.PRICE_ASC), [2, 1, 3, 4])

    def test_price_descending(self):
        self.assertEqual(self.ids('price-desc'), [4, 1, 3, 2])

    def test_area_descending_missing_last(self):
        self.assertEqual(self.ids(SortMode.AREA_DESC), [3, 1, 4, 2])

    def test_input_not_mutated(self):
        sort_listings(self.listings, SortMode.PRICE_ASC)
        self.assertEqual([item.id for item in self.listings], [1, 2, 3, 4])


class PaginationTest(SimpleTestCase):

    def setUp(self):
        self.listings = [listing(i, 100000 * i) for i in range(1, 11)]

    def test_price_desc_first_page(self):
        page = build_listing_page(self.listings, FilterSpec(sort=SortMode.PRICE_DESC))

        self.assertEqual(len(page.items), PAGE_SIZE)
        self.assertEqual([item.price for item in page.items],
                         [Decimal(100000 * i) for i in range(10, 1, -1)])
        self.assertEqual(page.total_pages, 2)
        self.assertEqual(page.filtered_count, 10)
        self.assertTrue(page.has_next)
        self.assertFalse(page.has_previous)
        self.assertIsNone(page.empty_state)

    def test_pages_partition_the_sequence(self):
        collected = []
        for number in (1, 2):
            collected.extend(paginate(self.listings, page=number).items)
        self.assertEqual(collected, self.listings)

    def test_page_past_end_is_empty(self):
        page = paginate(self.listings, page=5)
        self.assertEqual(page.items, [])
        self.assertEqual(page.total_pages, 2)

    def test_page_below_one_is_empty(self):
        self.assertEqual(paginate(self.listings, page=0).items, [])

    def test_zero_listings_has_zero_pages(self):
        page = paginate([])
        self.assertEqual(page.total_pages, 0)
        self.assertFalse(page.has_next)

    def test_invalid_page_size(self):
        with self.assertRaises(ValueError):
            paginate(self.listings, page_size=0)

    def test_empty_states(self):
        no_listings = build_listing_page([])
        no_matches = build_listing_page(self.listings, FilterSpec(search='inexistente'))

        self.assertEqual(no_listings.empty_state, EMPTY_NO_LISTINGS)
        self.assertEqual(no_matches.empty_state, EMPTY_NO_MATCHES)
        self.assertEqual(no_matches.total_count, 10)


class ListingBrowserTest(SimpleTestCase):

    def setUp(self):
        self.browser = ListingBrowser([listing(i, 100000 * i) for i in range(1, 21)])

    def test_changing_filters_returns_to_first_page(self):
        self.browser.go_to(3)
        self.browser.update(sort='price-desc')

        self.assertEqual(self.browser.page, 1)
        self.assertEqual(self.browser.current_page().items[0].id, 20)

    def test_unchanged_filters_keep_page(self):
        self.browser.go_to(2)
        self.browser.update(sort='newest')
        self.assertEqual(self.browser.page, 2)

    def test_reset(self):
        self.browser.update(min_price='500000', bedrooms='2')
        self.browser.go_to(2)
        self.browser.reset()

        self.assertEqual(self.browser.spec, FilterSpec())
        self.assertEqual(self.browser.page, 1)

    def test_unknown_field(self):
        with self.assertRaises(TypeError):
            self.browser.update(colour='red')

    def test_non_string_search_is_stringified(self):
        self.browser.go_to(2)
        spec = self.browser.update(search=3)

        self.assertEqual(spec.search, '3')
        self.assertEqual(self.browser.page, 1)
        self.assertIsNone(self.browser.update(search=None).search)
        self.assertEqual(FilterSpec.from_params({'search': 42}).search, '42')


# =============================================================================
# PLAN AND CRM TESTS
# =============================================================================

class PlanLimitTest(SimpleTestCase):

    def test_limits(self):
        self.assertEqual(get_listing_limit(PLAN_FREE), 2)
        self.assertEqual(get_listing_limit(PLAN_CREDITS, credits=3), 5)
        self.assertEqual(get_listing_limit(PLAN_PRO), 15)
        self.assertIsNone(get_listing_limit(PLAN_PREMIUM))
        self.assertEqual(get_listing_limit('desconhecido'), 2)

    def test_remaining_and_can_create(self):
        self.assertEqual(remaining_listing_slots(PLAN_PRO, 10), 5)
        self.assertEqual(remaining_listing_slots(PLAN_FREE, 5), 0)
        self.assertIsNone(remaining_listing_slots(PLAN_PREMIUM, 500))
        self.assertFalse(can_create_listing(PLAN_FREE, 2))
        self.assertTrue(can_create_listing(PLAN_PREMIUM, 500))

    def test_enforce_listing_limit(self):
        enforce_listing_limit(PLAN_FREE, 1)
        with self.assertRaises(PlanLimitExceeded) as ctx:
            enforce_listing_limit(PLAN_FREE, 2)
        self.assertEqual(ctx.exception.limit, 2)

    def test_crm_access(self):
        self.assertTrue(has_crm_access(PLAN_PREMIUM))
        self.assertFalse(has_crm_access(PLAN_PRO))
        enforce_crm_access(PLAN_PREMIUM)
        with self.assertRaises(CRMAccessDenied):
            enforce_crm_access(None)


class CRMReportTest(SimpleTestCase):

    def test_empty_report(self):
        report = calculate_crm_report([], [], [])
        self.assertEqual(report.total_leads, 0)
        self.assertEqual(report.conversion_rate, 0.0)
        self.assertEqual(report.avg_deal_value, 0)

    def test_aggregation(self):
        now = timezone.make_aware(datetime(2024, 6, 15, 12, 0))
        leads = [
            {'created_at': now - timedelta(days=2), 'origin': 'whatsapp'},
            {'created_at': now - timedelta(days=40), 'origin': None},
            {'created_at': now, 'origin': 'whatsapp'},
        ]
        deals = [
            {'status': 'won', 'value': 100000},
            {'status': 'won', 'value': 200001},
            {'status': 'open', 'value': 5},
            {'status': 'open', 'value': 300000, 'probability': 50},
            {'status': 'lost', 'value': None},
        ]
        transactions = [
            {'amount': 1000000, 'commission_amount': 60000},
            {'amount': 5000, 'commission_amount': None},
        ]

        report = calculate_crm_report(leads, deals, transactions, now=now)

        self.assertEqual(report.total_leads, 3)
        self.assertEqual(report.leads_this_month, 2)
        self.assertEqual(report.active_deals, 2)
        self.assertEqual(report.won_deals, 2)
        self.assertEqual(report.lost_deals, 1)
        self.assertEqual(report.total_revenue, 65000)
        self.assertEqual(report.estimated_revenue, 150000)
        self.assertEqual(report.avg_deal_value, 150000)
        self.assertEqual(report.conversion_rate, 66.7)
        self.assertEqual(report.leads_by_origin, {'whatsapp': 2, 'outros': 1})


class WhatsAppLinkTest(SimpleTestCase):

    def test_url_strips_mask_and_encodes_message(self):
        url = build_whatsapp_url('(11) 98765-4321', 'Olá, tudo bem?')
        self.assertEqual(url, 'https://wa.me/11987654321?text=Ol%C3%A1%2C%20tudo%20bem%3F')

    def test_url_without_message(self):
        self.assertEqual(build_whatsapp_url('+55 11 98765-4321'), 'https://wa.me/5511987654321')

    def test_message(self):
        self.assertEqual(
            build_whatsapp_message('Casa Azul', 'https://vitrine.test/ana/casa-azul'),
            'Olá, tenho interesse no imóvel Casa Azul - link: https://vitrine.test/ana/casa-azul',
        )


# =============================================================================
# FORMATTER TESTS
# =============================================================================

class FormattersTest(SimpleTestCase):

    def test_currency(self):
        self.assertEqual(format_currency(123456), 'R$ 1.234,56')
        self.assertEqual(format_currency(100000000), 'R$ 1.000.000,00')
        self.assertEqual(format_currency(None), 'R$ 0,00')
        self.assertEqual(format_currency(-500), '-R$ 5,00')

    def test_parse_currency(self):
        self.assertEqual(parse_currency('R$ 1.234,56'), 123456)
        self.assertEqual(parse_currency('R$ 10'), 1000)
        self.assertIsNone(parse_currency('grátis'))
        self.assertIsNone(parse_currency(''))

    def test_percentage(self):
        self.assertEqual(format_percentage(33.333), '33.3%')
        self.assertEqual(format_percentage(None), '0%')

    def test_phone_masks(self):
        self.assertEqual(format_phone('11987654321'), '(11) 98765-4321')
        self.assertEqual(format_phone('1134567890'), '(11) 3456-7890')
        self.assertEqual(format_phone('123'), '123')
        self.assertEqual(format_phone(None), '-')

    def test_normalize_phone(self):
        self.assertEqual(normalize_phone('(11) 98765-4321'), '+5511987654321')
        self.assertEqual(normalize_phone('123'), '123')

    def test_dates(self):
        self.assertEqual(format_date('2024-03-05'), '05/03/2024')
        self.assertEqual(format_date(None), '-')
        self.assertEqual(days_between('2024-01-01', '2024-01-03'), 2)
        self.assertEqual(days_between('2024-01-03T12:00:00', '2024-01-01'), 3)
        self.assertEqual(days_between(None, '2024-01-01'), 0)

    def test_impossible_dates_treated_as_missing(self):
        self.assertEqual(format_date('2024-13-45'), '-')
        self.assertEqual(format_datetime('2024-02-30T10:00:00'), '-')
        self.assertEqual(days_between('2024-13-45', '2024-01-01'), 0)
