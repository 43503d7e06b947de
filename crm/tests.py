# ===== CRM APP TEST SUITE =====
"""
Test suite for the CRM app
File: crm/tests.py

Test Coverage:
- Deal and Transaction model rules
- Premium-only access to the CRM API
- Owner scoping and filtering of leads, deals and interactions
- Money input in centavos or pt-BR strings, display fields
- CRM report endpoint
- Activity feed recording and listing
- Public WhatsApp lead capture and its rate limit
"""

from datetime import date, datetime, timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.test import TestCase, override_settings
from django.urls import reverse
from django.utils import timezone

from rest_framework import status
from rest_framework.test import APITestCase

from properties.models import BrokerProfile, Property

from .models import ActivityLog, Deal, Interaction, Lead, Transaction

User = get_user_model()


def make_broker(username='carla', plan_type='premium'):
    user = User.objects.create_user(username=username, password='senha-segura-123')
    BrokerProfile.objects.create(user=user, name=username.title(), plan_type=plan_type)
    return user


def make_property(owner, **extra):
    fields = {
        'title': 'Casa com Quintal',
        'address': 'Rua A, 10',
        'price': Decimal('450000'),
        'whatsapp_number': '(11) 99999-0000',
    }
    fields.update(extra)
    return Property.objects.create(owner=owner, **fields)


# =============================================================================
# MODEL TESTS
# =============================================================================

class DealModelTest(TestCase):

    def setUp(self):
        self.user = make_broker()

    def test_closing_stamps_closed_at(self):
        deal = Deal.objects.create(owner=self.user, title='Venda', value=50000000)
        self.assertIsNone(deal.closed_at)

        deal.status = Deal.STATUS_WON
        deal.save()
        self.assertIsNotNone(deal.closed_at)

    def test_reopening_clears_closed_at(self):
        deal = Deal.objects.create(owner=self.user, title='Venda', status=Deal.STATUS_LOST)
        deal.status = Deal.STATUS_OPEN
        deal.save()
        self.assertIsNone(deal.closed_at)

    def test_string_representation_uses_brl(self):
        deal = Deal.objects.create(owner=self.user, title='Venda', value=123456)
        self.assertEqual(str(deal), 'Venda - R$ 1.234,56 (open)')


class TransactionModelTest(TestCase):

    def setUp(self):
        self.user = make_broker()

    def test_commission_derived_from_percentage(self):
        transaction = Transaction.objects.create(
            owner=self.user, amount=100000000, commission_pct=Decimal('6')
        )
        self.assertEqual(transaction.commission_amount, 6000000)

    def test_explicit_commission_kept(self):
        transaction = Transaction.objects.create(
            owner=self.user, amount=100000000, commission_pct=Decimal('6'), commission_amount=5000000
        )
        self.assertEqual(transaction.commission_amount, 5000000)


# =============================================================================
# API TESTS
# =============================================================================

class CRMAPITestCase(APITestCase):
    """Base class with an authenticated premium broker"""

    def setUp(self):
        cache.clear()
        self.user = make_broker()
        self.client.force_authenticate(user=self.user)


class CRMAccessTest(CRMAPITestCase):

    def test_premium_broker_allowed(self):
        response = self.client.get(reverse('lead-list'))
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_pro_broker_forbidden_with_upgrade_message(self):
        pro = make_broker(username='paulo', plan_type='pro')
        self.client.force_authenticate(user=pro)

        response = self.client.get(reverse('lead-list'))

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertIn('Premium', response.data['detail'])

    def test_user_without_profile_forbidden(self):
        stranger = User.objects.create_user(username='sem-perfil', password='senha-segura-123')
        self.client.force_authenticate(user=stranger)

        response = self.client.get(reverse('crm-report'))

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_anonymous_rejected(self):
        self.client.force_authenticate(user=None)
        response = self.client.get(reverse('deal-list'))
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class LeadAPITest(CRMAPITestCase):

    def test_create_lead_owned_by_requester(self):
        listing = make_property(self.user)
        payload = {
            'property': listing.pk,
            'contact_name': 'Joana',
            'contact_phone': '11987654321',
            'origin': 'instagram',
        }

        response = self.client.post(reverse('lead-list'), payload, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['origin_display'], 'Instagram')
        self.assertEqual(response.data['contact_phone_display'], '(11) 98765-4321')
        self.assertEqual(response.data['property_title'], 'Casa com Quintal')
        self.assertEqual(Lead.objects.get().owner, self.user)
        self.assertRegex(response.data['created_at_display'], r'^\d{2}/\d{2}/\d{4} \d{2}:\d{2}$')

    def test_cannot_attach_other_brokers_property(self):
        other = make_broker(username='outro')
        foreign = make_property(other)

        response = self.client.post(
            reverse('lead-list'),
            {'property': foreign.pk, 'contact_name': 'Joana'},
            format='json',
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('property', response.data)

    def test_list_scoped_and_filtered(self):
        other = make_broker(username='outro')
        Lead.objects.create(owner=self.user, contact_name='A', origin='whatsapp')
        Lead.objects.create(owner=self.user, contact_name='B', origin='instagram')
        Lead.objects.create(owner=other, contact_name='C', origin='whatsapp')

        response = self.client.get(reverse('lead-list'), {'origin': 'whatsapp'})

        names = [item['contact_name'] for item in response.data['results']]
        self.assertEqual(names, ['A'])

    def test_update_status(self):
        lead = Lead.objects.create(owner=self.user, contact_name='A')

        response = self.client.patch(
            reverse('lead-detail', kwargs={'pk': lead.pk}), {'status': 'qualified'}, format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status_display'], 'Qualificado')


class DealAPITest(CRMAPITestCase):

    def test_create_and_win_deal(self):
        lead = Lead.objects.create(owner=self.user, contact_name='Rui')
        response = self.client.post(
            reverse('deal-list'),
            {'title': 'Venda apto', 'lead': lead.pk, 'value': 75000000, 'probability': 60},
            format='json',
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['value_display'], 'R$ 750.000,00')
        self.assertEqual(response.data['lead_name'], 'Rui')

        url = reverse('deal-detail', kwargs={'pk': response.data['id']})
        response = self.client.patch(url, {'status': 'won'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIsNotNone(response.data['closed_at'])

    def test_probability_over_100_rejected(self):
        response = self.client.post(
            reverse('deal-list'), {'title': 'Venda', 'probability': 120}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_filter_by_status(self):
        Deal.objects.create(owner=self.user, title='Aberto')
        Deal.objects.create(owner=self.user, title='Fechado', status=Deal.STATUS_WON)

        response = self.client.get(reverse('deal-list'), {'status': 'won'})

        titles = [item['title'] for item in response.data['results']]
        self.assertEqual(titles, ['Fechado'])

    def test_value_accepts_brl_string(self):
        response = self.client.post(
            reverse('deal-list'), {'title': 'Venda', 'value': 'R$ 750.000,00'}, format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['value'], 75000000)

    def test_unreadable_value_rejected(self):
        response = self.client.post(
            reverse('deal-list'), {'title': 'Venda', 'value': 'muito'}, format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('value', response.data)

    def test_negative_value_rejected(self):
        response = self.client.post(
            reverse('deal-list'), {'title': 'Venda', 'value': '-5'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_date_displays_and_days_open(self):
        deal = Deal.objects.create(
            owner=self.user, title='Venda', status=Deal.STATUS_WON, expected_close_date=date(2024, 6, 30)
        )
        opened = timezone.make_aware(datetime(2024, 6, 1, 12, 0))
        Deal.objects.filter(pk=deal.pk).update(created_at=opened, closed_at=opened + timedelta(days=5))

        response = self.client.get(reverse('deal-detail', kwargs={'pk': deal.pk}))

        self.assertEqual(response.data['expected_close_date_display'], '30/06/2024')
        self.assertEqual(response.data['days_open'], 5)

    def test_missing_close_date_display(self):
        deal = Deal.objects.create(owner=self.user, title='Venda')
        response = self.client.get(reverse('deal-detail', kwargs={'pk': deal.pk}))
        self.assertEqual(response.data['expected_close_date_display'], '-')


class TransactionAPITest(CRMAPITestCase):

    def test_amount_accepts_brl_string(self):
        response = self.client.post(
            reverse('transaction-list'),
            {'amount': '1.500,00', 'commission_pct': '6'},
            format='json',
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['amount'], 150000)
        self.assertEqual(response.data['commission_amount'], 9000)
        self.assertEqual(response.data['amount_display'], 'R$ 1.500,00')

    def test_amount_in_centavos(self):
        response = self.client.post(reverse('transaction-list'), {'amount': 150000}, format='json')
        self.assertEqual(response.data['amount'], 150000)


class InteractionAPITest(CRMAPITestCase):

    def setUp(self):
        super().setUp()
        self.lead = Lead.objects.create(owner=self.user, contact_name='Rui')

    def test_create_interaction(self):
        response = self.client.post(
            reverse('interaction-list'),
            {'lead': self.lead.pk, 'type': 'visita', 'direction': 'outbound', 'message': 'Visita ao apto'},
            format='json',
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['type_display'], 'Visita')
        self.assertEqual(response.data['direction_display'], 'Enviada')
        self.assertEqual(Interaction.objects.get().owner, self.user)

    def test_requires_lead_or_deal(self):
        response = self.client.post(reverse('interaction-list'), {'type': 'nota'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_unknown_type_rejected(self):
        response = self.client.post(
            reverse('interaction-list'), {'lead': self.lead.pk, 'type': 'telegrama'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_cannot_attach_other_brokers_lead(self):
        other = make_broker(username='outro')
        foreign = Lead.objects.create(owner=other, contact_name='X')

        response = self.client.post(
            reverse('interaction-list'), {'lead': foreign.pk, 'type': 'nota'}, format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('lead', response.data)

    def test_filter_by_lead(self):
        other_lead = Lead.objects.create(owner=self.user, contact_name='Ana')
        Interaction.objects.create(owner=self.user, lead=self.lead, message='primeira')
        Interaction.objects.create(owner=self.user, lead=other_lead, message='segunda')

        response = self.client.get(reverse('interaction-list'), {'lead': self.lead.pk})

        messages = [item['message'] for item in response.data['results']]
        self.assertEqual(messages, ['primeira'])


class ReportAPITest(CRMAPITestCase):

    def test_report_figures(self):
        Lead.objects.create(owner=self.user, contact_name='A', origin='whatsapp')
        Lead.objects.create(owner=self.user, contact_name='B', origin='whatsapp')
        Lead.objects.create(owner=self.user, contact_name='C', origin='instagram')
        Deal.objects.create(owner=self.user, title='1', status=Deal.STATUS_WON, value=60000000)
        Deal.objects.create(owner=self.user, title='2', status=Deal.STATUS_OPEN, value=10000000, probability=40)
        Deal.objects.create(owner=self.user, title='3', status=Deal.STATUS_LOST)
        Transaction.objects.create(owner=self.user, amount=60000000, commission_pct=Decimal('5'))
        Transaction.objects.create(owner=self.user, amount=150000)

        other = make_broker(username='outro')
        Lead.objects.create(owner=other, contact_name='X')

        response = self.client.get(reverse('crm-report'))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_leads'], 3)
        self.assertEqual(response.data['leads_this_month'], 3)
        self.assertEqual(response.data['active_deals'], 1)
        self.assertEqual(response.data['won_deals'], 1)
        self.assertEqual(response.data['lost_deals'], 1)
        self.assertEqual(response.data['total_revenue'], 3000000 + 150000)
        self.assertEqual(response.data['avg_deal_value'], 60000000)
        self.assertEqual(response.data['estimated_revenue'], 4000000)
        self.assertEqual(response.data['conversion_rate'], 33.3)
        self.assertEqual(response.data['conversion_rate_display'], '33.3%')
        self.assertEqual(response.data['leads_by_origin'], {'whatsapp': 2, 'instagram': 1})


# =============================================================================
# ACTIVITY FEED TESTS
# =============================================================================

class ActivityFeedTest(CRMAPITestCase):

    def setUp(self):
        super().setUp()
        self.url = reverse('crm-activities')

    def test_create_lead_is_recorded(self):
        response = self.client.post(reverse('lead-list'), {'contact_name': 'Joana'}, format='json')

        entry = ActivityLog.objects.get()
        self.assertEqual(entry.owner, self.user)
        self.assertEqual(entry.action, ActivityLog.ACTION_CREATE)
        self.assertEqual(entry.resource_type, 'lead')
        self.assertEqual(entry.resource_id, str(response.data['id']))

    def test_update_records_changed_fields(self):
        lead = Lead.objects.create(owner=self.user, contact_name='A')

        self.client.patch(reverse('lead-detail', kwargs={'pk': lead.pk}), {'status': 'contacted'}, format='json')

        entry = ActivityLog.objects.get()
        self.assertEqual(entry.action, ActivityLog.ACTION_UPDATE)
        self.assertEqual(entry.payload, {'fields': ['status']})

    def test_delete_keeps_resource_id(self):
        lead = Lead.objects.create(owner=self.user, contact_name='A')
        lead_id = lead.pk

        response = self.client.delete(reverse('lead-detail', kwargs={'pk': lead_id}))

        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        entry = ActivityLog.objects.get()
        self.assertEqual(entry.action, ActivityLog.ACTION_DELETE)
        self.assertEqual(entry.resource_id, str(lead_id))

    def test_deal_status_change_records_move(self):
        deal = Deal.objects.create(owner=self.user, title='Venda')

        self.client.patch(reverse('deal-detail', kwargs={'pk': deal.pk}), {'status': 'won'}, format='json')

        actions = list(ActivityLog.objects.values_list('action', flat=True))
        self.assertCountEqual(actions, [ActivityLog.ACTION_UPDATE, ActivityLog.ACTION_MOVE])
        move = ActivityLog.objects.get(action=ActivityLog.ACTION_MOVE)
        self.assertEqual(move.resource_type, 'deal')
        self.assertEqual(move.payload, {'from': 'open', 'to': 'won'})

    def test_deal_edit_without_status_change_has_no_move(self):
        deal = Deal.objects.create(owner=self.user, title='Venda')

        self.client.patch(reverse('deal-detail', kwargs={'pk': deal.pk}), {'title': 'Venda apto'}, format='json')

        self.assertFalse(ActivityLog.objects.filter(action=ActivityLog.ACTION_MOVE).exists())

    def test_feed_newest_first_and_capped(self):
        lead = Lead.objects.create(owner=self.user, contact_name='A')
        for _ in range(55):
            ActivityLog.record(self.user, ActivityLog.ACTION_UPDATE, lead)
        latest = ActivityLog.record(self.user, ActivityLog.ACTION_DELETE, lead)

        response = self.client.get(self.url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 50)
        self.assertEqual(response.data[0]['id'], latest.pk)
        self.assertEqual(response.data[0]['action_display'], 'Deletou')
        self.assertEqual(response.data[0]['resource_display'], 'Lead')
        self.assertRegex(response.data[0]['created_at_display'], r'^\d{2}/\d{2}/\d{4} \d{2}:\d{2}$')

    def test_feed_scoped_to_owner(self):
        other = make_broker(username='outro')
        ActivityLog.record(other, ActivityLog.ACTION_CREATE, Lead.objects.create(owner=other, contact_name='X'))

        response = self.client.get(self.url)

        self.assertEqual(response.data, [])

    def test_feed_is_premium_only(self):
        pro = make_broker(username='paulo', plan_type='pro')
        self.client.force_authenticate(user=pro)

        response = self.client.get(self.url)

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_feed_is_read_only(self):
        response = self.client.post(self.url, {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_405_METHOD_NOT_ALLOWED)


# =============================================================================
# PUBLIC LEAD CAPTURE TESTS
# =============================================================================

class WhatsAppLeadTest(APITestCase):

    def setUp(self):
        cache.clear()
        self.user = make_broker()
        self.listing = make_property(self.user)
        self.url = reverse('whatsapp-lead')

    def payload(self, **overrides):
        data = {
            'property_id': self.listing.pk,
            'contact_name': 'Visitante',
            'contact_phone': '(21) 98888-7777',
            'message': 'Ainda está disponível?',
        }
        data.update(overrides)
        return data

    def test_creates_whatsapp_lead(self):
        response = self.client.post(self.url, self.payload(), format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        lead = Lead.objects.get(pk=response.data['lead_id'])
        self.assertEqual(lead.origin, 'whatsapp')
        self.assertEqual(lead.owner, self.user)
        self.assertEqual(lead.contact_phone, '+5521988887777')
        self.assertTrue(response.data['whatsapp_url'].startswith('https://wa.me/11999990000?text='))

        entry = ActivityLog.objects.get()
        self.assertEqual(entry.owner, self.user)
        self.assertEqual(entry.resource_id, str(lead.pk))
        self.assertEqual(entry.payload['origin'], 'whatsapp')

    def test_logs_notification(self):
        with self.assertLogs('crm.views', level='INFO') as captured:
            self.client.post(self.url, self.payload(), format='json')
        self.assertTrue(any('Lead notification due' in line for line in captured.output))

    def test_inactive_property_returns_404(self):
        self.listing.is_active = False
        self.listing.save()

        response = self.client.post(self.url, self.payload(), format='json')

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertFalse(Lead.objects.exists())

    def test_unknown_property_returns_404(self):
        response = self.client.post(self.url, self.payload(property_id=999999), format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_short_phone_rejected(self):
        response = self.client.post(self.url, self.payload(contact_phone='1234'), format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('contact_phone', response.data)

    @override_settings(RATE_LIMITS={'/api/v1/crm/whatsapp-lead/': {'requests': 2, 'window': 60}})
    def test_rate_limited(self):
        for _ in range(2):
            response = self.client.post(self.url, self.payload(), format='json')
            self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        response = self.client.post(self.url, self.payload(), format='json')

        self.assertEqual(response.status_code, status.HTTP_429_TOO_MANY_REQUESTS)
        self.assertEqual(response.json()['retry_after'], 60)
        self.assertEqual(Lead.objects.count(), 2)
