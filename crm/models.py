"""
CRM models for the Vitrine platform.

- Lead: a contact interested in a listing (or in the broker in general)
- Deal: an opportunity in the sales pipeline
- Transaction: money received for a closed deal
- Interaction: a contact made with a lead (call, message, visit, note)
- ActivityLog: feed of the changes a broker made in the CRM

Money is stored as integer centavos, as the formatters expect.
"""

import logging
from decimal import Decimal, ROUND_HALF_UP

from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.utils import timezone

from services.formatters import INTERACTION_TYPES, LEAD_ORIGINS, LEAD_STATUS, format_currency

logger = logging.getLogger(__name__)


# =============================================================================
# LEAD MODEL
# =============================================================================

class Lead(models.Model):

    ORIGIN_CHOICES = list(LEAD_ORIGINS.items())
    STATUS_CHOICES = list(LEAD_STATUS.items())

    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='leads'
    )
    property = models.ForeignKey(
        'properties.Property',
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name='leads'
    )

    contact_name = models.CharField(max_length=255)
    contact_phone = models.CharField(max_length=30, blank=True, default='')
    contact_email = models.EmailField(blank=True, default='')
    message = models.TextField(blank=True, default='')

    origin = models.CharField(max_length=20, choices=ORIGIN_CHOICES, default='platform', db_index=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='active', db_index=True)

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'leads'
        ordering = ['-created_at', '-id']

    def __str__(self):
        return f"{self.contact_name} ({self.get_origin_display()})"


# =============================================================================
# DEAL MODEL
# =============================================================================

class Deal(models.Model):
    """
    An opportunity in the broker's pipeline.

    closed_at is stamped when the deal is won or lost and cleared when it
    is reopened.
    """

    STATUS_OPEN = 'open'
    STATUS_WON = 'won'
    STATUS_LOST = 'lost'
    STATUS_CHOICES = [
        (STATUS_OPEN, 'Em andamento'),
        (STATUS_WON, 'Ganho'),
        (STATUS_LOST, 'Perdido'),
    ]

    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='deals'
    )
    lead = models.ForeignKey(Lead, on_delete=models.SET_NULL, blank=True, null=True, related_name='deals')
    property = models.ForeignKey(
        'properties.Property',
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name='deals'
    )

    title = models.CharField(max_length=255)
    value = models.BigIntegerField(
        blank=True,
        null=True,
        validators=[MinValueValidator(0)],
        help_text="Deal value in centavos"
    )
    probability = models.PositiveSmallIntegerField(
        blank=True,
        null=True,
        validators=[MaxValueValidator(100)]
    )
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_OPEN, db_index=True)
    expected_close_date = models.DateField(blank=True, null=True)
    closed_at = models.DateTimeField(blank=True, null=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'crm_deals'
        ordering = ['-created_at', '-id']

    def __str__(self):
        return f"{self.title} - {format_currency(self.value)} ({self.status})"

    def save(self, *args, **kwargs):
        if self.status == self.STATUS_OPEN:
            self.closed_at = None
        elif self.closed_at is None:
            self.closed_at = timezone.now()
        super().save(*args, **kwargs)


# =============================================================================
# TRANSACTION MODEL
# =============================================================================

class Transaction(models.Model):
    """
    Money received for a deal.

    When only commission_pct is given, commission_amount is derived from
    the amount on save.
    """

    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='transactions'
    )
    deal = models.ForeignKey(Deal, on_delete=models.SET_NULL, blank=True, null=True, related_name='transactions')

    description = models.CharField(max_length=255, blank=True, default='')
    amount = models.BigIntegerField(validators=[MinValueValidator(0)], help_text="Amount in centavos")
    commission_pct = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        blank=True,
        null=True,
        validators=[MinValueValidator(0), MaxValueValidator(100)]
    )
    commission_amount = models.BigIntegerField(
        blank=True,
        null=True,
        validators=[MinValueValidator(0)],
        help_text="Commission in centavos"
    )
    date = models.DateField(default=timezone.localdate)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'crm_transactions'
        ordering = ['-date', '-id']

    def __str__(self):
        return f"{format_currency(self.amount)} on {self.date}"

    def save(self, *args, **kwargs):
        if self.commission_amount is None and self.commission_pct is not None:
            commission = Decimal(self.amount) * Decimal(self.commission_pct) / 100
            self.commission_amount = int(commission.quantize(Decimal('1'), rounding=ROUND_HALF_UP))
        super().save(*args, **kwargs)


# =============================================================================
# INTERACTION MODEL
# =============================================================================

class Interaction(models.Model):

    TYPE_CHOICES = list(INTERACTION_TYPES.items())
    DIRECTION_INBOUND = 'inbound'
    DIRECTION_OUTBOUND = 'outbound'
    DIRECTION_CHOICES = [
        (DIRECTION_INBOUND, 'Recebida'),
        (DIRECTION_OUTBOUND, 'Enviada'),
    ]

    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='interactions'
    )
    lead = models.ForeignKey(Lead, on_delete=models.CASCADE, blank=True, null=True, related_name='interactions')
    deal = models.ForeignKey(Deal, on_delete=models.SET_NULL, blank=True, null=True, related_name='interactions')

    type = models.CharField(max_length=20, choices=TYPE_CHOICES, default='nota')
    direction = models.CharField(max_length=10, choices=DIRECTION_CHOICES, blank=True, default='')
    message = models.TextField(blank=True, default='')

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        db_table = 'crm_interactions'
        ordering = ['-created_at', '-id']

    def __str__(self):
        return f"{self.get_type_display()} with lead {self.lead_id}"


# =============================================================================
# ACTIVITY LOG MODEL
# =============================================================================

class ActivityLog(models.Model):
    """
    An entry in the broker's activity feed.

    Rows are written by the CRM views and never edited. resource_id is kept
    as text so entries survive the deletion of the row they describe.
    """

    ACTION_CREATE = 'create'
    ACTION_UPDATE = 'update'
    ACTION_DELETE = 'delete'
    ACTION_MOVE = 'move'
    ACTION_CHOICES = [
        (ACTION_CREATE, 'Criou'),
        (ACTION_UPDATE, 'Atualizou'),
        (ACTION_DELETE, 'Deletou'),
        (ACTION_MOVE, 'Moveu'),
    ]
    RESOURCE_CHOICES = [
        ('lead', 'Lead'),
        ('deal', 'Negociação'),
        ('interaction', 'Interação'),
        ('transaction', 'Transação'),
    ]

    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='activities'
    )
    action = models.CharField(max_length=10, choices=ACTION_CHOICES, db_index=True)
    resource_type = models.CharField(max_length=20, choices=RESOURCE_CHOICES)
    resource_id = models.CharField(max_length=64, blank=True, default='')
    payload = models.JSONField(blank=True, null=True)

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        db_table = 'crm_activity_log'
        ordering = ['-created_at', '-id']

    def __str__(self):
        return f"{self.get_action_display()} {self.get_resource_type_display()} {self.resource_id}"

    @classmethod
    def record(cls, owner, action, instance, payload=None, resource_id=None):
        if resource_id is None:
            resource_id = instance.pk
        entry = cls.objects.create(
            owner=owner,
            action=action,
            resource_type=instance._meta.model_name,
            resource_id='' if resource_id is None else str(resource_id),
            payload=payload,
        )
        logger.info(f"Activity {action} {entry.resource_type} {entry.resource_id} by user {owner.pk}")
        return entry
