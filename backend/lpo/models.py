from decimal import Decimal, ROUND_HALF_UP

from django.conf import settings
from django.db import models

from journeys.services.truck_numbers import normalize_truck_no

MONEY_2DP = Decimal("0.01")


class CancellationPoint(models.TextChoices):
    DAR_GOING = 'DAR_GOING', 'Dar Going'
    MORO_GOING = 'MORO_GOING', 'Moro Going'
    MBEYA_GOING = 'MBEYA_GOING', 'Mbeya Going'
    INFINITY_GOING = 'INFINITY_GOING', 'Infinity (Mbeya)'
    TDM_GOING = 'TDM_GOING', 'TDM/Tunduma Going'
    ZAMBIA_GOING = 'ZAMBIA_GOING', 'Zambia Going (Lake Chilabombwe)'
    CONGO_GOING = 'CONGO_GOING', 'Congo Going'
    ZAMBIA_NDOLA = 'ZAMBIA_NDOLA', 'Zambia Returning (Ndola - 50L)'
    ZAMBIA_KAPIRI = 'ZAMBIA_KAPIRI', 'Zambia Returning (Kapiri - 350L)'
    TDM_RETURN = 'TDM_RETURN', 'TDM/Tunduma Return'
    MBEYA_RETURN = 'MBEYA_RETURN', 'Mbeya Return'
    MORO_RETURN = 'MORO_RETURN', 'Moro Return'
    DAR_RETURN = 'DAR_RETURN', 'Dar Return'
    TANGA_RETURN = 'TANGA_RETURN', 'Tanga Return'
    CONGO_RETURNING = 'CONGO_RETURNING', 'Congo Returning'
    CUSTOM_GOING = 'CUSTOM_GOING', 'Custom Going'
    CUSTOM_RETURN = 'CUSTOM_RETURN', 'Custom Return'


class LPODocument(models.Model):
    """A fuel purchase order issued to one station for one or more trucks."""

    lpo_no = models.CharField(max_length=20, unique=True)
    date = models.DateField()
    station = models.CharField(max_length=120)
    order_of = models.CharField(max_length=120, blank=True, default='')
    currency = models.CharField(max_length=3, default='TZS')
    total = models.DecimalField(max_digits=18, decimal_places=2, default=Decimal("0.00"))
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True)
    is_deleted = models.BooleanField(default=False)
    deleted_at = models.DateTimeField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-date', '-id']
        indexes = [models.Index(fields=['station', 'is_deleted'], name='lpo_station_idx')]

    def recalculate_total(self):
        total = sum((e.amount for e in self.entries.filter(is_cancelled=False)), Decimal("0"))
        self.total = total.quantize(MONEY_2DP, rounding=ROUND_HALF_UP)
        return self.total

    def __str__(self):
        return f"LPO {self.lpo_no} ({self.station})"


class LPOEntry(models.Model):
    DIRECTION_CHOICES = [('going', 'Going'), ('returning', 'Returning')]

    document = models.ForeignKey(LPODocument, on_delete=models.CASCADE, related_name='entries')
    do_no = models.CharField(max_length=64)
    truck_no = models.CharField(max_length=32)
    truck_no_normalized = models.CharField(max_length=32, db_index=True, editable=False)
    liters = models.IntegerField()
    rate = models.DecimalField(max_digits=12, decimal_places=4)
    amount = models.DecimalField(max_digits=18, decimal_places=2, editable=False)
    dest = models.CharField(max_length=120, blank=True, default='')
    direction = models.CharField(max_length=10, choices=DIRECTION_CHOICES, default='going')

    # Journey the liters were posted to, and the checkpoint column used
    fuel_record = models.ForeignKey('journeys.FuelRecord', on_delete=models.SET_NULL, null=True, blank=True,
                                    related_name='lpo_entries')
    posted_field = models.CharField(max_length=32, blank=True, default='')

    is_cancelled = models.BooleanField(default=False)
    cancellation_point = models.CharField(max_length=20, choices=CancellationPoint.choices, blank=True, null=True)
    cancellation_reason = models.CharField(max_length=255, blank=True, null=True)
    cancelled_at = models.DateTimeField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['id']
        indexes = [models.Index(fields=['truck_no_normalized', 'is_cancelled'], name='lpoentry_truck_idx')]

    def save(self, *args, **kwargs):
        self.truck_no_normalized = normalize_truck_no(self.truck_no)
        self.amount = (Decimal(self.liters) * Decimal(str(self.rate))).quantize(MONEY_2DP, rounding=ROUND_HALF_UP)
        return super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.truck_no} {self.liters}L @ {self.rate} ({self.do_no})"
