from django.db import models

from .services.truck_numbers import normalize_truck_no

YARD_CHECKPOINTS = ['mmsa_yard', 'tanga_yard', 'dar_yard']
GOING_CHECKPOINTS = ['dar_going', 'moro_going', 'mbeya_going', 'tdm_going', 'zambia_going', 'congo_fuel']
RETURN_CHECKPOINTS = ['zambia_return', 'tunduma_return', 'mbeya_return', 'moro_return', 'dar_return', 'tanga_return']
CHECKPOINT_FIELDS = YARD_CHECKPOINTS + GOING_CHECKPOINTS + RETURN_CHECKPOINTS


class DeliveryOrder(models.Model):
    TYPE_CHOICES = [('IMPORT', 'Import'), ('EXPORT', 'Export')]

    do_number = models.CharField(max_length=64, unique=True)
    date = models.DateField()
    truck_no = models.CharField(max_length=32)
    truck_no_normalized = models.CharField(max_length=32, db_index=True, editable=False)
    import_or_export = models.CharField(max_length=10, choices=TYPE_CHOICES, default='IMPORT')
    loading_point = models.CharField(max_length=120, blank=True, default='')
    destination = models.CharField(max_length=120)
    is_cancelled = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-date', '-id']

    def save(self, *args, **kwargs):
        self.do_number = (self.do_number or '').strip().upper()
        self.truck_no_normalized = normalize_truck_no(self.truck_no)
        return super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.do_number} ({self.truck_no})"


class FuelRecord(models.Model):
    STATUS_ACTIVE = 'active'
    STATUS_QUEUED = 'queued'
    STATUS_COMPLETED = 'completed'
    JOURNEY_STATUS_CHOICES = [
        (STATUS_ACTIVE, 'Active'), (STATUS_QUEUED, 'Queued'), (STATUS_COMPLETED, 'Completed'),
    ]
    PENDING_REASON_CHOICES = [
        ('missing_total_liters', 'Missing total liters'),
        ('missing_extra_fuel', 'Missing extra fuel'),
        ('both', 'Missing total liters and extra fuel'),
    ]

    date = models.DateField()
    month = models.CharField(max_length=20, blank=True, default='')
    truck_no = models.CharField(max_length=32)
    truck_no_normalized = models.CharField(max_length=32, db_index=True, editable=False)
    going_do = models.CharField(max_length=64, db_index=True)
    return_do = models.CharField(max_length=64, blank=True, null=True, db_index=True)

    start = models.CharField(max_length=120)
    from_location = models.CharField(max_length=120)
    to = models.CharField(max_length=120)
    # Going leg as first imported, before an EXPORT DO rewrites from/to
    original_going_from = models.CharField(max_length=120, blank=True, null=True)
    original_going_to = models.CharField(max_length=120, blank=True, null=True)

    # Null while the route total is still being configured
    total_lts = models.IntegerField(blank=True, null=True)
    extra = models.IntegerField(blank=True, null=True, default=0)
    balance = models.IntegerField(default=0)

    mmsa_yard = models.IntegerField(default=0)
    tanga_yard = models.IntegerField(default=0)
    dar_yard = models.IntegerField(default=0)
    dar_going = models.IntegerField(default=0)
    moro_going = models.IntegerField(default=0)
    mbeya_going = models.IntegerField(default=0)
    tdm_going = models.IntegerField(default=0)
    zambia_going = models.IntegerField(default=0)
    congo_fuel = models.IntegerField(default=0)
    zambia_return = models.IntegerField(default=0)
    tunduma_return = models.IntegerField(default=0)
    mbeya_return = models.IntegerField(blank=True, null=True, default=0)
    moro_return = models.IntegerField(default=0)
    dar_return = models.IntegerField(default=0)
    tanga_return = models.IntegerField(blank=True, null=True, default=0)

    journey_status = models.CharField(max_length=12, choices=JOURNEY_STATUS_CHOICES, blank=True, null=True)
    queue_order = models.PositiveIntegerField(blank=True, null=True)
    activated_at = models.DateTimeField(blank=True, null=True)
    completed_at = models.DateTimeField(blank=True, null=True)
    is_locked = models.BooleanField(default=False)
    pending_config_reason = models.CharField(max_length=24, choices=PENDING_REASON_CHOICES, blank=True, null=True)

    is_cancelled = models.BooleanField(default=False)
    cancelled_at = models.DateTimeField(blank=True, null=True)
    cancellation_reason = models.CharField(max_length=255, blank=True, null=True)
    is_deleted = models.BooleanField(default=False)
    deleted_at = models.DateTimeField(blank=True, null=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-date', '-id']
        indexes = [
            models.Index(fields=['truck_no_normalized', '-date'], name='fuelrec_truck_date_idx'),
            models.Index(fields=['journey_status'], name='fuelrec_status_idx'),
        ]

    def save(self, *args, **kwargs):
        self.truck_no_normalized = normalize_truck_no(self.truck_no)
        if not self.month and self.date:
            self.month = self.date.strftime('%B %Y')
        return super().save(*args, **kwargs)

    @property
    def going_destination(self) -> str:
        return self.original_going_to or self.to or ''

    def __str__(self):
        return f"{self.truck_no} {self.going_do} ({self.date})"
