from django.core.exceptions import ValidationError
from django.db import models

from .services.formula import validate_formula


class StationConfig(models.Model):
    GOING_FIELDS = [
        ('dar_going', 'Dar Going'), ('moro_going', 'Moro Going'), ('mbeya_going', 'Mbeya Going'),
        ('tdm_going', 'Tunduma Going'), ('zambia_going', 'Zambia Going'), ('congo_fuel', 'Congo Fuel'),
    ]
    RETURNING_FIELDS = [
        ('zambia_return', 'Zambia Return'), ('tunduma_return', 'Tunduma Return'), ('mbeya_return', 'Mbeya Return'),
        ('moro_return', 'Moro Return'), ('dar_return', 'Dar Return'), ('tanga_return', 'Tanga Return'),
        ('congo_fuel', 'Congo Fuel'),
    ]

    station_name = models.CharField(max_length=120, unique=True)
    default_rate = models.DecimalField(max_digits=12, decimal_places=4)
    default_liters_going = models.PositiveIntegerField(default=0)
    default_liters_returning = models.PositiveIntegerField(default=0)
    # Checkpoint column on the fuel record fed by this station, per direction
    fuel_record_field_going = models.CharField(max_length=32, choices=GOING_FIELDS, blank=True, null=True)
    fuel_record_field_returning = models.CharField(max_length=32, choices=RETURNING_FIELDS, blank=True, null=True)
    # e.g. "totalLiters + extraLiters - 900"
    formula_going = models.CharField(max_length=255, blank=True, null=True)
    formula_returning = models.CharField(max_length=255, blank=True, null=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['station_name']
        indexes = [
            models.Index(fields=['is_active'], name='station_active_idx'),
        ]

    def clean(self):
        errors = {}
        for field_name in ('formula_going', 'formula_returning'):
            problems = validate_formula(getattr(self, field_name))
            if problems:
                errors[field_name] = problems
        if errors:
            raise ValidationError(errors)

    def formula_for(self, direction: str):
        formula = self.formula_going if direction == 'going' else self.formula_returning
        return (formula or '').strip() or None

    def default_liters_for(self, direction: str) -> int:
        return self.default_liters_going if direction == 'going' else self.default_liters_returning

    def __str__(self):
        return self.station_name
