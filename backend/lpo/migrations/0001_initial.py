from decimal import Decimal

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('journeys', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='LPODocument',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('lpo_no', models.CharField(max_length=20, unique=True)),
                ('date', models.DateField()),
                ('station', models.CharField(max_length=120)),
                ('order_of', models.CharField(blank=True, default='', max_length=120)),
                ('currency', models.CharField(default='TZS', max_length=3)),
                ('total', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=18)),
                ('is_deleted', models.BooleanField(default=False)),
                ('deleted_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-date', '-id'],
                'indexes': [models.Index(fields=['station', 'is_deleted'], name='lpo_station_idx')],
            },
        ),
        migrations.CreateModel(
            name='LPOEntry',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('do_no', models.CharField(max_length=64)),
                ('truck_no', models.CharField(max_length=32)),
                ('truck_no_normalized', models.CharField(db_index=True, editable=False, max_length=32)),
                ('liters', models.IntegerField()),
                ('rate', models.DecimalField(decimal_places=4, max_digits=12)),
                ('amount', models.DecimalField(decimal_places=2, editable=False, max_digits=18)),
                ('dest', models.CharField(blank=True, default='', max_length=120)),
                ('direction', models.CharField(choices=[('going', 'Going'), ('returning', 'Returning')], default='going', max_length=10)),
                ('posted_field', models.CharField(blank=True, default='', max_length=32)),
                ('is_cancelled', models.BooleanField(default=False)),
                ('cancellation_point', models.CharField(blank=True, choices=[('DAR_GOING', 'Dar Going'), ('MORO_GOING', 'Moro Going'), ('MBEYA_GOING', 'Mbeya Going'), ('INFINITY_GOING', 'Infinity (Mbeya)'), ('TDM_GOING', 'TDM/Tunduma Going'), ('ZAMBIA_GOING', 'Zambia Going (Lake Chilabombwe)'), ('CONGO_GOING', 'Congo Going'), ('ZAMBIA_NDOLA', 'Zambia Returning (Ndola - 50L)'), ('ZAMBIA_KAPIRI', 'Zambia Returning (Kapiri - 350L)'), ('TDM_RETURN', 'TDM/Tunduma Return'), ('MBEYA_RETURN', 'Mbeya Return'), ('MORO_RETURN', 'Moro Return'), ('DAR_RETURN', 'Dar Return'), ('TANGA_RETURN', 'Tanga Return'), ('CONGO_RETURNING', 'Congo Returning'), ('CUSTOM_GOING', 'Custom Going'), ('CUSTOM_RETURN', 'Custom Return')], max_length=20, null=True)),
                ('cancellation_reason', models.CharField(blank=True, max_length=255, null=True)),
                ('cancelled_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('document', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='entries', to='lpo.lpodocument')),
                ('fuel_record', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='lpo_entries', to='journeys.fuelrecord')),
            ],
            options={
                'ordering': ['id'],
                'indexes': [models.Index(fields=['truck_no_normalized', 'is_cancelled'], name='lpoentry_truck_idx')],
            },
        ),
    ]
