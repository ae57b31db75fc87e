from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='DeliveryOrder',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('do_number', models.CharField(max_length=64, unique=True)),
                ('date', models.DateField()),
                ('truck_no', models.CharField(max_length=32)),
                ('truck_no_normalized', models.CharField(db_index=True, editable=False, max_length=32)),
                ('import_or_export', models.CharField(choices=[('IMPORT', 'Import'), ('EXPORT', 'Export')], default='IMPORT', max_length=10)),
                ('loading_point', models.CharField(blank=True, default='', max_length=120)),
                ('destination', models.CharField(max_length=120)),
                ('is_cancelled', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'ordering': ['-date', '-id'],
            },
        ),
        migrations.CreateModel(
            name='FuelRecord',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('date', models.DateField()),
                ('month', models.CharField(blank=True, default='', max_length=20)),
                ('truck_no', models.CharField(max_length=32)),
                ('truck_no_normalized', models.CharField(db_index=True, editable=False, max_length=32)),
                ('going_do', models.CharField(db_index=True, max_length=64)),
                ('return_do', models.CharField(blank=True, db_index=True, max_length=64, null=True)),
                ('start', models.CharField(max_length=120)),
                ('from_location', models.CharField(max_length=120)),
                ('to', models.CharField(max_length=120)),
                ('original_going_from', models.CharField(blank=True, max_length=120, null=True)),
                ('original_going_to', models.CharField(blank=True, max_length=120, null=True)),
                ('total_lts', models.IntegerField(blank=True, null=True)),
                ('extra', models.IntegerField(blank=True, default=0, null=True)),
                ('balance', models.IntegerField(default=0)),
                ('mmsa_yard', models.IntegerField(default=0)),
                ('tanga_yard', models.IntegerField(default=0)),
                ('dar_yard', models.IntegerField(default=0)),
                ('dar_going', models.IntegerField(default=0)),
                ('moro_going', models.IntegerField(default=0)),
                ('mbeya_going', models.IntegerField(default=0)),
                ('tdm_going', models.IntegerField(default=0)),
                ('zambia_going', models.IntegerField(default=0)),
                ('congo_fuel', models.IntegerField(default=0)),
                ('zambia_return', models.IntegerField(default=0)),
                ('tunduma_return', models.IntegerField(default=0)),
                ('mbeya_return', models.IntegerField(blank=True, default=0, null=True)),
                ('moro_return', models.IntegerField(default=0)),
                ('dar_return', models.IntegerField(default=0)),
                ('tanga_return', models.IntegerField(blank=True, default=0, null=True)),
                ('journey_status', models.CharField(blank=True, choices=[('active', 'Active'), ('queued', 'Queued'), ('completed', 'Completed')], max_length=12, null=True)),
                ('queue_order', models.PositiveIntegerField(blank=True, null=True)),
                ('activated_at', models.DateTimeField(blank=True, null=True)),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
                ('is_locked', models.BooleanField(default=False)),
                ('pending_config_reason', models.CharField(blank=True, choices=[('missing_total_liters', 'Missing total liters'), ('missing_extra_fuel', 'Missing extra fuel'), ('both', 'Missing total liters and extra fuel')], max_length=24, null=True)),
                ('is_cancelled', models.BooleanField(default=False)),
                ('cancelled_at', models.DateTimeField(blank=True, null=True)),
                ('cancellation_reason', models.CharField(blank=True, max_length=255, null=True)),
                ('is_deleted', models.BooleanField(default=False)),
                ('deleted_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'ordering': ['-date', '-id'],
                'indexes': [
                    models.Index(fields=['truck_no_normalized', '-date'], name='fuelrec_truck_date_idx'),
                    models.Index(fields=['journey_status'], name='fuelrec_status_idx'),
                ],
            },
        ),
    ]
