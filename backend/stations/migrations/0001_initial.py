from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='StationConfig',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('station_name', models.CharField(max_length=120, unique=True)),
                ('default_rate', models.DecimalField(decimal_places=4, max_digits=12)),
                ('default_liters_going', models.PositiveIntegerField(default=0)),
                ('default_liters_returning', models.PositiveIntegerField(default=0)),
                ('fuel_record_field_going', models.CharField(blank=True, choices=[('dar_going', 'Dar Going'), ('moro_going', 'Moro Going'), ('mbeya_going', 'Mbeya Going'), ('tdm_going', 'Tunduma Going'), ('zambia_going', 'Zambia Going'), ('congo_fuel', 'Congo Fuel')], max_length=32, null=True)),
                ('fuel_record_field_returning', models.CharField(blank=True, choices=[('zambia_return', 'Zambia Return'), ('tunduma_return', 'Tunduma Return'), ('mbeya_return', 'Mbeya Return'), ('moro_return', 'Moro Return'), ('dar_return', 'Dar Return'), ('tanga_return', 'Tanga Return'), ('congo_fuel', 'Congo Fuel')], max_length=32, null=True)),
                ('formula_going', models.CharField(blank=True, max_length=255, null=True)),
                ('formula_returning', models.CharField(blank=True, max_length=255, null=True)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'ordering': ['station_name'],
                'indexes': [models.Index(fields=['is_active'], name='station_active_idx')],
            },
        ),
    ]
