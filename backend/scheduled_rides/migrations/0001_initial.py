from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='ScheduledRide',
            fields=[
                ('id', models.CharField(max_length=64, primary_key=True, serialize=False)),
                ('pickup_location', models.TextField(blank=True, default='')),
                ('pickup_lat', models.DecimalField(decimal_places=6, max_digits=9)),
                ('pickup_lng', models.DecimalField(decimal_places=6, max_digits=9)),
                ('drop_location', models.TextField(blank=True, default='')),
                ('drop_lat', models.DecimalField(decimal_places=6, max_digits=9)),
                ('drop_lng', models.DecimalField(decimal_places=6, max_digits=9)),
                ('scheduled_time', models.DateTimeField()),
                ('vehicle_type', models.CharField(choices=[('bike', 'Bike'), ('auto', 'Auto Rickshaw'), ('car', 'Car')], max_length=10)),
                ('preferences', models.JSONField(blank=True, default=dict)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('booked', 'Booked'), ('cancelled', 'Cancelled'), ('expired', 'Expired')], default='pending', max_length=20)),
                ('booking_id', models.CharField(blank=True, max_length=64, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='scheduled_rides', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'scheduled_rides',
                'ordering': ['scheduled_time'],
                'indexes': [
                    models.Index(fields=['user', 'status'], name='scheduled_user_status_idx'),
                    models.Index(fields=['scheduled_time'], name='scheduled_time_idx'),
                ],
            },
        ),
    ]
