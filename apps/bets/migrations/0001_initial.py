# Generated manually for bets app

import uuid
from decimal import Decimal
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('couples', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Bet',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('title', models.CharField(max_length=100)),
                ('amount', models.DecimalField(decimal_places=2, max_digits=10, validators=[MinValueValidator(Decimal('0.01')), MaxValueValidator(Decimal('1000000.00'))])),
                ('option_a', models.CharField(max_length=200)),
                ('option_b', models.CharField(max_length=200)),
                ('creator_choice', models.CharField(choices=[('a', 'Option A'), ('b', 'Option B')], max_length=1)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('active', 'Active'), ('concluded', 'Concluded')], default='pending', max_length=20)),
                ('winner_option', models.CharField(blank=True, choices=[('a', 'Option A'), ('b', 'Option B')], max_length=1, null=True)),
                ('concluded_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('concluded_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='concluded_bets', to='couples.user')),
                ('couple', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='bets', to='couples.couple')),
                ('creator', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='created_bets', to='couples.user')),
            ],
            options={
                'db_table': 'bets',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['couple', 'status'], name='bets_couple_status_idx'),
                    models.Index(fields=['couple', 'concluded_at'], name='bets_couple_concluded_idx'),
                ],
            },
        ),
    ]
