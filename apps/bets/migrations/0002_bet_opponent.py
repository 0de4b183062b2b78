# Generated manually for bets app

from django.db import migrations, models
import django.db.models.deletion


def backfill_opponent(apps, schema_editor):
    Bet = apps.get_model('bets', 'Bet')
    User = apps.get_model('couples', 'User')
    for bet in Bet.objects.filter(opponent__isnull=True).select_related('creator'):
        partner_id = bet.creator.partner_id
        if partner_id is None:
            others = list(
                User.objects
                .filter(couple_id=bet.couple_id)
                .exclude(id=bet.creator_id)
                .values_list('id', flat=True)
            )
            partner_id = others[0] if len(others) == 1 else None
        if partner_id is not None:
            Bet.objects.filter(id=bet.id).update(opponent_id=partner_id)


class Migration(migrations.Migration):

    dependencies = [
        ('couples', '0001_initial'),
        ('bets', '0001_initial'),
    ]

    operations = [
        migrations.AddField(
            model_name='bet',
            name='opponent',
            field=models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='opposed_bets', to='couples.user'),
        ),
        migrations.RunPython(backfill_opponent, migrations.RunPython.noop),
    ]
