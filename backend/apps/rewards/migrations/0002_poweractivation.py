from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone


class Migration(migrations.Migration):

    dependencies = [
        ('core', '0001_initial'),
        ('events', '0001_initial'),
        ('judging', '0001_initial'),
        ('rewards', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='PowerActivation',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('power_type', models.CharField(choices=[('double_chance', 'Double chance'), ('target_lock', 'Target lock'), ('chaos_card', 'Chaos card'), ('streak_shield', 'Streak shield')], max_length=20)),
                ('affected_users', models.JSONField(blank=True, default=list)),
                ('activated_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('expires_at', models.DateTimeField(blank=True, null=True)),
                ('was_challenged', models.BooleanField(default=False)),
                ('challenge_result', models.CharField(blank=True, default='', max_length=16)),
                ('metadata', models.JSONField(blank=True, default=dict)),
                ('activated_by', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='power_activations', to=settings.AUTH_USER_MODEL)),
                ('challenge', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='power_activations', to='judging.challenge')),
                ('event', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='power_activations', to='events.dailyevent')),
                ('power', models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='activation', to='rewards.power')),
                ('squad', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='power_activations', to='core.squad')),
            ],
            options={
                'indexes': [models.Index(fields=['squad', 'activated_at'], name='rewards_activation_squad_idx'), models.Index(fields=['activated_by', 'activated_at'], name='rewards_activation_user_idx')],
            },
        ),
    ]
