# Generated initial migration for judging app
from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('core', '0001_initial'),
        ('events', '0001_initial'),
        ('rewards', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Challenge',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('challenge_type', models.CharField(choices=[('judge_decision', 'Judge decision'), ('power_use', 'Power use')], max_length=20)),
                ('reason', models.CharField(blank=True, default='', max_length=280)),
                ('votes_for', models.PositiveIntegerField(default=0)),
                ('votes_against', models.PositiveIntegerField(default=0)),
                ('eligible_voters', models.PositiveIntegerField()),
                ('threshold_percent', models.PositiveSmallIntegerField(default=50)),
                ('started_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('expires_at', models.DateTimeField()),
                ('resolved_at', models.DateTimeField(blank=True, null=True)),
                ('status', models.CharField(choices=[('active', 'Active'), ('passed', 'Passed'), ('failed', 'Failed'), ('expired', 'Expired')], default='active', max_length=16)),
                ('result_applied', models.BooleanField(default=False)),
                ('challenger', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='challenges_opened', to=settings.AUTH_USER_MODEL)),
                ('event', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='challenges', to='events.dailyevent')),
                ('power', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='challenges', to='rewards.power')),
                ('squad', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='challenges', to='core.squad')),
                ('target', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='challenges_against', to=settings.AUTH_USER_MODEL)),
            ],
        ),
        migrations.CreateModel(
            name='ChallengeVote',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('vote', models.CharField(choices=[('for', 'For'), ('against', 'Against')], max_length=8)),
                ('voted_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('challenge', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='votes', to='judging.challenge')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='challenge_votes', to=settings.AUTH_USER_MODEL)),
            ],
        ),
        migrations.AddIndex(
            model_name='challenge',
            index=models.Index(fields=['status', 'expires_at'], name='judging_status_expiry_idx'),
        ),
        migrations.AddConstraint(
            model_name='challenge',
            constraint=models.UniqueConstraint(condition=models.Q(('event__isnull', False), ('status', 'active')), fields=('event',), name='uniq_active_challenge_per_event'),
        ),
        migrations.AddConstraint(
            model_name='challenge',
            constraint=models.UniqueConstraint(condition=models.Q(('power__isnull', False), ('status', 'active')), fields=('power',), name='uniq_active_challenge_per_power'),
        ),
        migrations.AddConstraint(
            model_name='challenge',
            constraint=models.CheckConstraint(condition=models.Q(('threshold_percent__gte', 1), ('threshold_percent__lte', 100)), name='challenge_threshold_range'),
        ),
        migrations.AddConstraint(
            model_name='challenge',
            constraint=models.CheckConstraint(condition=models.Q(models.Q(('challenge_type', 'judge_decision'), ('event__isnull', False)), models.Q(('challenge_type', 'power_use'), ('power__isnull', False)), _connector='OR'), name='challenge_has_subject'),
        ),
        migrations.AddConstraint(
            model_name='challengevote',
            constraint=models.UniqueConstraint(fields=('challenge', 'user'), name='uniq_vote_per_challenge_member'),
        ),
    ]
