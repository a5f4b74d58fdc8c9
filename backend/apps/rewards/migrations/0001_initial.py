# Generated initial migration for rewards app
from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('core', '0001_initial'),
        ('events', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Power',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('power_type', models.CharField(choices=[('double_chance', 'Double chance'), ('target_lock', 'Target lock'), ('chaos_card', 'Chaos card'), ('streak_shield', 'Streak shield')], max_length=20)),
                ('granted_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('expires_at', models.DateTimeField()),
                ('used_at', models.DateTimeField(blank=True, null=True)),
                ('metadata', models.JSONField(blank=True, default=dict)),
                ('source_event', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='underdog_powers', to='events.dailyevent')),
                ('squad', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='powers', to='core.squad')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='powers', to=settings.AUTH_USER_MODEL)),
            ],
        ),
        migrations.CreateModel(
            name='ActiveTarget',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('expires_at', models.DateTimeField()),
                ('power', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='active_target', to='rewards.power')),
                ('squad', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='active_targets', to='core.squad')),
                ('target', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='targeted_by', to=settings.AUTH_USER_MODEL)),
                ('targeter', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='targets_set', to=settings.AUTH_USER_MODEL)),
            ],
        ),
        migrations.CreateModel(
            name='Crown',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('granted_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('expires_at', models.DateTimeField()),
                ('source_event', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='crowns', to='events.dailyevent')),
                ('squad', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='crowns', to='core.squad')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='crowns', to=settings.AUTH_USER_MODEL)),
            ],
        ),
        migrations.CreateModel(
            name='Headline',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('content', models.CharField(max_length=50)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('expires_at', models.DateTimeField()),
                ('crown', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='headline', to='rewards.crown')),
                ('squad', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='headlines', to='core.squad')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='headlines', to=settings.AUTH_USER_MODEL)),
            ],
        ),
        migrations.CreateModel(
            name='Rivalry',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('expires_at', models.DateTimeField()),
                ('crown', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='rivalry', to='rewards.crown')),
                ('declarer', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='rivalries_declared', to=settings.AUTH_USER_MODEL)),
                ('rival1', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='+', to=settings.AUTH_USER_MODEL)),
                ('rival2', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='+', to=settings.AUTH_USER_MODEL)),
                ('squad', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='rivalries', to='core.squad')),
            ],
        ),
        migrations.AddIndex(
            model_name='power',
            index=models.Index(fields=['user', 'squad', 'expires_at'], name='rewards_power_owner_idx'),
        ),
        migrations.AddConstraint(
            model_name='power',
            constraint=models.UniqueConstraint(condition=models.Q(('source_event__isnull', False)), fields=('source_event',), name='uniq_power_per_source_event'),
        ),
        migrations.AddConstraint(
            model_name='power',
            constraint=models.CheckConstraint(condition=models.Q(('used_at__isnull', True), ('used_at__lte', models.F('expires_at')), _connector='OR'), name='power_used_before_expiry'),
        ),
        migrations.AddIndex(
            model_name='activetarget',
            index=models.Index(fields=['squad', 'target', 'expires_at'], name='rewards_target_idx'),
        ),
        migrations.AddConstraint(
            model_name='activetarget',
            constraint=models.CheckConstraint(condition=models.Q(('targeter', models.F('target')), _negated=True), name='target_not_self'),
        ),
        migrations.AddIndex(
            model_name='crown',
            index=models.Index(fields=['squad', 'expires_at'], name='rewards_crown_squad_idx'),
        ),
        migrations.AddConstraint(
            model_name='crown',
            constraint=models.UniqueConstraint(fields=('squad', 'source_event'), name='uniq_crown_per_event'),
        ),
        migrations.AddConstraint(
            model_name='headline',
            constraint=models.CheckConstraint(condition=models.Q(('content', ''), _negated=True), name='headline_not_empty'),
        ),
        migrations.AddConstraint(
            model_name='rivalry',
            constraint=models.CheckConstraint(condition=models.Q(('rival1', models.F('rival2')), _negated=True), name='rivalry_distinct_rivals'),
        ),
        migrations.AddConstraint(
            model_name='rivalry',
            constraint=models.CheckConstraint(condition=models.Q(models.Q(('declarer', models.F('rival1')), _negated=True), models.Q(('declarer', models.F('rival2')), _negated=True)), name='rivalry_declarer_not_rival'),
        ),
    ]
