# Generated initial migration for core app
from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone
from django.db.models import Q


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Squad',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=30)),
                ('invite_code', models.CharField(max_length=6, unique=True)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('timezone', models.CharField(default='UTC', max_length=50)),
            ],
        ),
        migrations.CreateModel(
            name='Membership',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('role', models.CharField(choices=[('member', 'Member'), ('admin', 'Admin')], default='member', max_length=16)),
                ('joined_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('squad', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='memberships', to='core.squad')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='memberships', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'unique_together': {('user', 'squad')},
            },
        ),
        migrations.AddField(
            model_name='squad',
            name='members',
            field=models.ManyToManyField(related_name='squads', through='core.Membership', to=settings.AUTH_USER_MODEL),
        ),
        migrations.CreateModel(
            name='MemberStats',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('points_weekly', models.IntegerField(default=0)),
                ('points_lifetime', models.IntegerField(default=0)),
                ('streak_count', models.IntegerField(default=0)),
                ('strikes_14d', models.IntegerField(default=0)),
                ('last_participation_date', models.DateField(blank=True, null=True)),
                ('week_start', models.DateField(blank=True, null=True)),
                ('strikes_decayed_for', models.DateField(blank=True, null=True)),
                ('updated_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('squad', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='member_stats', to='core.squad')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='squad_stats', to=settings.AUTH_USER_MODEL)),
            ],
        ),
        migrations.AddIndex(
            model_name='memberstats',
            index=models.Index(fields=['squad', '-points_weekly'], name='core_stats_weekly_idx'),
        ),
        migrations.AddConstraint(
            model_name='memberstats',
            constraint=models.UniqueConstraint(fields=('user', 'squad'), name='uniq_stats_per_member_squad'),
        ),
        migrations.AddConstraint(
            model_name='memberstats',
            constraint=models.CheckConstraint(condition=Q(('points_weekly__gte', 0), ('points_lifetime__gte', 0)), name='stats_points_non_negative'),
        ),
    ]
