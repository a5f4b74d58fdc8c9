from __future__ import annotations

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand

from apps.core import stats
from apps.core.models import Membership, Squad
from apps.events.models import PollQuestion

User = get_user_model()

POLLS = [
    ("Morning person or night owl?", ["Definitely morning", "More morning", "More night", "Definitely night owl"]),
    ("What is the best season?", ["Spring", "Summer", "Fall", "Winter"]),
    ("Text or call?", ["Always text", "Always call", "Depends on the situation", "Voice messages"]),
    ("Is a hot dog a sandwich?", ["Yes", "No", "It is its own thing", "This is a dumb question"]),
    ("Best way to settle an argument?", ["Rock paper scissors", "Coin flip", "Debate it out", "Ask a neutral party"]),
    ("How many tabs do you usually have open?", ["Less than 5", "5-15", "15-30", "Too many to count"]),
]

DEMO_MEMBERS = ["ava", "ben", "cleo", "dev"]


class Command(BaseCommand):
    help = "Seed demo data: the poll bank and a sample squad with four members."

    def handle(self, *args, **options):
        for question, options_ in POLLS:
            PollQuestion.objects.get_or_create(question=question, defaults={"options": options_})

        squad = Squad.objects.filter(name="Demo Squad").first()
        created = squad is None
        if created:
            squad = Squad.objects.create(name="Demo Squad")
        for index, username in enumerate(DEMO_MEMBERS):
            user, user_created = User.objects.get_or_create(username=username)
            if user_created:
                user.set_unusable_password()
                user.save(update_fields=["password"])
            role = Membership.ROLE_ADMIN if index == 0 else Membership.ROLE_MEMBER
            Membership.objects.get_or_create(user=user, squad=squad, defaults={"role": role})
            stats.ensure_member(user.id, squad.id)

        if created:
            self.stdout.write(self.style.SUCCESS(f"Created 'Demo Squad' (invite code {squad.invite_code})"))
        else:
            self.stdout.write(self.style.WARNING("'Demo Squad' already exists"))

        self.stdout.write(self.style.SUCCESS("Seed complete."))
