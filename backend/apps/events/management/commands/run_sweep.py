from __future__ import annotations

from django.core.management.base import BaseCommand

from apps.core import stats
from apps.events import lifecycle
from apps.judging.services import expire_challenges

SWEEPS = ["generate", "open", "close", "challenges", "weekly-reset", "decay-strikes"]


class Command(BaseCommand):
    help = "Run scheduler sweeps in-process (default: generate, open, close and challenges)."

    def add_arguments(self, parser):
        parser.add_argument("sweeps", nargs="*", choices=SWEEPS, help="Sweeps to run, in order")

    def handle(self, *args, **options):
        sweeps = options["sweeps"] or ["generate", "open", "close", "challenges"]
        runners = {
            "generate": lifecycle.generate_daily_events,
            "open": lifecycle.open_due_events,
            "close": lifecycle.close_due_events,
            "challenges": expire_challenges,
            "weekly-reset": stats.reset_weekly,
            "decay-strikes": stats.decay_strikes,
        }
        for name in sweeps:
            count = runners[name]()
            self.stdout.write(self.style.SUCCESS(f"{name}: {count}"))
