from __future__ import annotations

from prometheus_client import Counter

# Submission counters
event_submissions_total = Counter(
    "squad_event_submissions_total",
    "Total accepted event submissions",
    labelnames=("event_type",),
)

# Lifecycle counters
event_transitions_total = Counter(
    "squad_event_transitions_total",
    "Daily event status transitions",
    labelnames=("status",),
)

# Privilege counters
power_uses_total = Counter(
    "squad_power_uses_total",
    "Power use attempts by outcome",
    labelnames=("result",),
)
rewards_granted_total = Counter(
    "squad_rewards_granted_total",
    "Crowns and underdog powers granted",
    labelnames=("kind",),
)

# Challenge counters
challenge_votes_total = Counter(
    "squad_challenge_votes_total",
    "Votes cast on challenges",
    labelnames=("vote",),
)
challenges_resolved_total = Counter(
    "squad_challenges_resolved_total",
    "Challenges leaving the active state",
    labelnames=("status",),
)
