from __future__ import annotations

import logging

from celery import shared_task

from apps.core import stats
from . import lifecycle

logger = logging.getLogger(__name__)


@shared_task
def generate_daily_events():
    """Create today's event for every squad that has none yet."""
    created = lifecycle.generate_daily_events()
    logger.info("generated %s daily events", created)
    return created


@shared_task
def open_due_events():
    return lifecycle.open_due_events()


@shared_task
def close_due_events():
    """Close events whose window has passed and finalize every closed event."""
    return lifecycle.close_due_events()


@shared_task
def reset_weekly_points():
    return stats.reset_weekly()


@shared_task
def decay_strikes():
    return stats.decay_strikes()
