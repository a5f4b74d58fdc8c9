from __future__ import annotations

import logging

from celery import shared_task

from . import services

logger = logging.getLogger(__name__)


@shared_task
def expire_challenges():
    """Resolve challenges whose voting deadline has passed."""
    resolved = services.expire_challenges()
    if resolved:
        logger.info("resolved %s expired challenges", resolved)
    return resolved
