from __future__ import annotations
import logging

from celery import shared_task

from .services import get_session_manager

logger = logging.getLogger(__name__)


@shared_task(bind=True, autoretry_for=(Exception,), retry_backoff=True, retry_kwargs={"max_retries": 3})
def purge_expired_sessions(self) -> int:
    deleted = get_session_manager().purge_expired()
    logger.info("Purged %s expired session(s)", deleted)
    return deleted
