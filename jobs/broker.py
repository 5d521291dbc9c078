"""
Dramatiq broker configuration.

Redis-backed queue for ledger jobs. Only the payout sweep is enqueued here;
it is safe to retry because already credited periods are skipped.
"""

import dramatiq
from dramatiq.brokers.redis import RedisBroker
from dramatiq.middleware import CurrentMessage, Retries, ShutdownNotifications
from loguru import logger

from happyinvest.config.settings import settings

TASK_NAMESPACE = "happyinvest-tasks"

broker = RedisBroker(url=settings.redis_url, namespace=TASK_NAMESPACE)

# Workers stop between records on shutdown; failed sweeps back off up to 5 min
broker.add_middleware(ShutdownNotifications())
broker.add_middleware(CurrentMessage())
broker.add_middleware(
    Retries(max_retries=3, min_backoff=5_000, max_backoff=300_000)
)

dramatiq.set_broker(broker)

logger.info(
    f"Dramatiq broker ready on {settings.redis_host}:{settings.redis_port}"
    f"/{settings.redis_db} (namespace {TASK_NAMESPACE})"
)
