# concern2care/workers/queue.py

from datetime import timedelta

from redis import Redis
from rq import Queue

from concern2care.core.config import settings

AUTO_SEND_QUEUE_NAME = "auto_send"

_redis_conn: Redis | None = None


def get_redis_connection() -> Redis:
    global _redis_conn
    if _redis_conn is None:
        redis_url = settings.REDIS_URL
        _redis_conn = Redis.from_url(redis_url)
    return _redis_conn


def get_queue(name: str = AUTO_SEND_QUEUE_NAME) -> Queue:
    return Queue(name, connection=get_redis_connection())


def enqueue_auto_send_sweep(delay_seconds: int | None = None) -> str:
    """Queue a sweep now, or after ``delay_seconds`` via the RQ scheduler."""
    from concern2care.workers.tasks import auto_send_sweep_task

    q = get_queue(AUTO_SEND_QUEUE_NAME)
    if delay_seconds:
        job = q.enqueue_in(timedelta(seconds=delay_seconds), auto_send_sweep_task)
    else:
        job = q.enqueue(auto_send_sweep_task)
    return job.id
