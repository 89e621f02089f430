# concern2care/workers/worker_main.py
import logging

from rq import Queue, SimpleWorker

from concern2care.core.config import settings
from concern2care.workers.queue import (
    AUTO_SEND_QUEUE_NAME,
    enqueue_auto_send_sweep,
    get_redis_connection,
)


QUEUE_NAMES = [AUTO_SEND_QUEUE_NAME]


def main():
    logging.basicConfig(level=settings.LOG_LEVEL)
    redis_conn = get_redis_connection()

    queues = [Queue(name, connection=redis_conn) for name in QUEUE_NAMES]

    # Seed the self-rescheduling sweep; the claim keeps duplicate chains harmless
    enqueue_auto_send_sweep()

    worker = SimpleWorker(queues, connection=redis_conn)

    # Scheduler is needed for enqueue_in
    worker.work(with_scheduler=True)


if __name__ == "__main__":
    main()
