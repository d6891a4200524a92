import logging
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
import redis as _redis
from rq import Queue

logger = logging.getLogger(__name__)

db = SQLAlchemy()
migrate = Migrate()

# Initialized lazily in create_app
redis_client: _redis.Redis = None  # type: ignore
notification_queue: Queue = None  # type: ignore


class InlineQueue:
    """Runs jobs in-process for development and tests without Redis.

    Mirrors the subset of ``rq.Queue.enqueue`` the app uses. Failures are
    logged and the failure callback is invoked, as a worker would.
    """

    def enqueue(self, f, *args, **kwargs):
        kwargs.pop("retry", None)
        on_failure = kwargs.pop("on_failure", None)
        try:
            f(*args, **kwargs)
        except Exception as e:
            logger.exception("Inline job %s failed", getattr(f, "__name__", f))
            if on_failure is not None:
                on_failure(None, None, type(e), e, e.__traceback__)
        return None


def init_redis(app):
    global redis_client, notification_queue
    redis_url = app.config.get("REDIS_URL", "")
    queue_name = app.config.get("NOTIFICATION_QUEUE", "notifications")
    if not redis_url:
        logger.warning("REDIS_URL not set, running notification jobs inline")
        redis_client = None
        notification_queue = InlineQueue()
        return

    try:
        redis_client = _redis.from_url(redis_url, decode_responses=False)
        redis_client.ping()
        notification_queue = Queue(queue_name, connection=redis_client)
    except Exception as e:
        logger.warning("Redis connection failed (%s), running jobs inline", e)
        redis_client = None
        notification_queue = InlineQueue()
