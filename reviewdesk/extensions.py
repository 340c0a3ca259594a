from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager
from redis import Redis
from rq import Queue
from flask import current_app

# keyword arguments that belong to Queue.enqueue, not to the job function
RQ_KEYS = {'job_timeout', 'timeout', 'at_front', 'depends_on', 'result_ttl', 'ttl', 'meta', 'description'}


class RQWrapper:
    def __init__(self):
        self.redis = None
        self.queue = None

    def init_app(self, app):
        if not app.config.get("RQ_ENABLED", True):
            self.redis = None
            self.queue = None
            return
        try:
            self.redis = Redis.from_url(app.config.get("REDIS_URL"))
            self.queue = Queue(app.config.get("RQ_QUEUE", "default"), connection=self.redis)
        except Exception:
            # no redis configured: jobs run inline
            app.logger.exception('Redis/RQ init failed, falling back to sync execution')
            self.redis = None
            self.queue = None

    def _run_inline(self, args, kwargs):
        func = args[0] if args else None
        func_args = args[1:] if len(args) > 1 else ()
        safe_kwargs = {k: v for k, v in kwargs.items() if k not in RQ_KEYS}
        if not func:
            return None
        try:
            return func(*func_args, **safe_kwargs)
        except Exception:
            current_app.logger.exception('Synchronous job execution failed: %s', getattr(func, '__name__', func))
            return None

    def enqueue(self, *args, **kwargs):
        """Enqueue to RQ when available, otherwise call the job inline."""
        if not self.queue:
            return self._run_inline(args, kwargs)
        try:
            return self.queue.enqueue(*args, **kwargs)
        except Exception:
            current_app.logger.exception('RQ enqueue failed, falling back to sync execution')
            return self._run_inline(args, kwargs)


db = SQLAlchemy()
login_manager = LoginManager()
rq = RQWrapper()
