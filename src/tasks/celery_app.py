from celery import Celery

from src.app.config import settings

# Create Celery instance and include explicit task modules
celery_app = Celery(
    'dijipot_matching',
    include=[
        'src.tasks.workers.match_worker',
    ]
)

celery_app.conf.update(
    broker_url=settings.CELERY_BROKER_URL,
    result_backend=settings.CELERY_RESULT_BACKEND,
    task_serializer='json',
    accept_content=['json'],
    result_serializer='json',
    timezone='UTC',
    enable_utc=True,
    task_track_started=True,
    task_time_limit=30 * 60,  # 30 minutes hard limit
    # Match runs are long and rate limited: one at a time per worker process
    worker_prefetch_multiplier=1,
)
