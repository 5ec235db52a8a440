"""
Celery application configuration.

This module sets up Celery for out-of-process offer ingestion with Redis
as the message broker and result backend. It is only used when
INGESTION_BACKEND is 'celery'.
"""

from celery import Celery
from kombu import Exchange, Queue

from api.config import settings

# Create Celery application
celery_app = Celery(
    'offers_loader',
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=['tasks.ingestion_tasks']
)

# Celery configuration
celery_app.conf.update(
    # Serialization
    task_serializer='json',
    result_serializer='json',
    accept_content=['json'],

    # Timezone
    timezone='UTC',
    enable_utc=True,

    # Task execution
    task_track_started=True,
    worker_prefetch_multiplier=1,  # One task at a time per worker

    # Results
    result_expires=3600,  # Results expire after 1 hour

    # Task routing
    task_default_queue='default',
    task_default_exchange='default',
    task_default_routing_key='default',

    # Worker configuration
    worker_max_tasks_per_child=100,  # Restart worker after 100 tasks (prevent memory leaks)

    # Acknowledge after the run: a message of a lost worker is redelivered,
    # so Celery-backed tasks never need the startup sweep
    task_acks_late=True,
    task_reject_on_worker_lost=True,

    # Monitoring
    worker_send_task_events=True,
    task_send_sent_event=True,
)

# Define task queues
celery_app.conf.task_queues = (
    Queue('default', Exchange('default'), routing_key='default'),
    Queue('ingestion', Exchange('ingestion'), routing_key='ingestion.#'),
)

# Task routes
celery_app.conf.task_routes = {
    'tasks.ingestion_tasks.ingest_offers_file': {'queue': 'ingestion', 'routing_key': 'ingestion.offers'},
}


if __name__ == '__main__':
    celery_app.start()
