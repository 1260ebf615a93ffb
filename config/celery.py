"""Celery application for order housekeeping.

Pipeline stages do not run on Celery; they are kombu consumers started with
``python manage.py run_stage <stage>``. Celery only runs periodic maintenance
(idempotency key expiry) on its own queue, so housekeeping traffic never lands
on the ``order.events`` exchange.

    celery -A config worker -Q order.housekeeping -l info
    celery -A config beat -l info
"""

from __future__ import annotations

import os

from celery import Celery

from config.env import load_env

load_env()

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

HOUSEKEEPING_QUEUE = "order.housekeeping"

app = Celery("order-pipeline")
app.config_from_object("django.conf:settings", namespace="CELERY")
app.conf.task_default_queue = HOUSEKEEPING_QUEUE
app.autodiscover_tasks()
