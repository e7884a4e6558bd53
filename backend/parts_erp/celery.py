from __future__ import annotations
import os
from celery import Celery

# ensure Django settings are set for Celery workers
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "parts_erp.settings")

celery_app = Celery("parts_erp")

# read config from Django settings, using CELERY_ prefix
# (CELERY_BROKER_URL, CELERY_TASK_ALWAYS_EAGER, ...)
celery_app.config_from_object("django.conf:settings", namespace="CELERY")

# pick up ledger_core/tasks.py
celery_app.autodiscover_tasks()
