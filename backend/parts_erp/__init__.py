# Celery instance is defined in parts_erp/celery.py
# Importing it here makes sure the app is loaded whenever Django starts,
# so @shared_task decorators in ledger_core bind to it
from .celery import celery_app

__all__ = ("celery_app",)

""" Workers are started with:
        celery -A parts_erp worker -l info
    -A parts_erp imports parts_erp/__init__.py, which exposes celery_app. """
