"""
Celery configuration for the stockroom project.
"""

import os

from celery import Celery
from celery.schedules import crontab

# Set the default Django settings module
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'stockroom.settings')

app = Celery('stockroom')

# Using a string here means the worker doesn't have to serialize
# the configuration object to child processes.
app.config_from_object('django.conf:settings', namespace='CELERY')

# Load task modules from all registered Django apps.
app.autodiscover_tasks()

# Periodic maintenance of the stock ledger
app.conf.beat_schedule = {
    'purge-expired-stock-transactions': {
        'task': 'inventory.tasks.purge_expired_stock_transactions',
        'schedule': crontab(hour=3, minute=30),
    },
}
