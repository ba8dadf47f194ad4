"""
Celery configuration for the product catalog.

DJANGO_SETTINGS_MODULE is set before the app is instantiated so Celery
reads the Django settings (CELERY_ prefix).  The only scheduled work is
blob reconciliation; product writes never go through the queue.
"""

import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("catalog")

# Read configuration from Django settings with the CELERY_ prefix
app.config_from_object("django.conf:settings", namespace="CELERY")

# Discover tasks.py in every installed app
app.autodiscover_tasks()
