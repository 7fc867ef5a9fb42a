"""
Celery application.
Broker and eager mode come from Django settings (CELERY_* namespace);
settings_dev runs every task inline so no Redis is needed locally.
"""

import os
from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "aggrekart.settings_dev")

app = Celery("aggrekart")
app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()
