# config/celery.py
import os

from celery import Celery

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings')

app = Celery('pastel_stand')

# All CELERY_* keys in Django settings
app.config_from_object('django.conf:settings', namespace='CELERY')

# Picks up tasks.py in every installed app
app.autodiscover_tasks()
