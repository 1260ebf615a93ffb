"""Django project package for the order pipeline."""

from config.celery import app as celery_app

__all__ = ("celery_app",)
