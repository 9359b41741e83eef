"""Celery tasks and the background recompute worker."""
