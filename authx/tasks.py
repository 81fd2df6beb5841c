# authx/tasks.py

from celery import shared_task

from .verification import purge_expired


@shared_task
def purge_expired_verifications():
    """Out-of-band sweep; reads already ignore expired codes."""
    return purge_expired()
