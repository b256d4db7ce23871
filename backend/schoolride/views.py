from datetime import timedelta

import redis
from django.conf import settings
from django.utils import timezone
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework import status
from channels.layers import get_channel_layer

import payments.tasks  # noqa: F401
from payments.models import PaymentTransaction
from schoolride.celery import app as celery_app


def check_database():
    """Open payment plans, plus the ones the daily suspension job should have caught."""
    today = timezone.localdate()
    open_plans = PaymentTransaction.objects.filter(status__in=('pending', 'partial'))
    # The job runs once a day, so allow one day of slack
    missed = open_plans.filter(balance_due_date__lt=today - timedelta(days=1)).exclude(booking__status='cancelled')
    return {"open_payment_plans": open_plans.count(), "overdue_not_suspended": missed.count()}


def check_scheduler():
    """Every beat entry must point at a task the worker knows."""
    schedule = getattr(settings, "CELERY_BEAT_SCHEDULE", {})
    registered = celery_app.tasks
    return {name: entry["task"] in registered for name, entry in schedule.items()}


@api_view(["GET"])
@permission_classes([AllowAny])
def health_check(request):
    """
    Report on the pieces the school ride backend depends on.

    ``unhealthy`` (503) when the database, Redis or the channel layer is
    down or a scheduled job is not registered. ``degraded`` (200) when
    overdue payment plans are waiting for suspension, which means the
    beat scheduler is not running the daily jobs.
    """
    report = {
        "status": "healthy",
        "timestamp": timezone.now().isoformat(),
        "services": {},
    }

    def fail(service, reason):
        report["services"][service] = f"unhealthy: {reason}"
        report["status"] = "unhealthy"

    try:
        payments = check_database()
        report["services"]["database"] = "healthy"
        report["payments"] = payments
        if payments["overdue_not_suspended"]:
            report["status"] = "degraded"
    except Exception as e:
        fail("database", e)

    try:
        redis.Redis.from_url(settings.REDIS_URL, socket_timeout=3).ping()
        report["services"]["redis"] = "healthy"
    except Exception as e:
        fail("redis", e)

    if get_channel_layer() is not None:
        report["services"]["channels"] = "healthy"
    else:
        fail("channels", "no channel layer")

    jobs = check_scheduler()
    report["scheduled_jobs"] = jobs
    missing = sorted(name for name, known in jobs.items() if not known)
    if missing:
        fail("celery", "unregistered jobs " + ", ".join(missing))
    else:
        report["services"]["celery"] = "healthy"

    status_code = (
        status.HTTP_503_SERVICE_UNAVAILABLE
        if report["status"] == "unhealthy"
        else status.HTTP_200_OK
    )
    return Response(report, status=status_code)
