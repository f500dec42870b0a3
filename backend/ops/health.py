"""
Health check endpoints for operations monitoring.

Endpoints:
- /_health/live    - liveness probe (is the process running?)
- /_health/ready   - readiness probe (can we serve traffic?)
- /_health/full    - full health report (for debugging/dashboards)
"""
import logging
import time
from typing import Dict, Any

from django.conf import settings
from django.db import DatabaseError, connections
from django.http import JsonResponse
from django.views import View

logger = logging.getLogger(__name__)


class HealthCheck:
    """Health check implementation."""

    @staticmethod
    def check_database(alias: str = "default") -> Dict[str, Any]:
        """Check database connectivity."""
        start = time.time()
        try:
            conn = connections[alias]
            conn.ensure_connection()
            with conn.cursor() as cursor:
                cursor.execute("SELECT 1")
                cursor.fetchone()
            duration_ms = (time.time() - start) * 1000
            return {
                "status": "healthy",
                "alias": alias,
                "duration_ms": round(duration_ms, 2),
            }
        except DatabaseError as e:
            duration_ms = (time.time() - start) * 1000
            logger.error("Database health check failed for %s: %s", alias, e)
            return {
                "status": "unhealthy",
                "alias": alias,
                "error": str(e),
                "duration_ms": round(duration_ms, 2),
            }

    @staticmethod
    def check_all_databases() -> Dict[str, Any]:
        """Check all configured databases."""
        results = {}
        all_healthy = True

        for alias in settings.DATABASES.keys():
            result = HealthCheck.check_database(alias)
            results[alias] = result
            if result["status"] != "healthy":
                all_healthy = False

        return {
            "status": "healthy" if all_healthy else "degraded",
            "databases": results,
        }

    @staticmethod
    def check_ledger() -> Dict[str, Any]:
        """Count headers whose stored totals disagree with their detail lines."""
        from django.db.models import DecimalField, F, Q, Sum, Value
        from django.db.models.functions import Coalesce

        from accounting.models import TransactionHeader

        zero = Value(0, output_field=DecimalField(max_digits=15, decimal_places=2))
        drifted = (
            TransactionHeader.objects
            .annotate(
                detail_debit=Coalesce(Sum("details__debit"), zero),
                detail_credit=Coalesce(Sum("details__credit"), zero),
            )
            .filter(~Q(detail_debit=F("total_debit")) | ~Q(detail_credit=F("total_credit")))
            .count()
        )
        unbalanced_posted = (
            TransactionHeader.objects
            .filter(is_posted=True)
            .exclude(total_debit=F("total_credit"))
            .count()
        )

        status = "healthy" if drifted == 0 and unbalanced_posted == 0 else "degraded"
        return {
            "status": status,
            "headers_with_total_drift": drifted,
            "unbalanced_posted": unbalanced_posted,
        }

    @staticmethod
    def get_full_health() -> Dict[str, Any]:
        """Get comprehensive health report."""
        checks = {
            "databases": HealthCheck.check_all_databases(),
        }
        if checks["databases"]["status"] == "healthy":
            checks["ledger"] = HealthCheck.check_ledger()

        statuses = [c.get("status", "unknown") for c in checks.values()]
        if all(s == "healthy" for s in statuses):
            overall = "healthy"
        elif any(s == "unhealthy" for s in statuses):
            overall = "unhealthy"
        else:
            overall = "degraded"

        return {
            "status": overall,
            "checks": checks,
            "version": getattr(settings, "VERSION", "unknown"),
            "environment": "production" if not settings.DEBUG else "development",
        }


class LivenessView(View):
    """
    Liveness probe.

    Returns 200 if the process is running.
    This should be very fast and not check external dependencies.
    """

    def get(self, request):
        return JsonResponse({"status": "alive"})


class ReadinessView(View):
    """
    Readiness probe.

    Returns 200 if the service can handle traffic.
    Checks database connectivity.
    """

    def get(self, request):
        db_check = HealthCheck.check_database("default")

        if db_check["status"] == "healthy":
            return JsonResponse({
                "status": "ready",
                "database": db_check,
            })
        return JsonResponse({
            "status": "not_ready",
            "database": db_check,
        }, status=503)


class FullHealthView(View):
    """
    Full health check for debugging and dashboards.

    Should be protected in production (internal network only).
    """

    def get(self, request):
        health = HealthCheck.get_full_health()

        status_code = 200 if health["status"] == "healthy" else 503
        return JsonResponse(health, status=status_code)
