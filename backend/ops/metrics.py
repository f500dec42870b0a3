"""
Prometheus metrics endpoint.

Exposes application metrics in Prometheus format for scraping.

Metrics exposed:
- bukubesar_transactions_total: Transaction headers by type and posted state
- bukubesar_unposted_amount: Sum of debit totals still awaiting posting
- bukubesar_request_duration_seconds: HTTP request duration histogram
- bukubesar_active_requests: Requests currently being processed
"""
import logging
import re
import time

from django.db import DatabaseError
from django.db.models import Count, Sum
from django.http import HttpResponse
from django.views import View
from prometheus_client import CONTENT_TYPE_LATEST, Gauge, Histogram, generate_latest

logger = logging.getLogger(__name__)

TRANSACTIONS_TOTAL = Gauge(
    "bukubesar_transactions_total",
    "Number of transaction headers",
    ["transaction_type", "posted"],
)

UNPOSTED_AMOUNT = Gauge(
    "bukubesar_unposted_amount",
    "Total debit of transactions not yet posted",
)

REQUEST_DURATION = Histogram(
    "bukubesar_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint", "status"],
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

ACTIVE_REQUESTS = Gauge(
    "bukubesar_active_requests",
    "Number of requests currently being processed",
)

_ID_SEGMENT = re.compile(r"/\d+/")


def collect_metrics():
    """Refresh gauge values from the ledger tables."""
    from accounting.models import TransactionHeader

    try:
        counts = list(
            TransactionHeader.objects
            .values("transaction_type", "is_posted")
            .annotate(count=Count("id"))
        )
        # Drop label sets whose transactions have since been posted or deleted
        TRANSACTIONS_TOTAL.clear()
        for row in counts:
            TRANSACTIONS_TOTAL.labels(
                transaction_type=row["transaction_type"],
                posted="true" if row["is_posted"] else "false",
            ).set(row["count"])

        unposted = TransactionHeader.objects.filter(is_posted=False).aggregate(
            total=Sum("total_debit"),
        )["total"]
        UNPOSTED_AMOUNT.set(float(unposted or 0))
    except DatabaseError as e:
        logger.error("Error collecting metrics: %s", e)


class MetricsView(View):
    """
    Prometheus metrics endpoint.

    Exposes metrics in Prometheus format at /_metrics.
    Should be protected in production (internal network only).
    """

    def get(self, request):
        collect_metrics()
        return HttpResponse(generate_latest(), content_type=CONTENT_TYPE_LATEST)


def track_request_metrics(get_response):
    """
    Middleware to track request duration metrics.

    Add to MIDDLEWARE after SecurityMiddleware:
        "ops.metrics.track_request_metrics",
    """

    def middleware(request):
        start = time.time()
        ACTIVE_REQUESTS.inc()
        status = 500

        try:
            response = get_response(request)
            status = response.status_code
            return response
        finally:
            ACTIVE_REQUESTS.dec()
            duration = time.time() - start

            # Normalize endpoint for cardinality control
            endpoint = _ID_SEGMENT.sub("/{id}/", request.path)

            REQUEST_DURATION.labels(
                method=request.method,
                endpoint=endpoint[:50],
                status=f"{status // 100}xx",
            ).observe(duration)

    return middleware
