from django.contrib import admin
from django.urls import include, path

from ops.urls import metrics_patterns
from ops.views import HealthcheckView

urlpatterns = [
    # Operations endpoints (no auth required)
    path("_health/", include("ops.urls")),
    path("_metrics/", include(metrics_patterns)),

    # Admin and API
    path("admin/", admin.site.urls),
    path("api/healthcheck/", HealthcheckView.as_view(), name="healthcheck"),
    path("api/", include("accounts.urls")),
    path("api/accounting/", include("accounting.urls")),
    path("api/inventory/", include("inventory.urls")),
    path("api/relations/", include("relations.urls")),
    path("api/reports/", include("reports.urls")),
]
