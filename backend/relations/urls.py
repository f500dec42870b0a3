from django.urls import path

from .views import RelationDetailView, RelationListCreateView

app_name = "relations"

urlpatterns = [
    path("", RelationListCreateView.as_view(), name="relation-list-create"),
    path("<int:pk>/", RelationDetailView.as_view(), name="relation-detail"),
]
