from django.urls import path

from .views import (
    InventoryGroupDetailView,
    InventoryGroupListCreateView,
    InventoryItemDetailView,
    InventoryItemListCreateView,
    InventoryItemsByGroupView,
    InventoryStockView,
    LowStockView,
)

app_name = "inventory"

urlpatterns = [
    path("groups/", InventoryGroupListCreateView.as_view(), name="group-list-create"),
    path("groups/<int:pk>/", InventoryGroupDetailView.as_view(), name="group-detail"),
    path("groups/<int:pk>/items/", InventoryItemsByGroupView.as_view(), name="group-items"),
    path("items/", InventoryItemListCreateView.as_view(), name="item-list-create"),
    path("items/low-stock/", LowStockView.as_view(), name="item-low-stock"),
    path("items/<int:pk>/", InventoryItemDetailView.as_view(), name="item-detail"),
    path("items/<int:pk>/stock/", InventoryStockView.as_view(), name="item-stock"),
]
