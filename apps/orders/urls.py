from django.urls import path
from .views import (
    ScanOrderView, AcceptOrderView, StartJourneyView, CompleteDeliveryView,
    NearbyOrdersView, PilotStatsView, DashboardStatsView, DeliveryHistoryView,
)

urlpatterns = [
    path("scan-order",               ScanOrderView.as_view(),        name="pilot-scan-order"),
    path("accept-order",             AcceptOrderView.as_view(),      name="pilot-accept-order"),
    path("start-journey",            StartJourneyView.as_view(),     name="pilot-start-journey"),
    path("complete-delivery",        CompleteDeliveryView.as_view(), name="pilot-complete-delivery"),
    path("available-nearby-orders",  NearbyOrdersView.as_view(),     name="pilot-nearby-orders"),
    path("stats",                    PilotStatsView.as_view(),       name="pilot-stats"),
    path("dashboard/stats",          DashboardStatsView.as_view(),   name="pilot-dashboard-stats"),
    path("delivery-history",         DeliveryHistoryView.as_view(),  name="pilot-delivery-history"),
]
