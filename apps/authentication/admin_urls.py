from django.urls import path
from .views import PendingPilotListView, ApprovePilotView, RejectPilotView

urlpatterns = [
    path("pending",                   PendingPilotListView.as_view(), name="pilot-admin-pending"),
    path("<str:pilot_id>/approve",    ApprovePilotView.as_view(),     name="pilot-admin-approve"),
    path("<str:pilot_id>/reject",     RejectPilotView.as_view(),      name="pilot-admin-reject"),
]
