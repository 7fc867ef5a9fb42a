from django.urls import path
from .views import CancelOrderView

urlpatterns = [
    path("<str:order_id>/cancel", CancelOrderView.as_view(), name="order-admin-cancel"),
]
