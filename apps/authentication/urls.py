from django.urls import path
from .views import (
    PilotRegisterView, PilotLoginView, OTPRequestView, OTPVerifyView,
    UpdateLocationView, AvailabilityView, PilotProfileView,
)

urlpatterns = [
    path("register",                  PilotRegisterView.as_view(),  name="pilot-register"),
    path("login",                     PilotLoginView.as_view(),     name="pilot-login"),
    path("login/request-otp",         OTPRequestView.as_view(),     name="pilot-login-request-otp"),
    path("login/verify-otp",          OTPVerifyView.as_view(),      name="pilot-login-verify-otp"),
    path("update-location",           UpdateLocationView.as_view(), name="pilot-update-location"),
    path("availability",              AvailabilityView.as_view(),   name="pilot-availability"),
    path("profile/<str:pilot_id>",    PilotProfileView.as_view(),   name="pilot-profile"),
]
