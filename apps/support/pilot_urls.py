from django.urls import path
from .views import PilotContactView, PilotFAQView

urlpatterns = [
    path("support/contact", PilotContactView.as_view(), name="pilot-support-contact"),
    path("support/faqs",    PilotFAQView.as_view(),     name="pilot-support-faqs"),
]
