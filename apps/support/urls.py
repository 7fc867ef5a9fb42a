from django.urls import path
from . import views

urlpatterns = [
    # Customer desk
    path("tickets",                               views.TicketListCreateView.as_view(),  name="ticket-list"),
    path("tickets/<str:ticket_id>",               views.TicketDetailView.as_view(),      name="ticket-detail"),
    path("tickets/<str:ticket_id>/reply",         views.TicketReplyView.as_view(),       name="ticket-reply"),
    path("tickets/<str:ticket_id>/close",         views.TicketCloseView.as_view(),       name="ticket-close"),
    path("tickets/<str:ticket_id>/rating",        views.TicketRatingView.as_view(),      name="ticket-rating"),

    # Staff console
    path("admin/tickets",                         views.AdminTicketListView.as_view(),   name="ticket-admin-list"),
    path("admin/tickets/<str:ticket_id>",         views.AdminTicketDetailView.as_view(), name="ticket-admin-detail"),
    path("admin/tickets/<str:ticket_id>/assign",  views.AdminAssignView.as_view(),       name="ticket-admin-assign"),
    path("admin/tickets/<str:ticket_id>/status",  views.AdminStatusView.as_view(),       name="ticket-admin-status"),
    path("admin/tickets/<str:ticket_id>/reply",   views.AdminReplyView.as_view(),        name="ticket-admin-reply"),
    path("admin/tickets/<str:ticket_id>/notes",   views.AdminNoteView.as_view(),         name="ticket-admin-notes"),
    path("admin/analytics",                       views.AnalyticsView.as_view(),         name="ticket-admin-analytics"),
]
