import django_filters
from django.db.models import Q

from .models import Ticket


class TicketFilter(django_filters.FilterSet):
    """Staff ticket listing: ?status=&priority=&category=&handledBy=&search=&created_from=&created_to="""
    status    = django_filters.ChoiceFilter(choices=Ticket.Status.choices)
    priority  = django_filters.ChoiceFilter(choices=Ticket.Priority.choices)
    category  = django_filters.ChoiceFilter(choices=Ticket.Category.choices)
    handledBy = django_filters.UUIDFilter(field_name="handled_by")
    search    = django_filters.CharFilter(method="filter_search")
    created_from = django_filters.IsoDateTimeFilter(field_name="created_at", lookup_expr="gte")
    created_to   = django_filters.IsoDateTimeFilter(field_name="created_at", lookup_expr="lte")

    class Meta:
        model  = Ticket
        fields = ["status", "priority", "category"]

    def filter_search(self, queryset, name, value):
        value = value.strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(ticket_id__icontains=value)
            | Q(subject__icontains=value)
            | Q(description__icontains=value)
            | Q(user__full_name__icontains=value)
            | Q(user__phone__icontains=value)
        )
