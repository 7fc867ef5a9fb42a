"""Role gates for pilot and support-staff endpoints."""

from rest_framework.permissions import BasePermission

from .models import Account, Pilot


def pilot_for(user):
    """The approved Pilot behind an authenticated account, read fresh from the database, or None."""
    if not (user and user.is_authenticated) or user.role != Account.Role.PILOT:
        return None
    return (
        Pilot.objects.select_related("account", "current_order")
        .filter(account_id=user.pk, is_approved=True)
        .first()
    )


class IsPilot(BasePermission):
    message = "Pilot access only."

    def has_permission(self, request, view):
        return pilot_for(request.user) is not None


class IsStaffMember(BasePermission):
    message = "Support staff only."

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.is_support_staff)
