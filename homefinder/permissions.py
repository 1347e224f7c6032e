from rest_framework import permissions
from rest_framework.exceptions import PermissionDenied


def is_admin(user) -> bool:
    return bool(user and user.is_authenticated and getattr(user, "is_admin", False))


def require_ownership(resource, user):
    """
    Raise PermissionDenied unless ``user`` owns ``resource`` or is an admin.
    Pure check: nothing is read from or written to the database.
    """
    if is_admin(user):
        return
    if getattr(resource, "owner_id", None) != getattr(user, "id", None):
        raise PermissionDenied("You do not own this resource.")


class IsOwnerOrAdmin(permissions.BasePermission):
    """
    Allows only its owner (or an admin) to modify the object.
    Safe methods are left to the view's other permissions.
    """
    message = "Only the owner can modify this object."

    def has_object_permission(self, request, view, obj):
        if request.method in permissions.SAFE_METHODS:
            return True
        if is_admin(request.user):
            return True
        return getattr(obj, "owner_id", None) == getattr(request.user, "id", None)


class IsBookingParticipant(permissions.BasePermission):
    """Tenant or owner of the booking, or an admin."""
    message = "You are not a participant of this booking."

    def has_object_permission(self, request, view, obj):
        if is_admin(request.user):
            return True
        user_id = getattr(request.user, "id", None)
        return user_id in (obj.tenant_id, obj.owner_id)
