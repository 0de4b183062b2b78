from rest_framework import permissions


class IsCoupleMember(permissions.BasePermission):
    """
    Permission: User must belong to the bet's couple.
    """

    def has_permission(self, request, view):
        return getattr(request.user, 'couple_id', None) is not None

    def has_object_permission(self, request, view, obj):
        # obj is a Bet instance
        return obj.couple_id == request.user.couple_id
