"""
Role-Based Permission Classes

Customers may read the catalog and manage their own bookings; catalog
writes, approvals and reporting are limited to staff and administrators.
"""

from rest_framework import permissions
from rest_framework.request import Request
from rest_framework.views import APIView

from .authentication import PRIVILEGED_ROLES


def caller_roles(request: Request) -> set:
    """Upper-cased roles of the authenticated caller, empty for anonymous."""
    user = getattr(request, 'user', None)
    if not getattr(user, 'is_authenticated', False):
        return set()
    roles = getattr(user, 'roles', None)
    if roles is None and isinstance(request.auth, dict):
        roles = request.auth.get('roles', [])
    return {r.upper() for r in roles or []}


class IsPrivileged(permissions.BasePermission):
    """Staff and administrators"""

    message = 'This action is restricted to staff.'

    def has_permission(self, request: Request, view: APIView) -> bool:
        return bool(caller_roles(request) & set(PRIVILEGED_ROLES))


class IsPrivilegedOrReadOnly(permissions.BasePermission):
    """
    Read access for any authenticated caller,
    write access for staff and administrators.
    """

    message = 'Only staff can change the catalog.'

    def has_permission(self, request: Request, view: APIView) -> bool:
        if not getattr(request.user, 'is_authenticated', False):
            return False
        if request.method in permissions.SAFE_METHODS:
            return True
        return bool(caller_roles(request) & set(PRIVILEGED_ROLES))
