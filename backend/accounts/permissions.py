from rest_framework import permissions

from .policy import ACCOUNTING_VIEW, USER_MANAGE, AuthContext


def auth_context(request) -> AuthContext:
    return AuthContext.from_user(getattr(request, 'user', None))


class HasCapability(permissions.BasePermission):
    """
    Allow the request only if the user's role holds the capability the view
    declares for the current action.

    Views declare either ``required_capability`` (one for every action) or
    ``action_capabilities`` (a mapping of DRF action name to capability).
    Actions with no declared capability only need an active account.
    """
    message = "You do not have permission to perform this action."

    def has_permission(self, request, view):
        ctx = auth_context(request)
        if not ctx.is_active:
            return False
        capability = self._capability_for(request, view)
        if capability is None:
            return True
        if ctx.can(capability):
            return True
        self.message = f"Role '{ctx.role}' cannot perform '{capability}'."
        return False

    @staticmethod
    def _capability_for(request, view):
        mapping = getattr(view, 'action_capabilities', None)
        if mapping:
            action = getattr(view, 'action', None) or request.method.lower()
            if action in mapping:
                return mapping[action]
        return getattr(view, 'required_capability', None)


class IsFinanceOrAdmin(permissions.BasePermission):
    """
    Custom permission to only allow finance officers and admins into the accounting module.
    """
    message = "Access Restricted: only Finance Officers and Administrators can access the accounting system."

    def has_permission(self, request, view):
        return auth_context(request).can(ACCOUNTING_VIEW)


class IsUserManager(permissions.BasePermission):
    """
    Custom permission to only allow admins to manage user accounts.
    """
    def has_permission(self, request, view):
        return auth_context(request).can(USER_MANAGE)
