"""Authentication context passed explicitly to route guards and views."""

from dataclasses import dataclass
from typing import Optional

from .models import UserRole


@dataclass(frozen=True)
class AuthContext:
    """Who is asking, and whether they may see the admin surface.

    ``is_loading`` mirrors the client-side notion of an unresolved session; a
    server-built context is always resolved, so it is ``False`` unless a
    caller builds one by hand.
    """

    user: Optional[object]
    is_admin: bool = False
    is_loading: bool = False

    @property
    def is_authenticated(self) -> bool:
        return bool(self.user is not None and getattr(self.user, 'is_authenticated', False))

    @property
    def user_id(self):
        return getattr(self.user, 'pk', None) if self.is_authenticated else None


def build_auth_context(user) -> AuthContext:
    """Resolve the role flag for ``user`` with a single query."""
    if user is None or not getattr(user, 'is_authenticated', False):
        return AuthContext(user=None)
    is_admin = UserRole.objects.filter(user_id=user.pk, role=UserRole.ADMIN).exists()
    return AuthContext(user=user, is_admin=is_admin)


def get_auth_context(request) -> AuthContext:
    """Return the request's auth context, computing it once per request."""
    user = getattr(request, 'user', None)
    ctx = getattr(request, '_auth_context', None)
    if ctx is None or ctx.user_id != getattr(user, 'pk', None):
        ctx = build_auth_context(user)
        request._auth_context = ctx
    return ctx


def auth_context_processor(request):
    """Template context processor exposing ``auth`` to HTML shells."""
    return {'auth': get_auth_context(request)}
