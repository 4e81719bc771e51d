"""Access policy: role and visibility checks.

Pure functions so they can be used by serializers, dependencies and tests
alike. ``role`` is ``None`` for unauthenticated callers.
"""

from __future__ import annotations

import hmac
from collections.abc import Iterable

ADMIN_ROLE = "admin"
PUBLIC_VISIBILITY = "free"


def is_admin(role: str | None) -> bool:
    """True for the admin role."""
    return role == ADMIN_ROLE


def can_read_sensitive(role: str | None, visibility: Iterable[str] | None) -> bool:
    """
    Decide whether a caller may read a resource's sensitive fields (audios, subtitles).

    - admin: always
    - empty or missing visibility list: treated as public
    - ``"free"`` in the list: anyone, including anonymous callers
    - otherwise the caller's role must be listed
    """
    if is_admin(role):
        return True
    allowed = list(visibility or [])
    if not allowed:
        return True
    if PUBLIC_VISIBILITY in allowed:
        return True
    return role is not None and role in allowed


def can_read_resources(_role: str | None) -> bool:
    """Collection-level read of resources is open; filtering happens per field."""
    return True


def can_list_media(role: str | None) -> bool:
    """Raw media assets are listed only for admins; others go through a resource."""
    return is_admin(role)


def verify_server_token(supplied: str | None, expected: str | None) -> bool:
    """Constant-time comparison of a machine-to-machine token against the configured secret.

    An unset secret never matches, so the check cannot be satisfied by omitting both.
    """
    if not supplied or not expected:
        return False
    return hmac.compare_digest(supplied.encode(), expected.encode())


def can_stream_audio(role: str | None, price: int, owned: bool) -> bool:
    """Audio of a resource is streamable by admins, for free resources, or once purchased."""
    return is_admin(role) or price == 0 or owned
