"""
Owner/public role resolution.

There is a single static owner key. Callers that present it get the owner
role; everyone else is public. With auth disabled every caller is owner.
"""

import logging
from typing import Optional

from inkwell.core.errors import ForbiddenError
from inkwell.core.types import AuthContext, Role

logger = logging.getLogger("Inkwell.auth")


def resolve_auth(
    auth_enabled: bool,
    configured_secret: Optional[str] = None,
    presented_secret: Optional[str] = None,
) -> AuthContext:
    """Derive the caller's role from the auth settings and a presented key."""
    if not auth_enabled:
        return AuthContext(role=Role.OWNER)

    if not configured_secret or not presented_secret:
        return AuthContext(role=Role.PUBLIC)

    if presented_secret == configured_secret:
        return AuthContext(role=Role.OWNER)

    logger.debug("Presented key did not match the owner key; using public role")
    return AuthContext(role=Role.PUBLIC)


def require_owner(ctx: Optional[AuthContext]) -> AuthContext:
    if ctx is None or not ctx.is_owner:
        raise ForbiddenError("Owner access required")
    return ctx
