from inkwell.core.auth import require_owner, resolve_auth
from inkwell.core.config import InkwellConfig, load_config
from inkwell.core.types import AuthContext, Filter, OrderBy, QueryOptions, Role

__all__ = [
    "AuthContext",
    "Filter",
    "InkwellConfig",
    "OrderBy",
    "QueryOptions",
    "Role",
    "load_config",
    "require_owner",
    "resolve_auth",
]
