"""Identity provider, sessions and role resolution.

Auth is intentionally lightweight:

- identities table (email/password hash) with a profile row created alongside
- JWT access tokens, carrying only the identity (roles are resolved per request)
- user_roles table; a missing row means the default 'user' role

The API accepts both:

- `Authorization: Bearer <token>` (used by the Python client / scripts)
- A secure httpOnly cookie (set by `/auth/signin` and `/auth/signup`)
"""

from .crud import bootstrap_admin_if_needed, sign_up, verify_credentials
from .deps import get_current_user, require_admin
from .roles import RoleResolver, lookup_role, resolve_role

__all__ = [
    "get_current_user",
    "require_admin",
    "bootstrap_admin_if_needed",
    "sign_up",
    "verify_credentials",
    "RoleResolver",
    "lookup_role",
    "resolve_role",
]
