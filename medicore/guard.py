"""Authorization guard for protected routes.

``decide`` is a pure function: the same (loading, session, roles) input
always gives the same Decision, with no I/O.
"""
from enum import Enum
from typing import Dict, Iterable, Optional, Set

from medicore import config
from medicore.models import Role, Session


class Decision(str, Enum):
    """Outcome of a route check."""
    LOADING = "loading"  # session check still running; show a spinner
    ALLOW = "allow"
    REDIRECT_LOGIN = "redirect_login"
    REDIRECT_HOME = "redirect_home"


# Route → roles allowed to open it. None means public.
ROUTES: Dict[str, Optional[Set[Role]]] = {
    "/": None,
    "/login": None,
    "/register": None,
    "/features": None,
    "/pricing": None,
    "/doctor-dashboard": {Role.DOCTOR},
    "/prescription-templates": {Role.DOCTOR},
    "/counter-dashboard": {Role.COUNTER},
}


def decide(
    loading: bool,
    session: Optional[Session],
    required_roles: Optional[Iterable[Role]] = None
) -> Decision:
    """
    Decide whether a protected view may render.

    Args:
        loading: Whether the startup session check is still running
        session: Current session, or None
        required_roles: Roles allowed on the route (None: any logged-in user)

    Returns:
        LOADING while loading, REDIRECT_LOGIN without a session,
        REDIRECT_HOME for a role outside ``required_roles``, else ALLOW

    Example:
        >>> decide(False, None, {Role.DOCTOR})
        <Decision.REDIRECT_LOGIN: 'redirect_login'>
    """
    if loading:
        return Decision.LOADING
    if session is None:
        return Decision.REDIRECT_LOGIN
    if required_roles is not None:
        roles = {Role(r) for r in required_roles}
        if session.role not in roles:
            return Decision.REDIRECT_HOME
    return Decision.ALLOW


def guard_route(path: str, loading: bool, session: Optional[Session]) -> Decision:
    """
    Resolve a path from the route table to a Decision.

    Public routes are always allowed; unknown paths send the user home.
    """
    if path not in ROUTES:
        return Decision.REDIRECT_HOME
    roles = ROUTES[path]
    if roles is None:
        return Decision.ALLOW
    return decide(loading, session, roles)


def redirect_target(decision: Decision) -> Optional[str]:
    """Path to navigate to for a redirect decision, else None."""
    if decision == Decision.REDIRECT_LOGIN:
        return config.LOGIN_ROUTE
    if decision == Decision.REDIRECT_HOME:
        return config.HOME_ROUTE
    return None


def home_route_for(role: Optional[Role]) -> str:
    """Landing page after login for a role."""
    if role is None:
        return config.HOME_ROUTE
    return config.ROLE_HOME_ROUTES.get(Role(role).value, config.HOME_ROUTE)
