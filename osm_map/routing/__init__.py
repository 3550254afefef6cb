"""Road routing client, HTTP session factory and route planner."""

from .client import RoutingClient  # noqa: F401
from .planner import FallbackListener, RoutePlanner  # noqa: F401
from .session import (  # noqa: F401
    create_default_session,
    get_default_session,
    reset_default_session,
)
