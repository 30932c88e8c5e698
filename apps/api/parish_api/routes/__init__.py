"""Route modules."""

from .auth import router as auth_router
from .docs import router as docs_router
from .health import router as health_router
from .homilies import router as homilies_router
from .users import router as users_router

__all__ = ["auth_router", "docs_router", "health_router", "homilies_router", "users_router"]
