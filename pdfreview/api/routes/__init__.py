"""API routes package — import all routers here for inclusion in the app."""

from pdfreview.api.routes.projects import router as projects_router  # noqa: F401
from pdfreview.api.routes.comments import router as comments_router  # noqa: F401
from pdfreview.api.routes.uploads import router as uploads_router  # noqa: F401
from pdfreview.api.routes.health import router as health_router  # noqa: F401
