"""Read-only HTTP view of the cart.

Renders the cart store's current snapshot for a human watching the agent
work. Handlers are ``async def`` so they run on the same event loop as the
MCP server and never interleave with a cart mutation.

Routes:
- GET / and GET /cart: HTML cart page, auto-refreshing
- GET /api/cart.json: JSON snapshot
- GET /health: liveness probe
"""

from pathlib import Path

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse
from fastapi.templating import Jinja2Templates
from starlette.exceptions import HTTPException as StarletteHTTPException

from pizzeria import __version__
from pizzeria.cart import CartStore

logger = structlog.get_logger()

BASE_DIR = Path(__file__).resolve().parent
TEMPLATES_DIR = BASE_DIR / "templates"

REFRESH_SECONDS = 10

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


def create_web_app(store: CartStore) -> FastAPI:
    """Create the HTTP cart app over a cart store.

    Args:
        store: The cart store shared with the MCP tools.

    Returns:
        Configured FastAPI application.
    """
    app = FastAPI(
        title="Pizzeria cart",
        version=__version__,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        redirect_slashes=False,
    )

    @app.exception_handler(StarletteHTTPException)
    async def not_found_handler(
        request: Request, exc: StarletteHTTPException
    ) -> PlainTextResponse:
        """Answer every unknown path or method with a plain 404."""
        logger.debug(
            "HTTP route not found",
            method=request.method,
            path=request.url.path,
            status_code=exc.status_code,
        )
        return PlainTextResponse("Not found", status_code=404)

    @app.get("/", response_class=HTMLResponse)
    @app.get("/cart", response_class=HTMLResponse)
    async def cart_page(request: Request) -> HTMLResponse:
        snapshot = store.snapshot()
        return templates.TemplateResponse(
            request,
            "cart.html",
            {
                "cart": snapshot,
                "refresh_seconds": REFRESH_SECONDS,
            },
        )

    @app.get("/api/cart.json")
    async def cart_json() -> JSONResponse:
        return JSONResponse({"cart": store.snapshot().to_wire()})

    @app.get("/health", response_class=PlainTextResponse)
    async def health_check() -> PlainTextResponse:
        return PlainTextResponse("ok")

    return app
