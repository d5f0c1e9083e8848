"""Pizzeria MCP Server.

Exposes the pizza catalog and the cart as MCP tools for AI agent
interaction, and serves a read-only HTML view of the same cart over HTTP.

MCP Tools:
1. list_pizzas - Browse the catalog with optional filters
2. add_to_cart - Add a pizza to the cart
3. remove_from_cart - Remove a pizza from the cart
4. get_cart - Show cart contents and subtotal

stdout carries MCP frames only. All logging goes to stderr.
"""

import asyncio
import codecs
import contextlib
import json
import logging
import os
import signal
import sys
import threading
from typing import Any, Iterator, Sequence

import structlog
import uvicorn
from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import CallToolResult, TextContent, Tool
from pydantic import BaseModel, ValidationError

from pizzeria import __version__
from pizzeria.cart import CartStore
from pizzeria.catalog import load_pizzas
from pizzeria.config import Settings, resolve_settings
from pizzeria.exceptions import CatalogError
from pizzeria.schemas import (
    AddToCartInput,
    GetCartInput,
    ListPizzasInput,
    RemoveFromCartInput,
)
from pizzeria.tools import PizzeriaTools
from pizzeria.web import create_web_app

logger = structlog.get_logger()


# ============================================================================
# Logging
# ============================================================================


def configure_logging(log_level: str = "INFO") -> None:
    """Send structured JSON logs to stderr."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        format="%(message)s",
        stream=sys.stderr,
        force=True,
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.JSONRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


# ============================================================================
# Tool Definitions
# ============================================================================


TOOL_DEFINITIONS: list[tuple[str, str, str, type[BaseModel]]] = [
    (
        "list_pizzas",
        "List pizzas",
        "Return the available pizzas with ingredients, allergens and price. "
        "Optional filters: maximum price, allergens to avoid, ingredients "
        "that must all be present.",
        ListPizzasInput,
    ),
    (
        "add_to_cart",
        "Add a pizza to the cart",
        "Add a pizza to the cart by name, with a quantity (default 1). "
        "Returns the updated cart.",
        AddToCartInput,
    ),
    (
        "remove_from_cart",
        "Remove a pizza from the cart",
        "Remove a quantity of a pizza from the cart (default 1). "
        "When the quantity reaches 0 the line is deleted. Returns the updated cart.",
        RemoveFromCartInput,
    ),
    (
        "get_cart",
        "Cart contents and total",
        "Return the cart contents and the subtotal.",
        GetCartInput,
    ),
]


def list_tool_definitions() -> list[Tool]:
    """Build the MCP tool list."""
    return [
        Tool(
            name=name,
            title=title,
            description=description,
            inputSchema=model.model_json_schema(),
        )
        for name, title, description, model in TOOL_DEFINITIONS
    ]


async def dispatch_tool(
    tools: PizzeriaTools,
    name: str,
    arguments: dict[str, Any] | None,
) -> CallToolResult:
    """Validate the arguments, run one tool and wrap its result.

    Failures never propagate to the transport: they come back as a result
    flagged ``isError`` so the agent can correct its input and retry.
    """
    arguments = arguments or {}
    logger.info("Tool called", tool=name, arguments=arguments)

    try:
        if name == "list_pizzas":
            input_data = ListPizzasInput.model_validate(arguments)
            result = await tools.list_pizzas(
                max_price=input_data.max_price,
                exclude_allergens=input_data.exclude_allergens,
                include_ingredients=input_data.include_ingredients,
            )
        elif name == "add_to_cart":
            input_data = AddToCartInput.model_validate(arguments)
            result = await tools.add_to_cart(
                name=input_data.name,
                quantity=input_data.quantity,
            )
        elif name == "remove_from_cart":
            input_data = RemoveFromCartInput.model_validate(arguments)
            result = await tools.remove_from_cart(
                name=input_data.name,
                quantity=input_data.quantity,
            )
        elif name == "get_cart":
            GetCartInput.model_validate(arguments)
            result = await tools.get_cart()
        else:
            result = {
                "success": False,
                "error": f"Unknown tool: {name}",
            }

    except ValidationError as e:
        logger.warning("Tool input rejected", tool=name, error_count=e.error_count())
        result = {
            "success": False,
            "error": f"Invalid arguments for {name}",
            "details": [
                {
                    "field": ".".join(str(part) for part in err["loc"]),
                    "message": err["msg"],
                }
                for err in e.errors()
            ],
        }

    except Exception as e:
        logger.exception("Tool execution failed", tool=name)
        result = {
            "success": False,
            "error": f"Tool execution failed: {str(e)}",
        }

    success = bool(result.get("success"))
    logger.info("Tool completed", tool=name, success=success)

    return CallToolResult(
        content=[
            TextContent(
                type="text",
                text=json.dumps(result, indent=2, ensure_ascii=False, default=str),
            )
        ],
        isError=not success,
    )


# ============================================================================
# MCP Server Implementation
# ============================================================================


def create_mcp_server(tools: PizzeriaTools) -> Server:
    """Create and configure the MCP server with all tools."""
    server = Server("pizzeria-mcp", version=__version__)

    @server.list_tools()
    async def list_tools() -> list[Tool]:
        """List all available MCP tools."""
        return list_tool_definitions()

    @server.call_tool()
    async def call_tool(name: str, arguments: dict) -> CallToolResult:
        """Handle tool invocation."""
        return await dispatch_tool(tools, name, arguments)

    return server


class StdinLines:
    """Async line iterator over the process stdin.

    Lines are read from the raw file descriptor by a daemon thread, so a
    read that is still pending when the server shuts down never holds up
    the event loop or interpreter exit.
    """

    def __init__(self, fd: int | None = None):
        self._fd = sys.stdin.fileno() if fd is None else fd
        self._queue: asyncio.Queue[str] = asyncio.Queue()
        self._thread: threading.Thread | None = None

    def __aiter__(self) -> "StdinLines":
        if self._thread is None:
            self._thread = threading.Thread(
                target=self._pump,
                args=(asyncio.get_running_loop(),),
                name="mcp-stdin",
                daemon=True,
            )
            self._thread.start()
        return self

    async def __anext__(self) -> str:
        line = await self._queue.get()
        if not line:
            raise StopAsyncIteration
        return line

    def _pump(self, loop: asyncio.AbstractEventLoop) -> None:
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        buffer = ""
        try:
            while chunk := os.read(self._fd, 65536):
                buffer += decoder.decode(chunk)
                *lines, buffer = buffer.split("\n")
                for line in lines:
                    loop.call_soon_threadsafe(self._queue.put_nowait, line + "\n")
            buffer += decoder.decode(b"", final=True)
            if buffer:
                loop.call_soon_threadsafe(self._queue.put_nowait, buffer)
            loop.call_soon_threadsafe(self._queue.put_nowait, "")
        except (OSError, RuntimeError):
            # stdin is gone or the loop has already closed
            return


async def serve_mcp(server: Server, stdin: StdinLines | None = None) -> None:
    """Run the MCP server on stdio until the client disconnects."""
    if stdin is None:
        stdin = StdinLines()
    async with stdio_server(stdin=stdin) as (read_stream, write_stream):
        await server.run(
            read_stream,
            write_stream,
            server.create_initialization_options(),
        )


# ============================================================================
# Bootstrap
# ============================================================================


class WebServer(uvicorn.Server):
    """uvicorn server that leaves signal handling to ``run_server``."""

    @contextlib.contextmanager
    def capture_signals(self) -> Iterator[None]:
        yield

    def install_signal_handlers(self) -> None:
        pass


def install_signal_handlers(stop: asyncio.Event) -> None:
    """Set ``stop`` on SIGINT or SIGTERM."""
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except NotImplementedError:
            # Windows event loops; Ctrl+C still raises KeyboardInterrupt
            pass


async def run_server(settings: Settings) -> int:
    """Load the catalog, then run the MCP server and the HTTP cart page.

    Returns:
        Process exit status: 0 on clean shutdown, 1 if the catalog failed
        to load.
    """
    logger.info("Loading pizza catalog", path=settings.pizzas_file)
    try:
        pizzas = await asyncio.to_thread(load_pizzas, settings.pizzas_file)
    except CatalogError as e:
        logger.error("Catalog loading failed", error=e.message, **e.details)
        return 1

    store = CartStore(pizzas)
    tools = PizzeriaTools(store)
    mcp_server = create_mcp_server(tools)
    web_server = WebServer(
        uvicorn.Config(
            create_web_app(store),
            host=settings.host,
            port=settings.port,
            log_config=None,
            access_log=False,
            lifespan="off",
        )
    )

    stop = asyncio.Event()
    install_signal_handlers(stop)

    logger.info(
        "Starting Pizzeria MCP Server",
        pizza_count=len(pizzas),
        cart_url=f"http://{settings.host}:{settings.port}/cart",
    )

    mcp_task = asyncio.create_task(serve_mcp(mcp_server), name="mcp")
    web_task = asyncio.create_task(web_server.serve(), name="http")
    stop_task = asyncio.create_task(stop.wait(), name="signal")
    await asyncio.wait(
        {mcp_task, web_task, stop_task},
        return_when=asyncio.FIRST_COMPLETED,
    )
    if stop.is_set():
        logger.info("Shutdown requested")

    # Whichever surface stops first takes the other one down with it.
    web_server.should_exit = True
    for task in (mcp_task, stop_task):
        if not task.done():
            task.cancel()
    results = await asyncio.gather(
        mcp_task, web_task, stop_task, return_exceptions=True
    )
    for task, outcome in zip((mcp_task, web_task), results):
        if isinstance(outcome, Exception):
            logger.error(
                "Surface stopped with an error",
                surface=task.get_name(),
                error=str(outcome),
            )

    logger.info("Pizzeria MCP Server stopped")
    return 0


def main(argv: Sequence[str] | None = None) -> None:
    """Run the pizzeria.

    Entry point for the MCP server. Uses stdio transport for
    communication with AI agents.
    """
    settings = resolve_settings(argv)
    configure_logging(settings.log_level)
    try:
        exit_code = asyncio.run(run_server(settings))
    except KeyboardInterrupt:
        exit_code = 0
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
