"""
Local development server.

Serves every registered function over HTTP with a small dashboard:

    GET  /                      HTML dashboard with a "Test" button per function
    GET  /functions             Function list
    POST /test/{function_name}  Run one function (request body is its data)
    POST /                      Cloud Functions compatible endpoint
    GET  /health                Liveness check

Run with:
    python -m workspace_functions.dev.server
"""

import html
import json
import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse, Response
from pydantic import BaseModel

from workspace_functions import __version__
from workspace_functions.config import get_settings
from workspace_functions.dispatcher import NOT_FOUND, Dispatcher, generate_request_id
from workspace_functions.logging_config import setup_logging
from workspace_functions.registry import FunctionRegistry
from workspace_functions.triggers import handle_http_request

logger = logging.getLogger(__name__)

DEFAULT_HOST = "0.0.0.0"


class FunctionSummary(BaseModel):
    """One entry of the function list."""

    name: str
    description: str = ""
    schedule: str | None = None


class FunctionListResponse(BaseModel):
    """Response model for GET /functions."""

    functions: list[FunctionSummary]
    count: int


class HealthResponse(BaseModel):
    """Response model for GET /health.

    Attributes:
        status: Always "healthy" while the server answers
        functions: Number of registered functions
    """

    status: str
    functions: int


_DASHBOARD_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
  <title>Workspace Functions - Dev Server</title>
  <style>
    body {{ font-family: Arial, sans-serif; margin: 40px; }}
    .function {{ border: 1px solid #ddd; margin: 10px 0; padding: 15px; border-radius: 5px; }}
    .function h3 {{ margin-top: 0; color: #333; }}
    .schedule {{ color: #666; font-size: 0.9em; }}
    .test-btn {{ background: #4285f4; color: white; border: none; padding: 8px 16px;
                 border-radius: 3px; cursor: pointer; }}
    .result {{ margin-top: 10px; padding: 10px; background: #f5f5f5; border-radius: 3px;
               white-space: pre-wrap; font-family: monospace; font-size: 0.9em; }}
  </style>
</head>
<body>
  <h1>Workspace Functions - Dev Server</h1>
  <p>Available functions: {count}</p>
  {functions}
  <script>
    async function testFunction(name) {{
      const resultDiv = document.getElementById('result-' + name);
      resultDiv.textContent = 'Running...';
      try {{
        const response = await fetch('/test/' + name, {{
          method: 'POST',
          headers: {{'Content-Type': 'application/json'}},
          body: JSON.stringify({{}})
        }});
        const result = await response.json();
        resultDiv.textContent = JSON.stringify(result, null, 2);
      }} catch (error) {{
        resultDiv.textContent = 'Error: ' + error.message;
      }}
    }}
  </script>
</body>
</html>
"""

_FUNCTION_TEMPLATE = """
  <div class="function">
    <h3>{name}</h3>
    <p>{description}</p>
    {schedule}
    <button class="test-btn" onclick="testFunction('{name}')">Test</button>
    <div class="result" id="result-{name}"></div>
  </div>"""


def render_dashboard(functions: list[dict[str, Any]]) -> str:
    """Render the dashboard HTML for the given function summaries."""
    cards = []
    for function in functions:
        schedule = function.get("schedule")
        cards.append(
            _FUNCTION_TEMPLATE.format(
                name=html.escape(function["name"]),
                description=html.escape(function.get("description") or ""),
                schedule=(
                    f'<p class="schedule">Schedule: {html.escape(schedule)}</p>'
                    if schedule
                    else ""
                ),
            )
        )
    return _DASHBOARD_TEMPLATE.format(count=len(functions), functions="".join(cards))


def _json_response(payload: Any, status_code: int = 200) -> Response:
    """Encode like the Cloud Functions entry point (unknown types become strings)."""
    return Response(
        json.dumps(payload, default=str),
        status_code=status_code,
        media_type="application/json",
    )


async def _read_json(request: Request) -> Any:
    """Parse the request body; an empty body is {} and invalid JSON is None."""
    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None


def create_app(
    registry: FunctionRegistry | None = None,
    dispatcher: Dispatcher | None = None,
) -> FastAPI:
    """
    Build the dev server application.

    Args:
        registry: Registry to serve (scans the configured package when omitted)
        dispatcher: Dispatcher to run functions through (built from the
            registry when omitted)

    Returns:
        FastAPI application
    """
    if dispatcher is None:
        if registry is None:
            registry = FunctionRegistry(package=get_settings().functions_package)
        dispatcher = Dispatcher(registry, is_local=True)
    elif registry is None:
        registry = dispatcher.registry

    app = FastAPI(
        title="Workspace Functions Dev Server",
        description="Local runner for Google Workspace cloud functions",
        version=__version__,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )
    app.state.registry = registry
    app.state.dispatcher = dispatcher

    def summaries() -> list[dict[str, Any]]:
        registry.load_all()
        return [function.summary() for function in registry.get_all()]

    @app.get("/", response_class=HTMLResponse)
    async def dashboard() -> HTMLResponse:
        """Render the function dashboard."""
        return HTMLResponse(render_dashboard(summaries()))

    @app.get("/functions", response_model=FunctionListResponse)
    async def list_functions() -> FunctionListResponse:
        """List registered functions."""
        functions = [FunctionSummary(**summary) for summary in summaries()]
        return FunctionListResponse(functions=functions, count=len(functions))

    @app.post("/test/{function_name}")
    async def test_function(function_name: str, request: Request) -> Response:
        """Run one function locally with the request body as its data."""
        request_id = generate_request_id("test")
        data = await _read_json(request)
        if not isinstance(data, dict):
            return JSONResponse(
                {"success": False, "error": "Request body must be a JSON object"},
                status_code=400,
            )

        try:
            result = await dispatcher.dispatch(
                function_name, data, request_id=request_id, is_local=True
            )
        except Exception as e:
            logger.exception(
                f"Test execution of {function_name} failed",
                extra={"request_id": request_id, "function_name": function_name},
            )
            return JSONResponse({"success": False, "error": str(e)}, status_code=500)

        if result.error_code == NOT_FOUND:
            return JSONResponse(
                {
                    "success": False,
                    "error": result.error,
                    "availableFunctions": dispatcher.available_functions(),
                },
                status_code=404,
            )
        return _json_response(result.to_dict())

    @app.post("/")
    async def cloud_function_endpoint(request: Request) -> Response:
        """Cloud Functions compatible endpoint: {functionName, ...data}."""
        body = await _read_json(request)
        payload, status = await handle_http_request(
            body, dispatcher, request_id=generate_request_id("http"), is_local=True
        )
        return _json_response(payload, status_code=status)

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        """Liveness check with the registered function count."""
        registry.load_all()
        return HealthResponse(status="healthy", functions=len(registry))

    return app


def main(host: str = DEFAULT_HOST, port: int | None = None) -> None:
    """Run the dev server with uvicorn."""
    import uvicorn

    settings = get_settings()
    setup_logging(level=settings.log_level)

    app = create_app()
    port = port or settings.port
    names = app.state.dispatcher.available_functions()

    logger.info(f"Dev server running on http://localhost:{port}")
    logger.info(f"Available functions: {', '.join(names) or 'none'}")

    uvicorn.run(app, host=host, port=port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
