"""
api/app.py
----------
HTTP flow server.

Each flow is exposed as ``POST /{flowName}``.  The request body is
``{"data": <flow input>}`` and the response is ``{"result": <flow output>}``.
Input that does not match the flow's schema is rejected with 422 before the
flow runs; upstream failures are logged and returned as 500.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Iterable, Optional

from dotenv import load_dotenv
from fastapi import APIRouter, Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field
from starlette.requests import HTTPConnection

# Load environment variables before building settings
load_dotenv(override=True)

from weather_agent.config import Settings
from weather_agent.errors import FlowInputError
from weather_agent.flows import Flow, FlowRegistry, build_flows

logger = logging.getLogger(__name__)

SERVICE_NAME = "Weather Agent Flow Server"

# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------

class FlowRequest(BaseModel):
    data: Dict[str, Any] = Field(..., description="The flow input, e.g. {\"location\": \"Paris\"}")

class FlowResponse(BaseModel):
    result: str = Field(..., description="The flow output")

# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------

def get_flows(conn: HTTPConnection) -> FlowRegistry:
    """Dependency to inject the flow registry."""
    return conn.app.state.flows

# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------

flow_router = APIRouter(tags=["Flows"])
health_router = APIRouter(tags=["System"])

@health_router.get("/health")
async def health_check(flows: FlowRegistry = Depends(get_flows)):
    """
    Simple health check endpoint listing the flows being served.
    """
    return {"status": "ok", "service": SERVICE_NAME, "flows": sorted(flows)}

@flow_router.post("/{flow_name}", response_model=FlowResponse)
async def run_flow_endpoint(
    flow_name: str,
    request: FlowRequest,
    flows: FlowRegistry = Depends(get_flows),
):
    """
    Run a single flow invocation.
    """
    flow = flows.get(flow_name)
    if flow is None:
        raise HTTPException(status_code=404, detail=f"Flow '{flow_name}' not found")

    try:
        args = flow.parse_input(request.data)
    except FlowInputError as e:
        cause = e.__cause__
        detail = cause.errors(include_url=False, include_context=False) if hasattr(cause, "errors") else str(e)
        raise HTTPException(status_code=422, detail=detail)

    try:
        result = await flow.run(args)
        return FlowResponse(result=result)
    except Exception as e:
        logger.exception("Error running flow '%s'", flow_name)
        raise HTTPException(status_code=500, detail=str(e))

# ---------------------------------------------------------------------------
# Lifespan & App Setup
# ---------------------------------------------------------------------------

def _registry(flows: Iterable[Flow]) -> FlowRegistry:
    registry = FlowRegistry()
    for flow in flows:
        registry.add(flow)
    return registry

def create_app(settings: Optional[Settings] = None, flows: Optional[Iterable[Flow]] = None) -> FastAPI:
    """
    Factory function to create and configure the FastAPI application.

    When ``flows`` is given they are served as-is and no model client is
    built; otherwise the lifespan builds them from ``settings``.
    """
    app_settings = settings or Settings.from_env()
    preset = _registry(flows) if flows is not None else None

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if preset is not None:
            app.state.flows = preset
            yield
            return

        logger.info("Building flows...")
        async with build_flows(app_settings) as registry:
            app.state.flows = registry
            logger.info("Serving flows: %s", ", ".join(registry))
            yield
        logger.info("Flows shut down.")

    app = FastAPI(
        title=SERVICE_NAME,
        description="Serves weather agent flows over HTTP",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(app_settings.cors_allow_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health_router)
    app.include_router(flow_router)

    return app


app = create_app()
