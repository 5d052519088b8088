"""FastAPI routes for the MCP MySQL gateway REST API."""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional
from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field

from api.middleware import limiter
from core.config import get_http_config
from core.dependencies import get_app_config, get_gateway_dependency, get_registry_dependency
from database.gateway import ConnectionGateway
from protocol.base_server import ToolCall
from tools import ToolRegistry, get_all_tools

logger = logging.getLogger(__name__)

_http_config = get_http_config()


class HealthResponse(BaseModel):
    status: str
    timestamp: str
    version: str
    database_connected: bool


class ToolInfo(BaseModel):
    name: str
    description: str
    parameters: Dict[str, Any]


class ConnectionResponse(BaseModel):
    connected: bool
    host: Optional[str] = None
    port: Optional[int] = None
    user: Optional[str] = None
    database: Optional[str] = None


class ToolCallRequest(BaseModel):
    arguments: Dict[str, Any] = Field(default_factory=dict)


class ToolCallResponse(BaseModel):
    success: bool
    tool: str
    text: str
    timestamp: str


router = APIRouter(prefix="/api/v1")


@router.get("/health", response_model=HealthResponse)
async def health_check(gateway: ConnectionGateway = Depends(get_gateway_dependency)):
    """Health check endpoint."""
    return HealthResponse(
        status="ok",
        timestamp=datetime.now().isoformat(),
        version=get_app_config().server_version,
        database_connected=gateway.is_connected
    )


@router.get("/tools", response_model=List[ToolInfo])
async def list_tools():
    """List all available MCP tools."""
    return [
        ToolInfo(
            name=tool.name,
            description=tool.description,
            parameters=tool.inputSchema
        )
        for tool in get_all_tools()
    ]


@router.get("/connection", response_model=ConnectionResponse)
async def connection_status(gateway: ConnectionGateway = Depends(get_gateway_dependency)):
    """Describe the active database session, if any."""
    status = gateway.status()
    return ConnectionResponse(**status.model_dump())


@router.post("/tools/{tool_name}", response_model=ToolCallResponse)
@limiter.limit(_http_config.rate_limit_tools)
async def call_tool(
    request: Request,
    tool_name: str,
    body: ToolCallRequest,
    gateway: ConnectionGateway = Depends(get_gateway_dependency),
    registry: ToolRegistry = Depends(get_registry_dependency)
):
    """Invoke an MCP tool over REST."""
    if not registry.is_tool_registered(tool_name):
        raise HTTPException(status_code=404, detail=f"Unknown tool: {tool_name}")

    envelope = await registry.handle_tool(ToolCall(tool_name, body.arguments), gateway)
    text = "\n".join(
        block.get("text", "") for block in envelope.get("content", []) if block.get("type") == "text"
    )
    if envelope.get("isError"):
        logger.info(f"Tool {tool_name} returned an error over REST")

    return ToolCallResponse(
        success=not envelope.get("isError", False),
        tool=tool_name,
        text=text,
        timestamp=datetime.now().isoformat()
    )
