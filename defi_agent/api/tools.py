import json
import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from ..core.agent.agent import Agent
from .deps import get_agent

router = APIRouter(prefix="/tools")
_logger = logging.getLogger(__name__)


class ToolInvocation(BaseModel):
    """Body of a tool call"""
    arguments: Dict[str, Any] = Field(default_factory=dict)


@router.get("")
async def list_tools(agent: Agent = Depends(get_agent)) -> List[Dict[str, Any]]:
    """Tool definitions in Anthropic tool-schema format"""
    return [definition.to_anthropic_format() for definition in agent.get_tool_definitions()]


@router.post("/{name}")
async def invoke_tool(
    name: str,
    body: ToolInvocation,
    agent: Agent = Depends(get_agent),
) -> Any:
    """Run a tool and return its parsed JSON result"""
    if not agent.tool_registry.has_tool(name):
        raise HTTPException(status_code=404, detail=f"Unknown tool '{name}'")

    raw = await agent.execute_tool(name, body.arguments)
    try:
        return json.loads(raw)
    except ValueError:
        _logger.warning(f"Tool {name} returned non-JSON output")
        return {"status": "success", "result": raw}
