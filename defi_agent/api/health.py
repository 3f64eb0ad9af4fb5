from typing import Any, Dict

from fastapi import APIRouter, Depends

from ..core.agent.agent import Agent
from .deps import get_agent

router = APIRouter()


@router.get("/healthz")
async def health_check(agent: Agent = Depends(get_agent)) -> Dict[str, Any]:
    """Report registered plugins, networks and tools"""
    plugins = {
        plugin.get_name(): {
            "providers": [provider.get_name() for provider in plugin.get_providers()],
            "networks": plugin.get_supported_networks(),
        }
        for plugin in agent.get_plugins()
    }
    tools = agent.tool_registry.names()
    has_providers = any(entry["providers"] for entry in plugins.values())

    return {
        "status": "healthy" if has_providers else "degraded",
        "plugins": plugins,
        "networks": agent.get_networks(),
        "tools": tools,
    }
