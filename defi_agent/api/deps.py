from fastapi import HTTPException, Request

from ..core.agent.agent import Agent


def get_agent(request: Request) -> Agent:
    """The Agent the app was created with."""
    agent = getattr(request.app.state, "agent", None)
    if agent is None:
        raise HTTPException(status_code=503, detail="Agent not configured")
    return agent
