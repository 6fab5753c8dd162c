from fastapi import Request

from orchestrator.orchestrator_manager import AppServices


def get_services(request: Request) -> AppServices:
    """Services built in the lifespan and parked on app.state."""
    return request.app.state.services
