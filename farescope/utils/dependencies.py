"""
FastAPI dependencies for the shared search objects
"""
from fastapi import Request

from farescope.services.providers.base import FlightProvider
from farescope.services.search_orchestrator import SearchOrchestrator


def get_orchestrator(request: Request) -> SearchOrchestrator:
    """The search orchestrator created at startup"""
    return request.app.state.orchestrator


def get_provider(request: Request) -> FlightProvider:
    """The flight provider created at startup"""
    return request.app.state.provider
