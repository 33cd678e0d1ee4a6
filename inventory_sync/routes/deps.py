"""FastAPI dependencies resolving the shared service container."""

from fastapi import Request

from ..services import Services


def get_services(request: Request) -> Services:
    return request.app.state.services
