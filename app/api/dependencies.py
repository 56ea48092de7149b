"""FastAPI dependencies exposing the services held by the app's container."""

from __future__ import annotations

from fastapi import Request

from app.core.config import Settings
from app.core.container import ServiceContainer
from app.services.admin_service import AdminService
from app.services.collaborator_service import CollaboratorService
from app.services.innovator_service import InnovatorService


def get_container(request: Request) -> ServiceContainer:
    return request.app.state.container


def get_collaborator_service(request: Request) -> CollaboratorService:
    return get_container(request).collaborators


def get_innovator_service(request: Request) -> InnovatorService:
    return get_container(request).innovators


def get_admin_service(request: Request) -> AdminService:
    return get_container(request).admin


def get_settings(request: Request) -> Settings:
    return get_container(request).settings
