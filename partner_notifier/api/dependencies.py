"""FastAPI dependencies resolving the services stored on ``app.state``."""

from typing import Optional

from fastapi import Request

from partner_notifier.notifications.dispatcher import NotificationDispatcher
from partner_notifier.service_layer.client import ServiceLayerClient


def get_dispatcher(request: Request) -> NotificationDispatcher:
    return request.app.state.dispatcher


def get_directory(request: Request) -> Optional[ServiceLayerClient]:
    return getattr(request.app.state, "directory", None)
