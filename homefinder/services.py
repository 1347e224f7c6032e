"""
Service registry.

External collaborators (mail sender, image store, geocoder, realtime
notifier) are constructed once when the process starts and handed to each
request as ``request.services`` (see ``homefinder.middleware.ServicesMiddleware``).
Which class backs each collaborator is configured in settings:

    HOMEFINDER_MAILER, HOMEFINDER_IMAGE_STORE,
    HOMEFINDER_GEOCODER, HOMEFINDER_NOTIFIER
"""
import logging
from dataclasses import dataclass
from typing import Any

from django.apps import apps
from django.conf import settings
from django.utils.module_loading import import_string

logger = logging.getLogger(__name__)


@dataclass
class ServiceRegistry:
    mailer: Any
    image_store: Any
    geocoder: Any
    notifier: Any


def build_services() -> ServiceRegistry:
    registry = ServiceRegistry(
        mailer=import_string(settings.HOMEFINDER_MAILER)(),
        image_store=import_string(settings.HOMEFINDER_IMAGE_STORE)(),
        geocoder=import_string(settings.HOMEFINDER_GEOCODER)(),
        notifier=import_string(settings.HOMEFINDER_NOTIFIER)(),
    )
    logger.info(
        "Services ready mailer=%s image_store=%s geocoder=%s notifier=%s",
        type(registry.mailer).__name__,
        type(registry.image_store).__name__,
        type(registry.geocoder).__name__,
        type(registry.notifier).__name__,
    )
    return registry


def get_services() -> ServiceRegistry:
    """Registry built by HomefinderConfig.ready() for this process."""
    config = apps.get_app_config("homefinder")
    if config.services is None:
        config.services = build_services()
    return config.services
