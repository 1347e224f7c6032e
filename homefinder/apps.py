from django.apps import AppConfig


class HomefinderConfig(AppConfig):
    name = "homefinder"
    verbose_name = "HomeFinder core"

    services = None

    def ready(self):
        # Collaborators are built once per process, not at import time
        from .services import build_services

        self.services = build_services()
