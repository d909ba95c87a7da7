"""
Browser Opener - Open served URLs locally, skip where no browser can be reached
"""

from __future__ import annotations

import logging
import os
import webbrowser
from typing import Mapping

logger = logging.getLogger(__name__)

CONTAINER_ENV_VARS = (
    "CONTAINER",
    "DOCKER_HOST",
    "KUBERNETES_SERVICE_HOST",
    "CODESPACES",
    "REMOTE_CONTAINERS",
    "VSCODE_REMOTE_CONTAINERS_SESSION",
    "GITPOD_WORKSPACE_ID",
)
DISABLE_ENV = "SHOWME_DISABLE_AUTO_OPEN"


class BrowserOpener:
    def __init__(self, environ: Mapping[str, str] | None = None):
        self.environ = os.environ if environ is None else environ

    def is_container(self) -> bool:
        return any(self.environ.get(name) for name in CONTAINER_ENV_VARS)

    def is_disabled(self) -> bool:
        return self.environ.get(DISABLE_ENV, "").lower() == "true"

    def open(self, url: str) -> bool:
        """Try to open ``url``; False means the caller should show it instead"""
        if self.is_disabled() or self.is_container():
            logger.debug("[Browser] Auto-open skipped for %s", url)
            return False
        try:
            return webbrowser.open(url)
        except webbrowser.Error as e:
            logger.warning("[Browser] Could not open %s: %s", url, e)
            return False
