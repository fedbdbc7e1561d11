"""Hello-world plugin -- echoes its arguments with a UTC timestamp."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Sequence

from smartai.plugins.base import Plugin

logger = logging.getLogger(__name__)


class HelloWorldPlugin(Plugin):
    """A simple hello world plugin to demonstrate plugin functionality."""

    name = "hello-world"
    version = "1.0.0"
    description = "A simple hello world plugin to demonstrate plugin functionality"

    def initialize(self) -> None:
        logger.debug("Hello World plugin initialized")

    def execute(self, args: Sequence[str]) -> dict[str, Any]:
        return {
            "message": f"Hello from plugin! Arguments received: {list(args)}",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
