"""Run the bot and its HTTP surface under uvicorn."""

from __future__ import annotations

import uvicorn

from loyalbot.config import load_settings

DEFAULT_PORT = 8787


def main() -> None:
    """Serve the app factory on the configured bind address."""
    settings = load_settings()
    uvicorn.run(
        "loyalbot.api.app:create_app",
        factory=True,
        host=settings.bind,
        port=DEFAULT_PORT,
        log_config=None,
    )


if __name__ == "__main__":
    main()
