"""Run the Gatekeeper API server."""

import uvicorn

from gatekeeper.api import configure_logging
from gatekeeper.api.config import Settings

if __name__ == "__main__":
    settings = Settings()
    configure_logging(settings.log_level)
    uvicorn.run(
        "gatekeeper.api:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
