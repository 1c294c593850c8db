"""
Entry point for the Assurance debugging assistant.

    uvicorn assurance_agent.main:app --port 3001
"""

import uvicorn

from assurance_agent.application.api.api_server import create_app
from assurance_agent.infrastructure.config.settings import Settings

settings = Settings.from_env()
app = create_app(settings)


if __name__ == "__main__":
    uvicorn.run(app, host=settings.host, port=settings.port)
