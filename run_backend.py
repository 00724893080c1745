"""Run the FastAPI backend using Uvicorn."""

import uvicorn

from novachat.core.config import get_settings


if __name__ == "__main__":
    settings = get_settings()
    uvicorn.run(
        "novachat.backend.main:create_app",
        factory=True,
        host=settings.BACKEND_HOST,
        port=settings.BACKEND_PORT,
        log_level=settings.LOG_LEVEL.lower(),
        reload=False,
    )
