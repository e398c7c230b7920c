"""Run the chromadmin FastAPI backend with uvicorn."""

import os

import uvicorn

from chromadmin.config import get_settings

if __name__ == "__main__":
    settings = get_settings()
    uvicorn.run(
        "backend.main:app",
        host=os.environ.get("CHROMADMIN_HOST", "0.0.0.0"),
        port=settings.port,
        reload=os.environ.get("CHROMADMIN_ENV", "development") == "development",
    )
