#!/usr/bin/env python3
"""Start the API server."""
import uvicorn

from config import Config

if __name__ == "__main__":
    config = Config.from_env()
    uvicorn.run(
        "api.app:app",
        host=config.api_host,
        port=config.api_port,
        reload=False,
        log_level=config.log_level.lower(),
    )
