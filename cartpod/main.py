"""
Main application entry point for the CartPod backend.

Usage:
    - Direct: python -m cartpod.main
    - ASGI server: uvicorn cartpod.main:app
"""

import os

from cartpod import create_app

app = create_app()

# Entry point for running the application directly
if __name__ == "__main__":
    import uvicorn

    host = os.environ.get("HOST", "0.0.0.0")
    port = int(os.environ.get("PORT", 8000))
    reload_enabled = os.environ.get("RELOAD", "false").lower() == "true"

    uvicorn.run(
        "cartpod.main:app",
        host=host,
        port=port,
        reload=reload_enabled,
        log_level="info"
    )
