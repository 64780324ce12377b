#!/usr/bin/env python3
"""
Run script for the Let's Play API.
Loads settings from .env and launches the FastAPI app under uvicorn.
"""
import os
import sys
import traceback

import uvicorn
from dotenv import load_dotenv

if __name__ == "__main__":
    # Settings are read at import time, so load them before the app
    load_dotenv()
    try:
        port = int(os.getenv("PORT", "8000"))
        print("Starting Let's Play API server...")
        print(f"Access the API at http://localhost:{port}")
        print(f"API documentation at http://localhost:{port}/docs")

        uvicorn.run(
            "letsplay.main:app",
            host=os.getenv("HOST", "0.0.0.0"),
            port=port,
            reload=os.getenv("RELOAD", "false").lower() == "true",
            log_level=os.getenv("LOG_LEVEL", "info").lower()
        )
    except Exception as e:
        print(f"Error starting server: {e}")
        traceback.print_exc()
        sys.exit(1)
