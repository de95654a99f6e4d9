#!/usr/bin/env python3
"""
Run script for the Store API.
This script loads .env and launches the FastAPI server.
"""
import os
import sys
import traceback

import uvicorn
from dotenv import load_dotenv

if __name__ == "__main__":
    try:
        load_dotenv()
        port = int(os.getenv("PORT", "8000"))

        # Print information about the server
        print("Starting Store API server...")
        print(f"Access the API at http://localhost:{port}")
        print(f"API documentation at http://localhost:{port}/docs")

        # Run the server
        uvicorn.run(
            "storeapi.main:create_app",
            factory=True,
            host="0.0.0.0",
            port=port,
            reload=True,
            log_level=os.getenv("LOG_LEVEL", "info").lower()
        )
    except Exception as e:
        print(f"Error starting server: {e}")
        traceback.print_exc()
        sys.exit(1)
