#!/usr/bin/env python3
"""
Start the proof checker API server.
This script loads the environment and starts the FastAPI server.
"""

import logging
import os
import sys
import subprocess

from dotenv import load_dotenv


def main():
    load_dotenv()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")

    project_root = os.path.dirname(os.path.abspath(__file__))
    sys.path.insert(0, project_root)

    port = os.getenv("PROOFCHECK_PORT", "8010")
    logging.info("Checker config: %s", os.getenv("PROOFCHECK_CONFIG", "config/proofcheck.yaml"))

    print("Starting proof checker API server...")
    print(f"Server will be available at: http://localhost:{port}")
    print(f"API Documentation: http://localhost:{port}/docs")
    print("\nPress Ctrl+C to stop the server")

    try:
        subprocess.run(
            [
                sys.executable,
                "-m",
                "uvicorn",
                "interface.api.app:app",
                "--port",
                port,
                "--reload",
            ],
            check=True,
        )
    except KeyboardInterrupt:
        print("\nServer stopped.")


if __name__ == "__main__":
    main()
