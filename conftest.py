# Root conftest.py - MUST be at project root to load .env before test collection
# This file is loaded by pytest before any test modules are imported.

# Load environment variables FIRST, before any other imports, so that
# PROOFCHECK_CONFIG is visible when interface.api.app builds its worker.
from dotenv import load_dotenv
load_dotenv()
