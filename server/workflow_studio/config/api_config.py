"""API server and logging configurations."""

import os
from dotenv import load_dotenv

load_dotenv()

API_CONFIG = {
    "host": os.getenv("API_HOST", "0.0.0.0"),
    "port": int(os.getenv("API_PORT", "5001")),
    "title": "Workflow Studio API",
    "version": "1.0.0",
    "cors_origins": os.getenv("CORS_ORIGINS", "*").split(",")
}

LOGGING_CONFIG = {
    "level": os.getenv("LOG_LEVEL", "INFO").upper()
}
