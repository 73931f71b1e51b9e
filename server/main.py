#!/usr/bin/env python3
"""
Workflow Studio Server
Main entry point for the server application
"""

import sys
import os

# Add server directory to Python path
sys.path.insert(0, os.path.dirname(__file__))

from workflow_studio.api.api_server import app
from workflow_studio.config import API_CONFIG
import uvicorn

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=API_CONFIG["host"],
        port=API_CONFIG["port"],
        reload=False
    )
