"""
Shared helper functions
"""

import json
import time
import uuid
from typing import Any, Dict


def format_sse_data(data: Dict[str, Any]) -> str:
    """Format data as a Server-Sent Events frame"""
    return f"data: {json.dumps(data)}\n\n"


def now_ms() -> float:
    """Current wall clock time in epoch milliseconds"""
    return time.time() * 1000


def generate_id(prefix: str) -> str:
    """Unique element id such as 'task-3f2a...'"""
    return f"{prefix}-{uuid.uuid4().hex}"
