"""Simulation, history, layout and validation configurations."""

import os
from dotenv import load_dotenv

load_dotenv()

SIMULATION_CONFIG = {
    # Delay between two emitted steps (ms)
    "speed_delays_ms": {
        "slow": 2000,
        "normal": 1000,
        "fast": 500
    },
    # Randomized logical duration of one node (ms)
    "min_step_duration_ms": float(os.getenv("SIMULATION_MIN_STEP_MS", "500")),
    "max_step_duration_ms": float(os.getenv("SIMULATION_MAX_STEP_MS", "1500")),
    "no_start_message": "No start node found in workflow"
}

HISTORY_CONFIG = {
    "limit": int(os.getenv("HISTORY_LIMIT", "50"))
}

LAYOUT_CONFIG = {
    "node_width": 220,
    "node_height": 100,
    "node_sep": 80,
    "rank_sep": 100,
    "margin_x": 50,
    "margin_y": 50,
    "paste_offset": 50
}

VALIDATION_CONFIG = {
    "email_pattern": r"^[^\s@]+@[^\s@]+\.[^\s@]+$",
    "min_probability": 0.0,
    "max_probability": 1.0
}

METRICS_CONFIG = {
    # Estimated hours per node kind when a task carries no estimate
    "kind_hours": {
        "task": 2.0,
        "approval": 4.0,
        "automated": 0.5
    },
    "error_penalty": 15,
    "warning_penalty": 5
}
