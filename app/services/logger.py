import json
from datetime import datetime

from app.core.config import settings


def log_debug(event: str, data: dict):
    """
    Logs structured planner debug info if enabled.

    Controlled by PLANNER_DEBUG_MODE; read on every call so it can be
    toggled without restarting.
    """
    if not settings.PLANNER_DEBUG_MODE:
        return

    entry = {
        "timestamp": datetime.now().isoformat(),
        "event": event,
        "data": data
    }

    print(f"\n[PLANNER DEBUG] {event}:")
    print(json.dumps(entry, indent=2, default=str))


def log_warning(message: str):
    print(f"Warning: {message}")
