"""
Phantom Guard - Database Base Module
====================================

Shared helpers for database mixins.

Author: Phantom Guard Team
"""

import json
from typing import Any, Optional

from phantom_guard.core.logger import logger


# =============================================================================
# Helper Functions
# =============================================================================

def _safe_json_loads(value: Optional[str], default: Any = None) -> Any:
    """Safely parse JSON, returning default on error."""
    if not value:
        return default
    try:
        return json.loads(value)
    except (json.JSONDecodeError, ValueError):
        logger.warning("Corrupted JSON in Database", [
            ("Value", value[:50]),
        ])
        return default


__all__ = ["_safe_json_loads"]
