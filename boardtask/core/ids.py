from __future__ import annotations

import uuid


def new_id() -> str:
    """Collision-resistant identifier for slots and nodes."""
    return uuid.uuid4().hex.upper()
