from __future__ import annotations

from typing import List


class DmlError(Exception):
    """Record-level failure reported inside an sObject Collections response."""

    def __init__(self, object_api: str, errors: List[dict]):
        self.object_api = object_api
        self.errors = errors
        samples = "; ".join(f"{e.get('statusCode')}: {e.get('message')}" for e in errors[:3])
        super().__init__(f"{object_api}: {len(errors)} record error(s): {samples}")
