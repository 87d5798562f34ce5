"""
Field-level reconciliation of extracted facts against the persisted profile.

Mirrors a per-column SQL COALESCE(candidate, persisted): a non-empty
candidate value takes precedence, an empty one never erases stored data.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from models.schemas import ChildProfile

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReconcileResult:
    merged: ChildProfile
    changed: bool


def _is_empty(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class ProfileReconciler:
    """Merges a candidate profile into the persisted one"""

    def reconcile(self, candidate: ChildProfile, persisted: Optional[ChildProfile]) -> ReconcileResult:
        """
        Coalesce every field from candidate, falling back to persisted.

        Args:
            candidate: Profile built from this turn's extraction
            persisted: Active stored profile, or None when nothing is stored yet

        Returns:
            The merged profile and whether it differs from what is stored
        """
        base = persisted or ChildProfile()
        merged_fields = {}
        for name in ChildProfile.FIELDS:
            new_value = getattr(candidate, name)
            merged_fields[name] = getattr(base, name) if _is_empty(new_value) else new_value
        merged = ChildProfile(**merged_fields)

        if persisted is None:
            changed = not merged.is_empty()
        else:
            changed = merged.field_values() != persisted.field_values()

        if changed:
            updated = [
                name for name in ChildProfile.FIELDS
                if merged_fields[name] != getattr(base, name)
            ]
            logger.info(f"Profile reconciliation changed fields: {updated}")
        return ReconcileResult(merged=merged, changed=changed)
