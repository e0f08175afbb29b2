"""
Keeps a user's derived profile fields consistent with the photo array.

The main photo is the first non-rejected photo in sort order and
``num_of_photos`` is the number of non-rejected photos. Only fields whose
stored value differs are written back.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from profilereview.database.db_connection import ConnectionManager
from profilereview.repositories.user_repo import UserRepo
from profilereview.util.logger import get_logger

logger = get_logger("profile_reconciler")


@dataclass
class ReconcileResult:
    """Outcome of one reconciliation."""
    user_id: int
    main_photo: Optional[str] = None
    num_of_photos: int = 0
    changed_fields: List[str] = field(default_factory=list)
    user_found: bool = True

    @property
    def changed(self) -> bool:
        return bool(self.changed_fields)


class ProfileStateReconciler:
    """Recomputes ``main_photo`` and ``num_of_photos`` from the stored photos."""

    def __init__(self, connections: ConnectionManager) -> None:
        self.connections = connections

    async def reconcile(self, user_id: int) -> ReconcileResult:
        async with self.connections.transaction() as conn:
            user = await UserRepo.get_user(conn, user_id)
            if user is None:
                logger.warning("[RECONCILER] User %s not found, nothing to reconcile", user_id)
                return ReconcileResult(user_id=user_id, user_found=False)

            active = user.active_photos()
            expected_main = active[0].path if active else None
            expected_count = len(active)
            result = ReconcileResult(user_id=user_id, main_photo=expected_main, num_of_photos=expected_count)

            kwargs = {}
            if user.main_photo != expected_main:
                kwargs["main_photo"] = expected_main
                result.changed_fields.append("main_photo")
            if user.num_of_photos != expected_count:
                kwargs["num_of_photos"] = expected_count
                result.changed_fields.append("num_of_photos")

            if kwargs:
                await UserRepo.reconcile_main_photo_and_count(conn, user_id, **kwargs)
                logger.debug("[RECONCILER] User %s updated: %s", user_id, result.changed_fields)

        return result
