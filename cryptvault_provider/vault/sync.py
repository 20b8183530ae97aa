"""
Value Synchronizer — best-effort re-sync of a batch of values.

Asks the remote store to re-encrypt each value for every identity that
is allowed to read it (``SyncValue``). Used on Value Read and after an
Identity is created, so the new identity receives shares of the values
its rights cover.

The batch never stops early: a failing value is recorded as a warning
diagnostic and the next one is processed.
"""
import logging
from collections.abc import Iterable

from ..diagnostics import Diagnostics
from ..exceptions import PartialSyncError, RemoteError
from .session import ProtectedSession

logger = logging.getLogger("cryptvault.provider.vault")


async def sync_values(session: ProtectedSession, value_ids: Iterable[str]) -> Diagnostics:
    """Synchronize every value id through ``session``.

    Args:
        session: Protected session of the acting identity.
        value_ids: Ids of the values to synchronize.

    Returns:
        One warning diagnostic per value that failed to sync; empty when
        every value synced.
    """
    stats = {"total": 0, "synced": 0, "errors": 0}
    errors: list[RemoteError] = []

    for value_id in value_ids:
        stats["total"] += 1
        try:
            await session.sync_value(value_id)
            stats["synced"] += 1
        except RemoteError as err:
            logger.warning("Error syncing value id=%s: %s", value_id, err)
            stats["errors"] += 1
            errors.append(err)

    logger.info("Value sync complete for vault=%s: %s", session.vault_id, stats)

    diagnostics = Diagnostics()
    for err in errors:
        diagnostics.add_warning(
            PartialSyncError.category,
            f"value was not synchronized: {err}",
        )
    return diagnostics
