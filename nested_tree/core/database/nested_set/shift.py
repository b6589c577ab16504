"""Range-shift primitive shared by every nested-set mutation.

Each structural change boils down to a few calls of :func:`shift`: add a
delta to every left bound and every right bound that falls into a region.
Left and right bounds are matched independently, so a node straddling the
region edge only has one of its bounds moved, which is exactly how a parent
grows or shrinks around an inserted or removed subtree.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from nested_tree.core.database.nested_set.types import BOTH_BOUNDS, Region
from nested_tree.infra.logging import get_lazy_logger

if TYPE_CHECKING:
    from nested_tree.core.database.nested_set.store import BoundsStore

lazy_logger = get_lazy_logger(__name__)


async def shift(store: BoundsStore, region: Region, delta: int) -> int:
    """Shift both bound kinds inside ``region`` by ``delta`` in one store call.

    Args:
        store: Bounds store to update
        region: Values to select
        delta: Amount added to each selected bound (may be negative)

    Returns:
        Number of records touched (0 when nothing needed to move)
    """
    if delta == 0 or region.is_empty:
        lazy_logger.debug(lambda: f"tree.shift: skipped {region} by {delta:+d}")
        return 0

    touched = await store.shift_range(region, delta, BOTH_BOUNDS)
    lazy_logger.debug(lambda: f"tree.shift: {region} by {delta:+d} -> {touched} rows")
    return touched


async def shift_from(store: BoundsStore, threshold: int, delta: int) -> int:
    """Shift every bound at or beyond ``threshold``."""
    return await shift(store, Region.at_or_beyond(threshold), delta)


async def shift_between(store: BoundsStore, floor: int, ceiling: int, delta: int) -> int:
    """Shift every bound inside the closed interval ``[floor, ceiling]``."""
    return await shift(store, Region.between(floor, ceiling), delta)


__all__ = ["shift", "shift_between", "shift_from"]
