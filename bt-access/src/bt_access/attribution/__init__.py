"""Attribution chains and the disavowal walker."""

from __future__ import annotations

from bt_access.attribution.chain import AttributionChain, AttributionLink
from bt_access.attribution.walker import AttributionChainWalker, Disavowal

__all__ = [
    "AttributionChain",
    "AttributionChainWalker",
    "AttributionLink",
    "Disavowal",
]
