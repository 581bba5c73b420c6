"""Attribution chains.

A chain records who an operation is performed for: the first link is the
immediate caller, each later link an identity the previous one claims to act
on behalf of. Links live in an immutable tuple and "next" is simply the
following index, so a chain is finite and acyclic by construction.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, Iterator, List, Mapping, Optional, Tuple

from bt_access.types import resolve_capability
from bt_access.utils.hashing import stable_sha256


@dataclass(frozen=True)
class AttributionLink:
    package_name: Optional[str]
    uid: int
    renounced_permissions: FrozenSet[str] = field(default_factory=frozenset)
    attribution_tag: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "uid", int(self.uid))
        object.__setattr__(
            self,
            "renounced_permissions",
            frozenset(resolve_capability(p) for p in self.renounced_permissions),
        )

    def renounces(self, capability: str) -> bool:
        return capability in self.renounced_permissions

    def to_dict(self) -> Dict[str, Any]:
        return {
            "package_name": self.package_name,
            "uid": self.uid,
            "renounced_permissions": sorted(self.renounced_permissions),
            "attribution_tag": self.attribution_tag,
        }

    @classmethod
    def from_mapping(cls, obj: Mapping[str, Any]) -> "AttributionLink":
        renounced = obj.get("renounced_permissions") or obj.get("renounced") or ()
        if isinstance(renounced, str):
            renounced = [renounced]
        return cls(
            package_name=obj.get("package_name"),
            uid=int(obj["uid"]),
            renounced_permissions=frozenset(str(p) for p in renounced),
            attribution_tag=obj.get("attribution_tag"),
        )


class AttributionChain:
    """Immutable, index-addressed sequence of attribution links."""

    __slots__ = ("_links",)

    def __init__(self, links: Iterable[AttributionLink]) -> None:
        self._links: Tuple[AttributionLink, ...] = tuple(links)
        if not self._links:
            raise ValueError("attribution chain must contain at least one link")

    @classmethod
    def of(cls, *links: AttributionLink) -> "AttributionChain":
        return cls(links)

    @classmethod
    def from_records(cls, records: Iterable[Mapping[str, Any]]) -> "AttributionChain":
        return cls(AttributionLink.from_mapping(r) for r in records)

    @property
    def head(self) -> AttributionLink:
        return self._links[0]

    @property
    def last(self) -> AttributionLink:
        return self._links[-1]

    def link(self, index: int) -> AttributionLink:
        return self._links[index]

    def next_index(self, index: int) -> Optional[int]:
        nxt = index + 1
        return nxt if nxt < len(self._links) else None

    def compose(self, head: AttributionLink) -> "AttributionChain":
        """Return a new chain with `head` acting on behalf of this chain."""

        return AttributionChain((head, *self._links))

    def __len__(self) -> int:
        return len(self._links)

    def __iter__(self) -> Iterator[AttributionLink]:
        return iter(self._links)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AttributionChain):
            return NotImplemented
        return self._links == other._links

    def __hash__(self) -> int:
        return hash(self._links)

    def to_records(self) -> List[Dict[str, Any]]:
        return [link.to_dict() for link in self._links]

    def digest(self) -> str:
        return stable_sha256(self.to_records())

    def describe(self) -> str:
        """Human-readable description for denial logs."""

        parts = []
        for link in self._links:
            text = f"uid={link.uid} package={link.package_name}"
            if link.attribution_tag:
                text += f" tag={link.attribution_tag}"
            parts.append(f"{{{text}}}")
        return "AttributionSource " + " -> ".join(parts)

    def __repr__(self) -> str:
        return f"AttributionChain({self.describe()})"
