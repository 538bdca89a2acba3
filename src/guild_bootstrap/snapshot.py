"""Read-only view of the roles and channels that currently exist in a guild."""

from __future__ import annotations

import enum
import logging
from collections.abc import Iterable, Mapping
from types import MappingProxyType

from pydantic import BaseModel, ConfigDict

_logger = logging.getLogger(__name__)

EVERYONE_ROLE_NAME = "@everyone"


class EntityKind(enum.Enum):
    ROLE = "role"
    CATEGORY = "category"
    TEXT = "text"
    VOICE = "voice"


class Role(BaseModel):
    """Role of a guild."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    permissions: frozenset[str] = frozenset()

    @property
    def kind(self) -> EntityKind:
        return EntityKind.ROLE


class Channel(BaseModel):
    """Category, text channel or voice channel of a guild."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    kind: EntityKind
    parent_id: int | None = None


Entity = Role | Channel


class GuildSnapshot:
    """Immutable snapshot of the roles and channels of a guild.

    Entities are indexed by ``(kind, name)``. If several entities share
    kind and name, the first one wins. ``None`` entries are skipped, as
    partially populated caches may contain them.
    """

    def __init__(
        self,
        roles: Iterable[Role | None] = (),
        channels: Iterable[Channel | None] = (),
    ) -> None:
        self._roles = tuple(role for role in roles if role is not None)
        self._channels = tuple(channel for channel in channels if channel is not None)

        index: dict[tuple[EntityKind, str], Entity] = {}
        for entity in (*self._roles, *self._channels):
            index.setdefault((entity.kind, entity.name), entity)
        self._index: Mapping[tuple[EntityKind, str], Entity] = MappingProxyType(index)

    @property
    def roles(self) -> tuple[Role, ...]:
        return self._roles

    @property
    def channels(self) -> tuple[Channel, ...]:
        return self._channels

    def get(self, kind: EntityKind, name: str) -> Entity | None:
        return self._index.get((kind, name))

    def including(self, entity: Entity) -> GuildSnapshot:
        """Return a new snapshot which additionally contains ``entity``."""
        if isinstance(entity, Role):
            return GuildSnapshot(roles=(*self._roles, entity), channels=self._channels)
        return GuildSnapshot(roles=self._roles, channels=(*self._channels, entity))

    def with_roles(self, roles: Iterable[Role | None]) -> GuildSnapshot:
        """Return a new snapshot with the role list replaced by ``roles``."""
        return GuildSnapshot(roles=roles, channels=self._channels)

    def __len__(self) -> int:
        return len(self._roles) + len(self._channels)

    def __repr__(self) -> str:
        return f"<GuildSnapshot roles={len(self._roles)} channels={len(self._channels)}>"


def find(kind: EntityKind, name: str, snapshot: GuildSnapshot) -> Entity | None:
    """Find an entity by kind and exact, case-sensitive name.

    Channels only match if their kind (category, text or voice) matches
    too, so a text channel and a voice channel may share a name.
    """
    entity = snapshot.get(kind, name)
    if entity is None:
        _logger.debug("No %s named %r", kind.value, name)
    return entity
