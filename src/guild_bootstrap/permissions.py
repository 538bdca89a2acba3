"""Permission overwrites for categories and channels."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Literal

from pydantic import BaseModel, ConfigDict

from guild_bootstrap.snapshot import EntityKind

_logger = logging.getLogger(__name__)

# names match the attributes of `discord.Permissions`
Permission = Literal[
    "administrator",
    "manage_messages",
    "manage_channels",
    "manage_roles",
    "mute_members",
    "kick_members",
    "ban_members",
    "view_channel",
    "send_messages",
    "connect",
]


class PermissionOverwrite(BaseModel):
    """Allowed and denied permissions of a role in a category or channel."""

    model_config = ConfigDict(frozen=True)

    subject_role_id: int
    allow: frozenset[Permission] = frozenset()
    deny: frozenset[Permission] = frozenset()


class Visibility(BaseModel):
    """Access policy of a single category or channel."""

    model_config = ConfigDict(frozen=True)

    kind: Literal[EntityKind.CATEGORY, EntityKind.TEXT, EntityKind.VOICE]
    private: bool = False
    read_only: bool = False


def overwrites_for(
    visibility: Visibility,
    everyone_role_id: int,
    privileged_role_ids: Sequence[int | None],
) -> list[PermissionOverwrite]:
    """Compute the permission overwrites of a category or channel.

    Private entities are hidden from ``@everyone`` and visible to the
    privileged roles, voice channels additionally deny/allow connecting.
    Read-only text channels deny sending messages to ``@everyone``.
    Overwrites for the same role are merged into a single entry.

    :param visibility: Access policy of the entity
    :param everyone_role_id: ID of the ``@everyone`` role
    :param privileged_role_ids: IDs of the administrator and moderator
      roles, in this order. ``None`` marks an unresolved role, which is
      left out.
    :return: Overwrites ordered by first appearance of their role
    """
    allow_by_role: dict[int, set[Permission]] = {}
    deny_by_role: dict[int, set[Permission]] = {}

    def add(
        role_id: int, *, allow: Sequence[Permission] = (), deny: Sequence[Permission] = ()
    ) -> None:
        allow_by_role.setdefault(role_id, set()).update(allow)
        deny_by_role.setdefault(role_id, set()).update(deny)

    if visibility.private:
        hidden: tuple[Permission, ...] = ("view_channel",)
        if visibility.kind is EntityKind.VOICE:
            hidden = ("view_channel", "connect")

        add(everyone_role_id, deny=hidden)
        for role_id in privileged_role_ids:
            if role_id is None:
                _logger.debug("Privileged role is not resolved, skipping its overwrite")
                continue
            add(role_id, allow=hidden)

    if visibility.read_only and visibility.kind is EntityKind.TEXT:
        add(everyone_role_id, deny=("send_messages",))

    return [
        PermissionOverwrite(
            subject_role_id=role_id,
            allow=frozenset(allow_by_role[role_id]),
            deny=frozenset(deny_by_role[role_id]),
        )
        for role_id in allow_by_role
    ]
