"""Create the roles, categories and channels of a template which are missing in a guild."""

from __future__ import annotations

import logging
from collections.abc import Collection

from guild_bootstrap.client import GuildClient
from guild_bootstrap.errors import RemoteOperationError
from guild_bootstrap.permissions import (
    Permission,
    PermissionOverwrite,
    Visibility,
    overwrites_for,
)
from guild_bootstrap.snapshot import (
    EVERYONE_ROLE_NAME,
    Channel,
    EntityKind,
    GuildSnapshot,
    Role,
    find,
)
from guild_bootstrap.template import Category, ChannelSpec, ServerTemplate

_logger = logging.getLogger(__name__)

AUDIT_REASON = "Bootstrap from template"

ROLE_ADMINISTRATOR = "👑 Administrator"
ROLE_MODERATOR = "🛠 Moderator"

PRIVILEGED_ROLES: dict[str, list[Permission]] = {
    ROLE_ADMINISTRATOR: ["administrator"],
    ROLE_MODERATOR: [
        "manage_messages",
        "manage_channels",
        "manage_roles",
        "mute_members",
        "kick_members",
        "ban_members",
    ],
}

RESTRICTED_NAME_SENTINELS = ("VIP", "DISCIPLINE", "ADMIN")

SUBCATEGORY_SEPARATOR = " — "


def is_restricted_category_name(name: str) -> bool:
    """Check if a category name marks a private area (case-insensitive)."""
    upper_name = name.upper()
    return any(sentinel in upper_name for sentinel in RESTRICTED_NAME_SENTINELS)


class Reconciler:
    """Bring a guild to the state of a template by creating missing entities only.

    Existing entities are never modified or deleted. All calls are
    awaited one after another: roles must exist before overwrites can
    reference them, categories before channels can be put in them.
    """

    def __init__(self, client: GuildClient, *, reason: str = AUDIT_REASON) -> None:
        self.client = client
        self.reason = reason
        self.snapshot = GuildSnapshot()

        self._everyone_role_id: int | None = None
        self._privileged_role_ids: list[int | None] = []

    async def reconcile(self, template: ServerTemplate) -> GuildSnapshot:
        """Create everything in ``template`` which does not exist yet.

        :return: Snapshot of the guild after reconciliation
        :raises RemoteOperationError: If any remote call fails. The run
          stops immediately, a later run picks up where it stopped.
        """
        _logger.info("Fetching roles and channels")
        self.snapshot = GuildSnapshot(
            roles=await self.client.list_roles(),
            channels=await self.client.list_channels(),
        )

        _logger.info("Configuring roles")
        await self.ensure_roles(template)

        _logger.info("Refreshing roles")
        self.snapshot = self.snapshot.with_roles(await self.client.list_roles())
        self.resolve_permission_roles()

        _logger.info("Configuring categories and channels")
        for category_template in template.categories:
            await self.ensure_category_tree(
                category_template,
                name=category_template.name,
                is_private=is_restricted_category_name(category_template.name),
            )

        return self.snapshot

    async def ensure_roles(self, template: ServerTemplate) -> None:
        for name, permissions in PRIVILEGED_ROLES.items():
            await self.ensure_role(name, permissions)

        for name in template.role_names():
            if name in PRIVILEGED_ROLES:
                continue
            await self.ensure_role(name)

    async def ensure_role(self, name: str, permissions: Collection[Permission] = ()) -> Role:
        role = find(EntityKind.ROLE, name, self.snapshot)
        if role is not None:
            _logger.info("Role exists: %s", name)
            return role

        role = await self.client.create_role(name, permissions, reason=self.reason)
        self.snapshot = self.snapshot.including(role)
        _logger.info("Role created: %s", name)
        return role

    def resolve_permission_roles(self) -> None:
        everyone = find(EntityKind.ROLE, EVERYONE_ROLE_NAME, self.snapshot)
        if everyone is None:
            raise RemoteOperationError(f"Guild has no {EVERYONE_ROLE_NAME!r} role")
        self._everyone_role_id = everyone.id

        self._privileged_role_ids = []
        for name in PRIVILEGED_ROLES:
            role = find(EntityKind.ROLE, name, self.snapshot)
            if role is None:
                _logger.warning("Role %s not found, it gets no access to private channels", name)
            self._privileged_role_ids.append(None if role is None else role.id)

    async def ensure_category_tree(
        self, template: Category, *, name: str, is_private: bool
    ) -> None:
        """Ensure a category, its channels and its nested categories."""
        category = await self.ensure_category(name, is_private=is_private)

        for channel_template in template.channels:
            await self.ensure_channel(channel_template, category=category)

        for child_template in template.children:
            # nested categories are flattened and keep the privacy of their parent
            await self.ensure_category_tree(
                child_template,
                name=f"{name}{SUBCATEGORY_SEPARATOR}{child_template.name}",
                is_private=is_private,
            )

    async def ensure_category(self, name: str, *, is_private: bool) -> Channel:
        category = find(EntityKind.CATEGORY, name, self.snapshot)
        if category is not None:
            _logger.info("Category exists: %s", name)
            return category

        overwrites = self.overwrites_for(Visibility(kind=EntityKind.CATEGORY, private=is_private))
        category = await self.client.create_category(
            name, overwrites=overwrites, reason=self.reason
        )
        self.snapshot = self.snapshot.including(category)
        _logger.info("Category created: %s", name)
        return category

    async def ensure_channel(self, template: ChannelSpec, *, category: Channel) -> Channel:
        kind = EntityKind.TEXT if template.type == "text" else EntityKind.VOICE
        label = template.type.capitalize()

        channel = find(kind, template.name, self.snapshot)
        if channel is not None:
            _logger.info("%s exists: %s", label, template.name)
            return channel

        overwrites = self.overwrites_for(
            Visibility(kind=kind, private=template.private, read_only=template.read_only)
        )
        if kind is EntityKind.TEXT:
            channel = await self.client.create_text_channel(
                template.name,
                category_id=category.id,
                topic=template.topic or None,
                overwrites=overwrites,
                reason=self.reason,
            )
        else:
            channel = await self.client.create_voice_channel(
                template.name,
                category_id=category.id,
                overwrites=overwrites,
                reason=self.reason,
            )
        self.snapshot = self.snapshot.including(channel)
        _logger.info("%s created: %s (in %s)", label, template.name, category.name)
        return channel

    def overwrites_for(self, visibility: Visibility) -> list[PermissionOverwrite]:
        if self._everyone_role_id is None:
            raise RuntimeError("Roles are not resolved yet, call resolve_permission_roles() first")
        return overwrites_for(visibility, self._everyone_role_id, self._privileged_role_ids)
