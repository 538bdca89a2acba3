"""Access to the roles and channels of a Discord guild."""

from __future__ import annotations

import logging
from collections.abc import Collection, Sequence
from types import TracebackType
from typing import Protocol

import discord

from guild_bootstrap.errors import AuthenticationError, RemoteOperationError
from guild_bootstrap.permissions import Permission, PermissionOverwrite
from guild_bootstrap.snapshot import Channel, EntityKind, Role

# silence warning about missing discord voice support
# https://github.com/Rapptz/discord.py/issues/1719#issuecomment-437703581
discord.VoiceClient.warn_nacl = False

_logger = logging.getLogger(__name__)

_CHANNEL_KINDS = {
    discord.ChannelType.category: EntityKind.CATEGORY,
    discord.ChannelType.text: EntityKind.TEXT,
    discord.ChannelType.voice: EntityKind.VOICE,
}


class GuildClient(Protocol):
    """Operations the reconciler needs from a guild."""

    async def list_roles(self) -> Sequence[Role | None]: ...

    async def create_role(
        self, name: str, permissions: Collection[Permission], *, reason: str
    ) -> Role: ...

    async def list_channels(self) -> Sequence[Channel | None]: ...

    async def create_category(
        self, name: str, *, overwrites: Sequence[PermissionOverwrite], reason: str
    ) -> Channel: ...

    async def create_text_channel(
        self,
        name: str,
        *,
        category_id: int,
        topic: str | None,
        overwrites: Sequence[PermissionOverwrite],
        reason: str,
    ) -> Channel: ...

    async def create_voice_channel(
        self,
        name: str,
        *,
        category_id: int,
        overwrites: Sequence[PermissionOverwrite],
        reason: str,
    ) -> Channel: ...


def role_from_discord(role: discord.Role) -> Role:
    granted = frozenset(name for name, value in role.permissions if value)
    return Role(id=role.id, name=role.name, permissions=granted)


def channel_from_discord(channel: discord.abc.GuildChannel) -> Channel | None:
    """Convert a discord.py channel, or return None for unsupported channel types."""
    kind = _CHANNEL_KINDS.get(channel.type)
    if kind is None:
        return None
    return Channel(id=channel.id, name=channel.name, kind=kind, parent_id=channel.category_id)


class DiscordGuildClient:
    """Guild client talking to the Discord HTTP API via discord.py.

    Only logs in over HTTP, no gateway connection is opened. Use as an
    async context manager::

        async with DiscordGuildClient(token, guild_id) as client:
            roles = await client.list_roles()
    """

    def __init__(self, token: str, guild_id: int) -> None:
        self._token = token
        self._guild_id = guild_id
        self._client = discord.Client(intents=discord.Intents.none())
        self._guild: discord.Guild | None = None
        self._roles_by_id: dict[int, discord.Role] = {}

    async def __aenter__(self) -> DiscordGuildClient:
        try:
            await self._client.login(self._token)
            self._guild = await self._client.fetch_guild(self._guild_id)
        except discord.LoginFailure as e:
            await self._client.close()
            raise AuthenticationError("Invalid Discord bot token") from e
        except (discord.Forbidden, discord.NotFound) as e:
            await self._client.close()
            raise AuthenticationError(
                f"Cannot access guild {self._guild_id}, is the bot a member of it?"
            ) from e
        except discord.HTTPException as e:
            await self._client.close()
            raise RemoteOperationError(f"Failed to fetch guild {self._guild_id}: {e}") from e

        _logger.info("Logged in as %s, guild %r", self._client.user, self._guild.name)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        await self._client.close()

    @property
    def guild(self) -> discord.Guild:
        if self._guild is None:
            raise RuntimeError("Client is not logged in, use it as async context manager")
        return self._guild

    async def list_roles(self) -> list[Role]:
        try:
            roles = await self.guild.fetch_roles()
        except discord.HTTPException as e:
            raise RemoteOperationError(f"Failed to list roles: {e}") from e

        self._roles_by_id = {role.id: role for role in roles}
        return [role_from_discord(role) for role in roles]

    async def create_role(
        self, name: str, permissions: Collection[Permission], *, reason: str
    ) -> Role:
        try:
            role = await self.guild.create_role(
                name=name,
                permissions=discord.Permissions(**dict.fromkeys(permissions, True)),
                reason=reason,
            )
        except discord.HTTPException as e:
            raise RemoteOperationError(f"Failed to create role {name!r}: {e}") from e

        self._roles_by_id[role.id] = role
        return role_from_discord(role)

    async def list_channels(self) -> list[Channel | None]:
        try:
            channels = await self.guild.fetch_channels()
        except discord.HTTPException as e:
            raise RemoteOperationError(f"Failed to list channels: {e}") from e

        return [channel_from_discord(channel) for channel in channels]

    async def create_category(
        self, name: str, *, overwrites: Sequence[PermissionOverwrite], reason: str
    ) -> Channel:
        try:
            category = await self.guild.create_category(
                name, overwrites=self._to_discord_overwrites(overwrites), reason=reason
            )
        except discord.HTTPException as e:
            raise RemoteOperationError(f"Failed to create category {name!r}: {e}") from e

        return Channel(id=category.id, name=category.name, kind=EntityKind.CATEGORY)

    async def create_text_channel(
        self,
        name: str,
        *,
        category_id: int,
        topic: str | None,
        overwrites: Sequence[PermissionOverwrite],
        reason: str,
    ) -> Channel:
        kwargs = {} if topic is None else {"topic": topic}
        try:
            channel = await self.guild.create_text_channel(
                name,
                category=discord.Object(id=category_id, type=discord.CategoryChannel),
                overwrites=self._to_discord_overwrites(overwrites),
                reason=reason,
                **kwargs,
            )
        except discord.HTTPException as e:
            raise RemoteOperationError(f"Failed to create text channel {name!r}: {e}") from e

        return Channel(
            id=channel.id, name=channel.name, kind=EntityKind.TEXT, parent_id=category_id
        )

    async def create_voice_channel(
        self,
        name: str,
        *,
        category_id: int,
        overwrites: Sequence[PermissionOverwrite],
        reason: str,
    ) -> Channel:
        try:
            channel = await self.guild.create_voice_channel(
                name,
                category=discord.Object(id=category_id, type=discord.CategoryChannel),
                overwrites=self._to_discord_overwrites(overwrites),
                reason=reason,
            )
        except discord.HTTPException as e:
            raise RemoteOperationError(f"Failed to create voice channel {name!r}: {e}") from e

        return Channel(
            id=channel.id, name=channel.name, kind=EntityKind.VOICE, parent_id=category_id
        )

    def _to_discord_overwrites(
        self, overwrites: Sequence[PermissionOverwrite]
    ) -> dict[discord.Role, discord.PermissionOverwrite]:
        # discord.py sends overwrites for anything but a `discord.Role` as member overwrites
        result: dict[discord.Role, discord.PermissionOverwrite] = {}
        for overwrite in overwrites:
            target = self._roles_by_id.get(overwrite.subject_role_id)
            if target is None:
                raise RemoteOperationError(
                    f"Unknown role {overwrite.subject_role_id} in permission overwrites"
                )
            values = dict.fromkeys(overwrite.allow, True) | dict.fromkeys(overwrite.deny, False)
            result[target] = discord.PermissionOverwrite(**values)
        return result
