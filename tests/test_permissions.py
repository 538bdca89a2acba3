import pytest

from guild_bootstrap.permissions import PermissionOverwrite, Visibility, overwrites_for
from guild_bootstrap.snapshot import EntityKind

EVERYONE = 1
ADMIN = 2
MOD = 3


@pytest.mark.parametrize(
    ("private", "read_only", "kind", "expected"),
    [
        (False, False, EntityKind.TEXT, []),
        (
            True,
            False,
            EntityKind.TEXT,
            [
                PermissionOverwrite(subject_role_id=EVERYONE, deny={"view_channel"}),
                PermissionOverwrite(subject_role_id=ADMIN, allow={"view_channel"}),
                PermissionOverwrite(subject_role_id=MOD, allow={"view_channel"}),
            ],
        ),
        (
            False,
            True,
            EntityKind.TEXT,
            [PermissionOverwrite(subject_role_id=EVERYONE, deny={"send_messages"})],
        ),
        (
            True,
            False,
            EntityKind.VOICE,
            [
                PermissionOverwrite(subject_role_id=EVERYONE, deny={"view_channel", "connect"}),
                PermissionOverwrite(subject_role_id=ADMIN, allow={"view_channel", "connect"}),
                PermissionOverwrite(subject_role_id=MOD, allow={"view_channel", "connect"}),
            ],
        ),
        (
            True,
            False,
            EntityKind.CATEGORY,
            [
                PermissionOverwrite(subject_role_id=EVERYONE, deny={"view_channel"}),
                PermissionOverwrite(subject_role_id=ADMIN, allow={"view_channel"}),
                PermissionOverwrite(subject_role_id=MOD, allow={"view_channel"}),
            ],
        ),
    ],
)
def test_overwrites(private, read_only, kind, expected) -> None:
    visibility = Visibility(kind=kind, private=private, read_only=read_only)

    assert overwrites_for(visibility, EVERYONE, [ADMIN, MOD]) == expected


def test_private_and_read_only_text_channel_merges_everyone_overwrite() -> None:
    visibility = Visibility(kind=EntityKind.TEXT, private=True, read_only=True)

    overwrites = overwrites_for(visibility, EVERYONE, [ADMIN, MOD])

    assert overwrites == [
        PermissionOverwrite(subject_role_id=EVERYONE, deny={"view_channel", "send_messages"}),
        PermissionOverwrite(subject_role_id=ADMIN, allow={"view_channel"}),
        PermissionOverwrite(subject_role_id=MOD, allow={"view_channel"}),
    ]


@pytest.mark.parametrize("kind", [EntityKind.VOICE, EntityKind.CATEGORY])
def test_read_only_applies_to_text_channels_only(kind: EntityKind) -> None:
    visibility = Visibility(kind=kind, read_only=True)

    assert overwrites_for(visibility, EVERYONE, [ADMIN, MOD]) == []


def test_unresolved_moderator_is_left_out() -> None:
    visibility = Visibility(kind=EntityKind.TEXT, private=True)

    overwrites = overwrites_for(visibility, EVERYONE, [ADMIN, None])

    assert overwrites == [
        PermissionOverwrite(subject_role_id=EVERYONE, deny={"view_channel"}),
        PermissionOverwrite(subject_role_id=ADMIN, allow={"view_channel"}),
    ]


def test_no_privileged_roles() -> None:
    visibility = Visibility(kind=EntityKind.VOICE, private=True)

    overwrites = overwrites_for(visibility, EVERYONE, [])

    assert overwrites == [
        PermissionOverwrite(subject_role_id=EVERYONE, deny={"view_channel", "connect"}),
    ]


def test_privileged_roles_keep_their_order() -> None:
    visibility = Visibility(kind=EntityKind.TEXT, private=True)

    overwrites = overwrites_for(visibility, EVERYONE, [MOD, ADMIN])

    assert [overwrite.subject_role_id for overwrite in overwrites] == [EVERYONE, MOD, ADMIN]


def test_role_visibility_is_rejected() -> None:
    with pytest.raises(ValueError):
        Visibility(kind=EntityKind.ROLE, private=True)
