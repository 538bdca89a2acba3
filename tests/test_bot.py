import json
from pathlib import Path
from unittest import mock

import pytest

from guild_bootstrap import bot
from guild_bootstrap.errors import AuthenticationError
from tests.fakes import FakeGuildClient


class FakeDiscordGuildClient:
    instances: list["FakeDiscordGuildClient"] = []  # noqa: RUF012 (mutable class attribute)

    def __init__(self, token: str, guild_id: int) -> None:
        self.token = token
        self.guild_id = guild_id
        self.guild = FakeGuildClient()
        self.instances.append(self)

    async def __aenter__(self) -> FakeGuildClient:
        return self.guild

    async def __aexit__(self, *args) -> None:
        pass


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    template = {
        "server": {
            "language_roles": ["English"],
            "functional_roles": [],
            "categories": [{"name": "General", "channels": [{"name": "chat", "type": "text"}]}],
        }
    }
    (tmp_path / "template.json").write_text(json.dumps(template), encoding="utf-8")
    (tmp_path / "config.toml").write_text('guild_id = 42\ntemplate_file = "template.json"\n')
    return tmp_path / "config.toml"


@pytest.fixture
def discord_client(monkeypatch: pytest.MonkeyPatch) -> type[FakeDiscordGuildClient]:
    FakeDiscordGuildClient.instances = []
    monkeypatch.setattr(bot, "DiscordGuildClient", FakeDiscordGuildClient)
    return FakeDiscordGuildClient


def run_main(monkeypatch: pytest.MonkeyPatch, *args: str) -> None:
    monkeypatch.setattr("sys.argv", ["guild-bootstrap", *args])
    bot.main()


def test_bootstrap_guild(monkeypatch, config_file, discord_client) -> None:
    monkeypatch.setenv("DISCORD_BOT_TOKEN", "MY_BOT_TOKEN")

    run_main(monkeypatch, "--config-file", str(config_file))

    (instance,) = discord_client.instances
    assert (instance.token, instance.guild_id) == ("MY_BOT_TOKEN", 42)
    assert [call.name for call in instance.guild.create_calls] == [
        "👑 Administrator",
        "🛠 Moderator",
        "English",
        "General",
        "chat",
    ]


def test_template_file_argument_overrides_config(
    monkeypatch, tmp_path, config_file, discord_client
) -> None:
    monkeypatch.setenv("DISCORD_BOT_TOKEN", "MY_BOT_TOKEN")
    other_template = {"server": {"language_roles": [], "functional_roles": [], "categories": []}}
    (tmp_path / "other.json").write_text(json.dumps(other_template), encoding="utf-8")

    run_main(
        monkeypatch,
        "--config-file",
        str(config_file),
        "--template-file",
        str(tmp_path / "other.json"),
    )

    (instance,) = discord_client.instances
    assert len(instance.guild.create_calls) == 2


def test_missing_token_exits_before_login(monkeypatch, config_file, discord_client) -> None:
    monkeypatch.delenv("DISCORD_BOT_TOKEN", raising=False)

    with pytest.raises(SystemExit) as exc_info:
        run_main(monkeypatch, "--config-file", str(config_file))

    assert exc_info.value.code == 1
    assert discord_client.instances == []


def test_invalid_template_exits_before_login(
    monkeypatch, tmp_path, config_file, discord_client
) -> None:
    monkeypatch.setenv("DISCORD_BOT_TOKEN", "MY_BOT_TOKEN")
    (tmp_path / "template.json").write_text('{"server": {}}', encoding="utf-8")

    with pytest.raises(SystemExit) as exc_info:
        run_main(monkeypatch, "--config-file", str(config_file))

    assert exc_info.value.code == 1
    assert discord_client.instances == []


def test_authentication_error_exits(monkeypatch, config_file) -> None:
    monkeypatch.setenv("DISCORD_BOT_TOKEN", "INVALID")
    failing_client = mock.MagicMock()
    failing_client.return_value.__aenter__.side_effect = AuthenticationError("Invalid token")
    monkeypatch.setattr(bot, "DiscordGuildClient", failing_client)

    with pytest.raises(SystemExit) as exc_info:
        run_main(monkeypatch, "--config-file", str(config_file))

    assert exc_info.value.code == 1
