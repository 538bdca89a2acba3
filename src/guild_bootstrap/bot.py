from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path

from guild_bootstrap.client import DiscordGuildClient
from guild_bootstrap.config import load_config
from guild_bootstrap.errors import BootstrapError, ConfigurationError
from guild_bootstrap.reconciler import ROLE_ADMINISTRATOR, Reconciler
from guild_bootstrap.template import ServerTemplate, load_template

_logger = logging.getLogger(__name__)

DESCRIPTION = """\
Create the roles, categories and channels of a template in a Discord guild.

Requires the environment variable 'DISCORD_BOT_TOKEN' to be set.

It will:
- Add missing roles (including the administrator and moderator roles)
- Add missing categories
- Add missing text and voice channels
- Hide private categories and channels from @everyone

It will not:
- Update or delete roles, categories or channels

Applying the same template twice creates nothing on the second run.
"""


async def run_bootstrap(template: ServerTemplate, *, auth_token: str, guild_id: int) -> None:
    async with DiscordGuildClient(auth_token, guild_id) as client:
        snapshot = await Reconciler(client).reconcile(template)

    _logger.info("Initial creation complete, guild has %d roles and channels", len(snapshot))
    _logger.info("Assign yourself the %s role in the server settings", ROLE_ADMINISTRATOR)


def main() -> None:
    parser = argparse.ArgumentParser(
        description=DESCRIPTION,
        formatter_class=argparse.RawTextHelpFormatter,
    )
    parser.add_argument("--config-file", type=Path, required=True, help="Configuration file")
    parser.add_argument(
        "--template-file", type=Path, help="Template file (overrides the configuration)"
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        stream=sys.stdout,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        config = load_config(args.config_file)
        logging.getLogger().setLevel(config.log_level)

        if "DISCORD_BOT_TOKEN" not in os.environ:
            raise ConfigurationError("Missing environment variable 'DISCORD_BOT_TOKEN'")
        bot_auth_token = os.environ["DISCORD_BOT_TOKEN"]

        template = load_template(args.template_file or config.template_file)

        asyncio.run(run_bootstrap(template, auth_token=bot_auth_token, guild_id=config.guild_id))
    except BootstrapError as e:
        _logger.critical("%s: %s", e.__class__.__name__, e)
        sys.exit(1)
    except KeyboardInterrupt:
        _logger.info("Received KeyboardInterrupt, exiting...")
        sys.exit(1)


if __name__ == "__main__":
    main()
