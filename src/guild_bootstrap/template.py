"""Desired state of a guild, as described by a JSON template file."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Annotated, Literal, Self

from pydantic import AfterValidator, BaseModel, Field, ValidationError, model_validator

from guild_bootstrap.errors import ConfigurationError

_logger = logging.getLogger(__name__)


def _not_blank(name: str) -> str:
    if not name.strip():
        raise ValueError("Name must not be blank")
    return name


Name = Annotated[str, AfterValidator(_not_blank)]


class ChannelSpec(BaseModel):
    name: Name
    type: Literal["text", "voice"]
    private: bool = False
    read_only: bool = False
    topic: str | None = None

    @model_validator(mode="after")
    def verify_text_channel_name(self) -> Self:
        # Discord stores text channel names lowercased with hyphens instead of spaces
        if self.type == "text" and (
            self.name != self.name.lower() or any(char.isspace() for char in self.name)
        ):
            raise ValueError(
                f"Text channel name {self.name!r} must be lowercase and must not contain spaces"
            )
        return self


class Category(BaseModel):
    name: Name
    channels: list[ChannelSpec] = Field(default_factory=list)

    # nested categories are deprecated, new templates are flat
    children: list[Category] = Field(default_factory=list)


class ServerTemplate(BaseModel):
    language_roles: list[Name]
    functional_roles: list[Name]
    categories: list[Category]

    def role_names(self) -> list[str]:
        """Return all template role names in order, without duplicates."""
        return list(dict.fromkeys([*self.language_roles, *self.functional_roles]))


class TemplateFile(BaseModel):
    server: ServerTemplate


def load_template(path: Path) -> ServerTemplate:
    """Read and validate a template file.

    :param path: Path to a JSON file with the template under a
      top-level ``"server"`` key
    :return: The validated template
    :raises ConfigurationError: If the file is missing, is no valid
      JSON or does not match the template structure
    """
    _logger.info("Loading template from %s", path)
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(f"Cannot read template file '{path}': {e}") from e

    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Template file '{path}' is not valid JSON: {e}") from e

    try:
        template = TemplateFile.model_validate(data).server
    except ValidationError as e:
        raise ConfigurationError(f"Invalid template file '{path}':\n{e}") from e

    _logger.debug(
        "Template has %d roles and %d categories",
        len(template.role_names()),
        len(template.categories),
    )
    return template
