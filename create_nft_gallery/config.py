"""create-nft-gallery configuration.

Centralised, typed configuration for a scaffolding run. All settings use
Pydantic v2 models so they can be validated at construction time and serialised
to/from JSON or environment variables without boiler-plate.
"""

from __future__ import annotations

import os
import shlex
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator

DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "scaffolder" / "templates"

DEFAULT_PROJECT_NAME = "nft-gallery"
DEFAULT_DOMAIN = "mygallery"
DEFAULT_VARIANT = "manifold"
DEFAULT_TEMPLATE_SUFFIX = ".ejs"


class Config(BaseModel):
    """Global configuration for one scaffolding run.

    Instances are typically created once by the CLI entry point (after the
    interactive prompts have filled in any missing answers) and then passed to
    ``ProjectGenerator`` and ``Pipeline``.
    """

    project_name: str = Field(default=DEFAULT_PROJECT_NAME)
    domain: str = Field(default=DEFAULT_DOMAIN, description="ArNS name the gallery is served from")
    variant: str = Field(default=DEFAULT_VARIANT, description="Name of the variant template tree")
    output_dir: Path = Field(default=Path("."), description="Parent directory of the project")
    template_dir: Path = Field(default=DEFAULT_TEMPLATE_DIR)
    template_suffix: str = Field(default=DEFAULT_TEMPLATE_SUFFIX, min_length=1)
    manifest_name: str = Field(default="package.json")

    # Free-form answers written to .env and exposed to templates.
    contract_address: str = Field(default="")
    rpc_endpoint: str = Field(default="")

    install_command: list[str] = Field(default_factory=lambda: ["npm", "install"])
    install_timeout: int | None = Field(
        default=None, ge=1, description="Install timeout in seconds (None waits forever)"
    )
    skip_install: bool = Field(default=False)
    skip_git: bool = Field(default=False)
    commit_message: str = Field(default="Initial commit")
    force: bool = Field(default=False, description="Scaffold into a non-empty directory")

    @field_validator("project_name")
    @classmethod
    def _check_project_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("project name must not be empty")
        if value in (".", "..") or "/" in value or "\\" in value:
            raise ValueError(f"project name must be a plain directory name, got '{value}'")
        return value

    @field_validator("install_command")
    @classmethod
    def _check_install_command(cls, value: list[str]) -> list[str]:
        if not value:
            raise ValueError("install command must not be empty")
        return value

    # ------------------------------------------------------------------
    # Derived paths (read-only properties)
    # ------------------------------------------------------------------

    @property
    def project_path(self) -> Path:
        """Directory the project is generated into."""
        return self.output_dir / self.project_name

    @property
    def manifest_template_name(self) -> str:
        """File name of the manifest template, e.g. ``package.json.ejs``."""
        return f"{self.manifest_name}{self.template_suffix}"

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------

    @classmethod
    def from_env(cls, **overrides: Any) -> "Config":
        """Build a ``Config`` from environment variables.

        Recognised variables (all optional):
            CNG_PROJECT_NAME, CNG_DOMAIN, CNG_VARIANT, CNG_OUTPUT_DIR,
            CNG_TEMPLATE_DIR, CNG_TEMPLATE_SUFFIX, CNG_INSTALL_COMMAND,
            CNG_INSTALL_TIMEOUT, CNG_SKIP_INSTALL, CNG_SKIP_GIT.

        Keyword arguments take precedence over the environment.
        """
        kwargs: dict[str, Any] = {}
        if os.environ.get("CNG_PROJECT_NAME"):
            kwargs["project_name"] = os.environ["CNG_PROJECT_NAME"]
        if os.environ.get("CNG_DOMAIN"):
            kwargs["domain"] = os.environ["CNG_DOMAIN"]
        if os.environ.get("CNG_VARIANT"):
            kwargs["variant"] = os.environ["CNG_VARIANT"]
        if os.environ.get("CNG_OUTPUT_DIR"):
            kwargs["output_dir"] = Path(os.environ["CNG_OUTPUT_DIR"])
        if os.environ.get("CNG_TEMPLATE_DIR"):
            kwargs["template_dir"] = Path(os.environ["CNG_TEMPLATE_DIR"])
        if os.environ.get("CNG_TEMPLATE_SUFFIX"):
            kwargs["template_suffix"] = os.environ["CNG_TEMPLATE_SUFFIX"]
        if os.environ.get("CNG_INSTALL_COMMAND"):
            kwargs["install_command"] = shlex.split(os.environ["CNG_INSTALL_COMMAND"])
        if os.environ.get("CNG_INSTALL_TIMEOUT"):
            kwargs["install_timeout"] = int(os.environ["CNG_INSTALL_TIMEOUT"])
        if os.environ.get("CNG_SKIP_INSTALL"):
            kwargs["skip_install"] = _env_flag(os.environ["CNG_SKIP_INSTALL"])
        if os.environ.get("CNG_SKIP_GIT"):
            kwargs["skip_git"] = _env_flag(os.environ["CNG_SKIP_GIT"])

        kwargs.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**kwargs)


def _env_flag(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")
