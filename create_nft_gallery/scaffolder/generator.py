"""Main scaffolding orchestrator.

Takes a ``Config`` and turns the template store into a finished gallery
project directory: compose the base and variant trees, merge their manifests,
write the ``.env`` file, then render every parametrized file.  Each step is
also exposed on its own so the pipeline can report them separately.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from ..config import Config
from ..errors import ProjectExistsError
from ..utils import is_empty_dir, print_warning, save_json, write_text
from .manifest import load_manifest, load_optional_manifest, merge_manifests
from .store import TemplateStore, compose_layers
from .templates import TemplateRenderer

DEPLOY_KEY_PLACEHOLDER = "a base64 of your arweave wallet key"

MANIFOLD_VARIANT = "manifold"


# ---------------------------------------------------------------------------
# Parameter set
# ---------------------------------------------------------------------------


class RenderParams(BaseModel):
    """Values substituted into every parametrized file."""

    name: str = Field(..., description="Project name")
    domain: str = Field(..., description="ArNS name")
    variant: str = Field(default=MANIFOLD_VARIANT)
    contract_address: str = Field(default="")
    rpc_endpoint: str = Field(default="")

    @property
    def include_manifold(self) -> bool:
        return self.variant == MANIFOLD_VARIANT

    @classmethod
    def from_config(cls, config: Config) -> "RenderParams":
        return cls(
            name=config.project_name,
            domain=config.domain,
            variant=config.variant,
            contract_address=config.contract_address,
            rpc_endpoint=config.rpc_endpoint,
        )

    def as_context(self) -> dict[str, Any]:
        """Build the template context, keyed by the names templates use."""
        return {
            "name": self.name,
            "projectName": self.name,
            "domain": self.domain,
            "variant": self.variant,
            "includeManifold": self.include_manifold,
            "ARNS_NAME": self.domain,
            "NFT_CONTRACT_ADDRESS": self.contract_address,
            "RPC_ENDPOINT": self.rpc_endpoint,
        }


def build_env_file(params: RenderParams) -> str:
    """Return the contents of the generated ``.env`` file."""
    return (
        f"# Environment variables for {params.name}\n"
        f"ARNS_NAME={params.domain}\n"
        f"NFT_CONTRACT_ADDRESS={params.contract_address}\n"
        f"RPC_ENDPOINT={params.rpc_endpoint}\n"
        f'DEPLOY_KEY="{DEPLOY_KEY_PLACEHOLDER}"\n'
    )


# ---------------------------------------------------------------------------
# Main generator
# ---------------------------------------------------------------------------


class ProjectGenerator:
    """Scaffolds one gallery project described by a ``Config``."""

    def __init__(self, config: Config) -> None:
        self.config = config
        self.store = TemplateStore(config.template_dir)
        self.renderer = TemplateRenderer(config.template_suffix)
        self.params = RenderParams.from_config(config)

    @property
    def project_path(self) -> Path:
        return self.config.project_path

    # -- Public API --------------------------------------------------------

    async def generate(self) -> Path:
        """Run every scaffolding step and return the project root."""
        await self.compose()
        await self.merge_manifest()
        await self.write_env_file()
        await self.render()
        return self.project_path

    async def compose(self) -> list[Path]:
        """Create the project directory and copy the template layers into it.

        The variant is resolved before anything is copied, so an unknown
        variant leaves the (empty) project directory untouched.
        """
        root = self.project_path
        if not self.config.force and not is_empty_dir(root):
            raise ProjectExistsError(root)
        await asyncio.to_thread(root.mkdir, parents=True, exist_ok=True)

        layers = self.store.layers(self.config.variant)
        return await compose_layers(layers, root)

    async def merge_manifest(self) -> dict[str, Any] | None:
        """Merge the base and variant manifest templates into the project.

        Returns:
            The merged manifest, or ``None`` when the base tree ships none.
        """
        name = self.config.manifest_template_name
        base_path = self.store.base_path / name
        if not base_path.is_file():
            print_warning(f"  No {name} in the base template, skipping manifest merge")
            return None

        base = await load_manifest(base_path)
        variant = await load_optional_manifest(
            self.store.variant_path(self.config.variant) / name
        )
        merged = merge_manifests(base, variant)
        await save_json(merged, self.project_path / name)
        return merged

    async def write_env_file(self) -> Path:
        """Write the ``.env`` file holding the deployment settings."""
        path = self.project_path / ".env"
        await asyncio.to_thread(write_text, path, build_env_file(self.params))
        return path

    async def render(self) -> list[Path]:
        """Render every parametrized file left in the project directory."""
        return await self.renderer.render_tree(self.project_path, self.params.as_context())
