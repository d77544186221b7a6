"""create-nft-gallery scaffolder -- turns template trees into a project.

This package composes the ``base`` template tree with one ``variants/<name>``
tree, merges their ``package.json`` templates and renders every ``.ejs``
file with the project's parameters.

Quick usage::

    from create_nft_gallery.config import Config
    from create_nft_gallery.scaffolder import ProjectGenerator

    config = Config(project_name="my-gallery", domain="mygallery", variant="manifold")
    project_path = await ProjectGenerator(config).generate()
"""

from .generator import ProjectGenerator, RenderParams, build_env_file
from .manifest import MERGE_POLICY, MergeStrategy, merge_manifests
from .store import TemplateStore, compose, compose_layers
from .templates import TemplateRenderer, render_all

__all__ = [
    "MERGE_POLICY",
    "MergeStrategy",
    "ProjectGenerator",
    "RenderParams",
    "TemplateRenderer",
    "TemplateStore",
    "build_env_file",
    "compose",
    "compose_layers",
    "merge_manifests",
    "render_all",
]
