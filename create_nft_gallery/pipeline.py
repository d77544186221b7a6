"""create-nft-gallery pipeline orchestrator.

Implements the scaffolding run as a sequence of steps:

Step 1: COMPOSE   -- Copy the base template, overlay the chosen variant.
Step 2: MERGE     -- Merge base and variant ``package.json`` templates.
Step 3: CONFIGURE -- Write the ``.env`` file.
Step 4: RENDER    -- Substitute parameters into every ``.ejs`` file.
Step 5: INSTALL   -- Run the dependency install command.
Step 6: GIT       -- Initialise a git repository (best-effort).

Usage::

    create-nft-gallery my-gallery --domain mygallery --variant manifold
    python -m create_nft_gallery --yes --skip-install
"""

from __future__ import annotations

import argparse
import asyncio
import sys
import time
from pathlib import Path
from typing import Any, Awaitable, Callable, Sequence

from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Prompt

from .bootstrap import init_git_repository, install_dependencies
from .config import DEFAULT_VARIANT, Config
from .scaffolder import ProjectGenerator, TemplateStore
from .utils import (
    STEP_NAMES,
    console,
    format_duration,
    print_error,
    print_step_header,
    print_success,
    print_summary_table,
)


# ---------------------------------------------------------------------------
# Pipeline Orchestrator
# ---------------------------------------------------------------------------


class Pipeline:
    """Runs every step of a scaffolding run in order.

    A failing step stops the run and its exception propagates to the caller;
    the project directory is left as it was at that point.  The git step never
    fails the run.

    Attributes:
        config: Configuration for this run.
        generator: The project generator doing the template work.
        state: Mutable dictionary that accumulates the result of each step.
    """

    def __init__(self, config: Config) -> None:
        self.config = config
        self.generator = ProjectGenerator(config)
        self.state: dict[str, Any] = {
            "steps_completed": [],
            "steps_skipped": [],
            "success": False,
        }

    def _steps(self) -> list[tuple[int, Callable[[], Awaitable[Any]] | None]]:
        return [
            (1, self.step_compose),
            (2, self.step_merge),
            (3, self.step_configure),
            (4, self.step_render),
            (5, None if self.config.skip_install else self.step_install),
            (6, None if self.config.skip_git else self.step_git),
        ]

    async def run(self) -> dict[str, Any]:
        """Execute every step and return the final state."""
        start = time.monotonic()

        console.print(
            Panel(
                f"[bold bright_cyan]create-nft-gallery[/bold bright_cyan]\n"
                f"Project : {escape(self.config.project_name)}\n"
                f"Domain  : {escape(self.config.domain)}\n"
                f"Variant : {escape(self.config.variant)}\n"
                f"Output  : {escape(str(self.generator.project_path.resolve()))}",
                title="[bold]Scaffold Start[/bold]",
                border_style="bright_cyan",
            )
        )

        for step_num, method in self._steps():
            step_name = STEP_NAMES[step_num]
            if method is None:
                self.state["steps_skipped"].append(step_num)
                continue

            print_step_header(step_num, step_name)
            step_start = time.monotonic()
            try:
                self.state[f"step{step_num}"] = await method()
            except Exception as exc:
                elapsed = time.monotonic() - step_start
                self.state[f"step{step_num}_error"] = str(exc)
                print_error(
                    f"Step {step_num} ({step_name}) FAILED after "
                    f"{format_duration(elapsed)}: {escape(str(exc))}"
                )
                raise

            self.state["steps_completed"].append(step_num)
            print_success(
                f"Step {step_num} ({step_name}) completed in "
                f"{format_duration(time.monotonic() - step_start)}"
            )

        self.state["success"] = True
        self.state["total_duration"] = format_duration(time.monotonic() - start)
        self._print_final_summary()
        return self.state

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    async def step_compose(self) -> dict[str, Any]:
        files = await self.generator.compose()
        console.print(f"  Copied {len(files)} template file(s) into {self.generator.project_path}")
        return {"files": len(files)}

    async def step_merge(self) -> dict[str, Any]:
        merged = await self.generator.merge_manifest()
        if merged is None:
            return {"merged": False}
        counts = {key: len(merged.get(key) or {}) for key in ("scripts", "dependencies", "devDependencies")}
        console.print(
            f"  {counts['dependencies']} dependencies, "
            f"{counts['devDependencies']} dev dependencies, {counts['scripts']} scripts"
        )
        return {"merged": True, **counts}

    async def step_configure(self) -> dict[str, Any]:
        path = await self.generator.write_env_file()
        console.print(f"  Wrote {path.name}")
        return {"env_file": str(path)}

    async def step_render(self) -> dict[str, Any]:
        rendered = await self.generator.render()
        root = self.generator.project_path
        for path in rendered:
            console.print(f"  [green]+[/green] {path.relative_to(root)}")
        return {"rendered": len(rendered)}

    async def step_install(self) -> dict[str, Any]:
        await install_dependencies(
            self.generator.project_path,
            self.config.install_command,
            timeout=self.config.install_timeout,
        )
        return {"command": " ".join(self.config.install_command)}

    async def step_git(self) -> dict[str, Any]:
        initialized = await init_git_repository(
            self.generator.project_path, self.config.commit_message
        )
        self.state["git_initialized"] = initialized
        return {"initialized": initialized}

    # ------------------------------------------------------------------
    # Summary
    # ------------------------------------------------------------------

    def _print_final_summary(self) -> None:
        name = self.config.project_name
        console.print()
        print_summary_table(
            {
                "Project": name,
                "Location": str(self.generator.project_path.resolve()),
                "Domain": self.config.domain,
                "Variant": self.config.variant,
                "Steps skipped": ", ".join(STEP_NAMES[s] for s in self.state["steps_skipped"]) or "-",
                "Duration": self.state["total_duration"],
            },
            title="Scaffold Summary",
        )
        console.print(
            f"Created [bold]{escape(name)}[/bold] as an NFT gallery on "
            f"[bold]{escape(self.config.domain)}[/bold] using the "
            f"[bold]{escape(self.config.variant)}[/bold] variant"
        )
        console.print("\nNext steps:")
        console.print(f"  cd {escape(name)}")
        if self.config.skip_install:
            console.print("  npm install")
        console.print("  npm run dev")


# ---------------------------------------------------------------------------
# Interactive prompts
# ---------------------------------------------------------------------------


def collect_answers(args: argparse.Namespace, defaults: Config) -> dict[str, Any]:
    """Fill in every value not given on the command line.

    Missing values are asked for interactively, unless ``--yes`` was passed,
    in which case the defaults are used.
    """
    interactive = not args.yes

    def ask(value: str | None, question: str, default: str, **kwargs: Any) -> str:
        if value is not None:
            return value
        if not interactive:
            return default
        return Prompt.ask(question, default=default, console=console, **kwargs)

    project_name = ask(args.project_name, "What is your project named?", defaults.project_name)

    variants = TemplateStore(defaults.template_dir).variants()
    variant_default = defaults.variant if defaults.variant in variants else (
        variants[0] if variants else DEFAULT_VARIANT
    )
    variant = ask(
        args.variant,
        "Which variant would you like to use?",
        variant_default,
        choices=variants or None,
    )

    domain = ask(args.domain, "What is your ArNS domain?", defaults.domain)
    contract_address = ask(
        args.contract_address,
        "Enter your NFT contract address (optional)",
        defaults.contract_address,
        show_default=False,
    )
    rpc_endpoint = ask(
        args.rpc_endpoint,
        "Enter your RPC endpoint URL (optional)",
        defaults.rpc_endpoint,
        show_default=False,
    )

    return {
        "project_name": project_name,
        "variant": variant,
        "domain": domain,
        "contract_address": contract_address,
        "rpc_endpoint": rpc_endpoint,
    }


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="create-nft-gallery",
        description=(
            "Create a new NFT gallery application for Arweave Name System (ArNS) domains"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  create-nft-gallery\n"
            "  create-nft-gallery my-gallery --domain mygallery --variant metaplex\n"
            "  create-nft-gallery my-gallery --yes --skip-install --skip-git\n"
        ),
    )
    parser.add_argument("project_name", nargs="?", default=None, help="Name of the project")
    parser.add_argument("--domain", metavar="AR-DOMAIN", default=None, help="Specify ArNS domain")
    parser.add_argument(
        "--variant",
        default=None,
        help="Specify the variant to use (e.g., manifold)",
    )
    parser.add_argument(
        "--directory", "-d",
        type=Path,
        default=None,
        help="Parent directory for the project (default: current directory)",
    )
    parser.add_argument(
        "--template-dir",
        type=Path,
        default=None,
        help="Use a custom template store (must contain base/ and variants/)",
    )
    parser.add_argument("--contract-address", default=None, help="NFT contract address")
    parser.add_argument("--rpc-endpoint", default=None, help="RPC endpoint URL")
    parser.add_argument("--skip-install", action="store_true", help="Do not install dependencies")
    parser.add_argument("--skip-git", action="store_true", help="Do not initialise a git repository")
    parser.add_argument(
        "--force", "-f",
        action="store_true",
        help="Scaffold into an existing non-empty directory",
    )
    parser.add_argument(
        "--yes", "-y",
        action="store_true",
        help="Accept defaults for every value not given on the command line",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> None:
    """CLI entry point for ``create-nft-gallery``."""
    args = build_parser().parse_args(argv)

    try:
        defaults = Config.from_env(
            output_dir=args.directory,
            template_dir=args.template_dir,
        )
        answers = collect_answers(args, defaults)
        settings = {**defaults.model_dump(), **answers}
        if args.skip_install:
            settings["skip_install"] = True
        if args.skip_git:
            settings["skip_git"] = True
        if args.force:
            settings["force"] = True
        config = Config(**settings)

        asyncio.run(Pipeline(config).run())
    except Exception as exc:
        console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
        sys.exit(1)


if __name__ == "__main__":
    main()
