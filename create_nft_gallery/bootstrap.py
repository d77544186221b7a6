"""Post-generation bootstrap: dependency install and git initialisation.

The install step is mandatory; a failing install aborts the run.  The git
step is best-effort: any failure is reported as a skip and swallowed.
"""

from __future__ import annotations

from pathlib import Path

from rich.markup import escape

from .errors import SubprocessError
from .utils import console, format_command, print_warning, run_command

DEFAULT_INSTALL_COMMAND = ["npm", "install"]


class GitError(Exception):
    """Raised when a git command fails."""

    def __init__(self, message: str, command: str = "", stderr: str = ""):
        self.command = command
        self.stderr = stderr
        super().__init__(message)


async def install_dependencies(
    project_dir: str | Path,
    command: list[str] | None = None,
    timeout: float | None = None,
) -> None:
    """Run the dependency install command inside *project_dir*.

    The command's output goes straight to the terminal.

    Raises:
        SubprocessError: If the command cannot be started or exits non-zero.
    """
    cmd = list(command or DEFAULT_INSTALL_COMMAND)
    cmd_str = format_command(cmd)
    console.print(f"\n[cyan]Installing dependencies[/cyan] ([bold]{cmd_str}[/bold])...")

    try:
        returncode, _, stderr = await run_command(
            cmd, cwd=project_dir, timeout=timeout, capture=False
        )
    except OSError as exc:
        raise SubprocessError(
            f"Could not run '{cmd_str}': {exc}", command=cmd_str
        ) from exc

    if returncode != 0:
        detail = f": {stderr}" if stderr else ""
        raise SubprocessError(
            f"'{cmd_str}' failed with exit code {returncode}{detail}",
            command=cmd_str,
            returncode=returncode,
        )


async def _run_git(*args: str, cwd: str | Path) -> tuple[str, str]:
    """Run a git command and return (stdout, stderr).

    Raises GitError if git is missing or the command exits non-zero.
    """
    cmd = ["git", *args]
    cmd_str = " ".join(cmd)
    try:
        returncode, stdout, stderr = await run_command(cmd, cwd=cwd)
    except OSError as exc:
        raise GitError(f"Could not run {cmd_str}: {exc}", command=cmd_str) from exc

    if returncode != 0:
        raise GitError(
            f"Git command failed (exit {returncode}): {cmd_str}\n{stderr}",
            command=cmd_str,
            stderr=stderr,
        )
    return stdout, stderr


async def init_git_repository(
    project_dir: str | Path,
    message: str = "Initial commit",
) -> bool:
    """Initialise a repository in *project_dir* and commit everything.

    Returns:
        ``True`` if the repository was created and committed, ``False`` if
        any git step failed (the failure is reported, never raised).
    """
    try:
        await _run_git("init", cwd=project_dir)
        await _run_git("add", ".", cwd=project_dir)
        await _run_git("commit", "-m", message, cwd=project_dir)
    except GitError as exc:
        print_warning("Git initialization skipped")
        console.print(f"[dim]{escape(str(exc))}[/dim]")
        return False

    console.print("[green]+[/green] Initialized git repository with an initial commit")
    return True
