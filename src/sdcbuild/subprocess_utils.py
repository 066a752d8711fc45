"""Subprocess utilities for running the Node tools the pipeline delegates to.

Tools are looked up in the project's node_modules/.bin first, then on PATH.
Every invocation goes through safe_run, which applies platform flags so no
console window flashes on Windows and child processes cannot read the
terminal's stdin.
"""

import shutil
import subprocess
import sys
from pathlib import Path
from typing import Any

from .errors import ToolNotFoundError


def get_subprocess_creation_flags() -> int:
    """Get platform-specific subprocess creation flags.

    Returns:
        - Windows: subprocess.CREATE_NO_WINDOW (prevents console window)
        - Other platforms: 0 (no special flags)
    """
    if sys.platform == "win32":
        return subprocess.CREATE_NO_WINDOW
    return 0


def find_node_tool(name: str, project_dir: Path) -> str:
    """Locate a Node CLI tool for a project.

    Args:
        name: Executable name (e.g. "esbuild", "sass", "stylelint")
        project_dir: Project root whose node_modules/.bin is searched first

    Returns:
        Path to the executable as a string

    Raises:
        ToolNotFoundError: If the tool is neither installed locally nor on PATH
    """
    bin_dir = project_dir / "node_modules" / ".bin"
    candidates = [bin_dir / f"{name}.cmd", bin_dir / name] if sys.platform == "win32" else [bin_dir / name]
    for candidate in candidates:
        if candidate.is_file():
            return str(candidate)

    found = shutil.which(name)
    if found:
        return found

    raise ToolNotFoundError(f"'{name}' not found in {bin_dir} or on PATH (try: npm install --save-dev {name})")


def safe_run(cmd: list[str], **kwargs: Any) -> subprocess.CompletedProcess:
    """Execute subprocess.run with platform-specific flags.

    Automatically applies:
    - CREATE_NO_WINDOW on Windows (prevents console window)
    - stdin=DEVNULL (prevents console input handle inheritance)

    Args:
        cmd: Command and arguments (same as subprocess.run)
        **kwargs: Additional arguments passed to subprocess.run

    Returns:
        CompletedProcess result from subprocess.run
    """
    default_flags = get_subprocess_creation_flags()

    if "creationflags" in kwargs:
        kwargs["creationflags"] = kwargs["creationflags"] | default_flags
    elif default_flags:
        kwargs["creationflags"] = default_flags

    if "stdin" not in kwargs:
        kwargs["stdin"] = subprocess.DEVNULL

    return subprocess.run(cmd, **kwargs)
