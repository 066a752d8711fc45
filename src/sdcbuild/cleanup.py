"""Pre-build cleanup.

Runs before every build and rebuild so nothing stale survives a renamed or
deleted source:

1. Empty the central output directory (create it if missing)
2. Delete relocated component artifacts and their source maps anywhere
   under the components root

Relocated artifacts are recognized by the component filename prefix plus a
compiled extension, and by NOT living under a source segment. Component
sources such as components/card/src/c-card.js are never touched.

Failures are logged and cleanup carries on; an unusable output directory
surfaces again when the bundler runs.
"""

import asyncio
import logging
import shutil
from pathlib import Path

from .config import ThemeConfig
from .output import log_error, log_file

logger = logging.getLogger(__name__)

ARTIFACT_SUFFIXES = (".css", ".js", ".css.map", ".js.map")


class CleanupStage:
    """Removes previous build output."""

    def __init__(self, config: ThemeConfig) -> None:
        self.config = config

    def is_relocated_artifact(self, path: Path) -> bool:
        """Whether path is a component artifact written by relocation."""
        name = path.name
        if not name.startswith(self.config.component_prefix):
            return False
        if not name.endswith(ARTIFACT_SUFFIXES):
            return False
        try:
            rel = path.relative_to(self.config.components_root)
        except ValueError:
            return False
        return self.config.src_dir not in rel.parts[:-1]

    def find_relocated_artifacts(self) -> list[Path]:
        root = self.config.components_root
        if not root.is_dir():
            return []
        pattern = f"{self.config.component_prefix}*"
        return sorted(p for p in root.rglob(pattern) if p.is_file() and self.is_relocated_artifact(p))

    def empty_output_dir(self) -> None:
        """Remove everything inside the output directory, keeping the directory itself."""
        output_dir = self.config.output_dir
        if not output_dir.exists():
            output_dir.mkdir(parents=True)
            return

        for child in output_dir.iterdir():
            try:
                if child.is_dir() and not child.is_symlink():
                    shutil.rmtree(child)
                else:
                    child.unlink()
            except OSError as e:
                log_error(f"Error cleaning up directory: {e}")

    def clean(self) -> list[Path]:
        """Run cleanup synchronously.

        Returns:
            Relocated artifacts that were deleted
        """
        try:
            self.empty_output_dir()
        except OSError as e:
            log_error(f"Error cleaning up directory: {e}")

        removed: list[Path] = []
        try:
            artifacts = self.find_relocated_artifacts()
        except OSError as e:
            log_error(f"Error cleaning up directory: {e}")
            return removed

        for path in artifacts:
            try:
                path.unlink()
            except FileNotFoundError:
                continue
            except OSError as e:
                log_error(f"Error cleaning up directory: {e}")
                continue
            removed.append(path)
            log_file("remove", self.config.relative(path))

        logger.debug(f"Cleanup removed {len(removed)} relocated artifact(s)")
        return removed

    async def run(self) -> list[Path]:
        return await asyncio.to_thread(self.clean)
