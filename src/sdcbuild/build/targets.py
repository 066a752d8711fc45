"""Build targets - the entry points handed to the bundler.

Two disjoint categories exist:

- shared targets: theme-wide entry points declared literally in config
- component targets: files under the components root matched by the
  component glob patterns (e.g. components/**/src/c-*.scss)

The declared set never changes during a process; the glob expansion is
redone on every build so components added while watching are picked up.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterable

from ..output import log_warning

logger = logging.getLogger(__name__)

STYLE_EXTENSIONS = (".scss", ".sass", ".css")
SCRIPT_EXTENSIONS = (".js", ".mjs", ".jsx", ".ts", ".tsx")


class TargetKind(Enum):
    """Kind of source an entry point compiles from."""

    STYLE = "style"
    SCRIPT = "script"

    @classmethod
    def for_path(cls, path: Path) -> "TargetKind | None":
        """Classify a source path by extension, or None if it is neither."""
        suffix = path.suffix.lower()
        if suffix in STYLE_EXTENSIONS:
            return cls.STYLE
        if suffix in SCRIPT_EXTENSIONS:
            return cls.SCRIPT
        return None


@dataclass(frozen=True)
class BuildTarget:
    """Single entry point.

    Attributes:
        path: Absolute path of the source file
        kind: Style or script
        component: True for component targets, False for shared targets
    """

    path: Path
    kind: TargetKind
    component: bool

    def relative_to(self, project_dir: Path) -> str:
        """Entry point as a POSIX path relative to the project (bundler form)."""
        return self.path.relative_to(project_dir).as_posix()


def discover_targets(
    project_dir: Path,
    shared_entries: Iterable[str],
    component_patterns: Iterable[str],
) -> list[BuildTarget]:
    """Expand declared entry points into build targets.

    Shared targets come first in declaration order, followed by component
    targets sorted by path. A path matched twice is only returned once.

    Args:
        project_dir: Theme root the entries are relative to
        shared_entries: Literal shared entry paths
        component_patterns: Glob patterns selecting component entries

    Returns:
        Ordered list of build targets
    """
    targets: list[BuildTarget] = []
    seen: set[Path] = set()

    for entry in shared_entries:
        path = project_dir / entry
        kind = TargetKind.for_path(path)
        if kind is None:
            log_warning(f"Skipping shared entry with unknown extension: {entry}")
            continue
        if not path.is_file():
            log_warning(f"Shared entry not found, skipping: {entry}")
            continue
        if path not in seen:
            seen.add(path)
            targets.append(BuildTarget(path=path, kind=kind, component=False))

    matched: set[Path] = set()
    for pattern in component_patterns:
        matched.update(p for p in project_dir.glob(pattern) if p.is_file())

    for path in sorted(matched):
        kind = TargetKind.for_path(path)
        if kind is None or path in seen:
            continue
        seen.add(path)
        targets.append(BuildTarget(path=path, kind=kind, component=True))

    logger.debug(f"Discovered {len(targets)} targets ({len(matched)} component matches)")
    return targets
