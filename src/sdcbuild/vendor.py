"""Vendor asset copying.

Component manifests may declare third-party stylesheets the component needs:

    # components/slider/slider.component.yml
    name: Slider
    vendorCss:
      node_modules/swiper/swiper-bundle.min.css: {}

Each declared file (path relative to the theme root) is copied to the shared
vendor directory (dist/css/vendor by default) under its base name only, so
templates can reference one stable location instead of node_modules.

Manifests are re-read on every run. Base names share one namespace across
all components; on a collision the later manifest (in path order) wins and a
warning is logged.
"""

import asyncio
import logging
import shutil
from pathlib import Path
from typing import Any

import yaml

from .config import ThemeConfig
from .errors import ErrorCollector
from .output import log_error, log_file, log_warning

logger = logging.getLogger(__name__)


class VendorAssetCopier:
    """Copies manifest-declared vendor assets into the shared output tree."""

    def __init__(self, config: ThemeConfig) -> None:
        self.config = config
        self.errors = ErrorCollector()

    def find_manifests(self) -> list[Path]:
        root = self.config.components_root
        if not root.is_dir():
            return []
        return sorted(p for p in root.glob(self.config.manifest_glob) if p.is_file())

    def read_vendor_assets(self, manifest: Path) -> list[str]:
        """Vendor asset paths declared by a manifest.

        Raises:
            OSError: If the manifest cannot be read
            yaml.YAMLError: If the manifest is not valid YAML
        """
        data: Any = yaml.safe_load(manifest.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            return []

        declared = data.get(self.config.manifest_vendor_key)
        if not declared:
            return []
        if isinstance(declared, dict):
            return [str(k) for k in declared]
        if isinstance(declared, list):
            return [str(v) for v in declared]

        log_warning(f"{self.config.relative(manifest)}: '{self.config.manifest_vendor_key}' must be a mapping or list")
        return []

    def copy(self) -> list[Path]:
        """Copy all declared vendor assets.

        Returns:
            Destination paths that were written
        """
        self.errors.clear()
        copied: list[Path] = []
        owners: dict[str, Path] = {}
        vendor_dir = self.config.vendor_dir

        for manifest in self.find_manifests():
            try:
                assets = self.read_vendor_assets(manifest)
            except (OSError, yaml.YAMLError) as e:
                record = self.errors.add_error("vendor", self.config.relative(manifest), e)
                log_error(f"Error copying vendor CSS: {record.format()}")
                continue

            for asset in assets:
                source = self.config.project_dir / asset
                name = Path(asset).name
                if name in owners and owners[name] != manifest:
                    log_warning(
                        f"Vendor asset '{name}' from {self.config.relative(manifest)} "
                        f"overwrites the one from {self.config.relative(owners[name])}"
                    )
                destination = vendor_dir / name
                try:
                    vendor_dir.mkdir(parents=True, exist_ok=True)
                    shutil.copy2(source, destination)
                except OSError as e:
                    record = self.errors.add_error("vendor", asset, e)
                    log_error(f"Error copying vendor CSS: {record.format()}")
                    continue
                owners[name] = manifest
                if destination not in copied:
                    copied.append(destination)
                log_file("vendor", f"{asset} -> {self.config.relative(destination)}")

        logger.debug(f"Copied {len(copied)} vendor asset(s)")
        return copied

    async def run(self) -> list[Path]:
        return await asyncio.to_thread(self.copy)
