"""Bundler contract and the esbuild/sass implementation.

Public API:
    EsbuildBundler: Bundler driving the esbuild CLI, with SassPlugin for styles.
    BuildOptions, BuildResult, Metafile, OutputMeta: the contract's data.
    BuildEndHook, EntryLoader: plugin protocols.
"""

from .esbuild import EsbuildBundler, EsbuildContext
from .models import BuildOptions, BuildResult, Metafile, OutputMeta
from .plugins import BuildEndHook, Bundler, EntryLoader, IncrementalBuild
from .sass import SassPlugin

__all__ = [
    "BuildEndHook",
    "BuildOptions",
    "BuildResult",
    "Bundler",
    "EntryLoader",
    "EsbuildBundler",
    "EsbuildContext",
    "IncrementalBuild",
    "Metafile",
    "OutputMeta",
    "SassPlugin",
]
