"""Build Profile Configuration.

A profile decides how the bundler emits output, independent of which entries
are built:

- release: one-shot build, minified, no source maps (default)
- watch: incremental development build, readable output with source maps

The profile is selected from the CLI watch flag once and carried in
ThemeConfig; nothing else in the pipeline inspects the watch flag to choose
bundler behaviour.
"""

from dataclasses import dataclass
from enum import Enum


class BuildProfile(Enum):
    """Build profile enum for type-safe profile selection."""

    RELEASE = "release"
    WATCH = "watch"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class ProfileFlags:
    """Bundler output switches controlled by a profile.

    Attributes:
        name: Profile identifier (matches BuildProfile enum value)
        description: Human-readable profile description
        minify: Whether scripts and styles are minified
        sourcemap: Whether source maps are written (and relocated)
    """

    name: str
    description: str
    minify: bool
    sourcemap: bool


PROFILES: dict[BuildProfile, ProfileFlags] = {
    BuildProfile.RELEASE: ProfileFlags(
        name="release",
        description="Minified one-shot build without source maps (default)",
        minify=True,
        sourcemap=False,
    ),
    BuildProfile.WATCH: ProfileFlags(
        name="watch",
        description="Readable incremental build with source maps",
        minify=False,
        sourcemap=True,
    ),
}


def get_profile(profile: BuildProfile) -> ProfileFlags:
    """Get profile configuration by enum."""
    return PROFILES[profile]


def format_profile_banner(profile: BuildProfile) -> str:
    """Format a build profile banner for display.

    Example:
        PROFILE=release MINIFY=on SOURCEMAP=off
    """
    flags = get_profile(profile)
    return " ".join(
        [
            f"PROFILE={profile.value}",
            f"MINIFY={'on' if flags.minify else 'off'}",
            f"SOURCEMAP={'on' if flags.sourcemap else 'off'}",
        ]
    )


def print_profile_banner(profile: BuildProfile) -> None:
    """Print the build profile banner through the output module."""
    from ..output import log

    log(format_profile_banner(profile))
