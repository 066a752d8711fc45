"""Build profiles and entry point discovery."""

from .build_profiles import BuildProfile, ProfileFlags, format_profile_banner, get_profile, print_profile_banner
from .targets import BuildTarget, TargetKind, discover_targets

__all__ = [
    "BuildProfile",
    "BuildTarget",
    "ProfileFlags",
    "TargetKind",
    "discover_targets",
    "format_profile_banner",
    "get_profile",
    "print_profile_banner",
]
