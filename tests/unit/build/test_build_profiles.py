"""Tests for build profiles."""

import io

from sdcbuild import output
from sdcbuild.build.build_profiles import PROFILES, BuildProfile, format_profile_banner, get_profile, print_profile_banner


def test_every_profile_has_flags():
    assert set(PROFILES) == set(BuildProfile)
    for profile in BuildProfile:
        assert get_profile(profile).name == profile.value


def test_release_and_watch_are_opposites():
    release = get_profile(BuildProfile.RELEASE)
    watch = get_profile(BuildProfile.WATCH)

    assert (release.minify, release.sourcemap) == (True, False)
    assert (watch.minify, watch.sourcemap) == (False, True)


def test_banner():
    assert format_profile_banner(BuildProfile.RELEASE) == "PROFILE=release MINIFY=on SOURCEMAP=off"
    assert format_profile_banner(BuildProfile.WATCH) == "PROFILE=watch MINIFY=off SOURCEMAP=on"


def test_print_banner_goes_through_output():
    stream = io.StringIO()
    output.init_timer(stream)

    print_profile_banner(BuildProfile.WATCH)

    assert "PROFILE=watch" in stream.getvalue()
    assert str(BuildProfile.WATCH) == "watch"
