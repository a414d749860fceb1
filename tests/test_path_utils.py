"""Tests for client path resolution and link building."""

import os
import sys
from pathlib import Path

import pytest

from browser.views import directory_href, display_name, display_path, file_href
from comicglass.errors import NotFound
from comicglass.path_utils import resolve_path, to_relative


@pytest.mark.parametrize("requested", ["", ".", "/", "./", "Marvel/.."])
def test_root_aliases_resolve_to_root(tmp_path, requested):
    assert resolve_path(requested, tmp_path) == str(tmp_path)


def test_relative_path_is_joined_under_root(tmp_path):
    assert resolve_path("Marvel/X-Men", tmp_path) == os.path.join(str(tmp_path), "Marvel", "X-Men")
    assert resolve_path("/Marvel/./X-Men/", tmp_path) == os.path.join(str(tmp_path), "Marvel", "X-Men")


@pytest.mark.parametrize("requested", ["..", "../etc", "Marvel/../../etc", "a/b/../../../x"])
def test_escaping_the_root_is_not_found(tmp_path, requested):
    with pytest.raises(NotFound):
        resolve_path(requested, tmp_path)


def test_surrounding_spaces_are_part_of_the_name(tmp_path):
    assert resolve_path(" lead.cbz", tmp_path) == os.path.join(str(tmp_path), " lead.cbz")
    assert resolve_path("Marvel/trail ", tmp_path) == os.path.join(str(tmp_path), "Marvel", "trail ")
    assert resolve_path("  ", tmp_path) == os.path.join(str(tmp_path), "  ")


def test_nul_byte_is_not_found(tmp_path):
    with pytest.raises(NotFound):
        resolve_path("a\x00b", tmp_path)


def test_to_relative_uses_forward_slashes(tmp_path):
    absolute = os.path.join(str(tmp_path), "Marvel", "X-Men.cbz")
    assert to_relative(absolute, tmp_path) == "Marvel/X-Men.cbz"


def test_hrefs_escape_names():
    assert directory_href("Marvel/X-Men & Co") == "?path=Marvel%2FX-Men%20%26%20Co"
    assert file_href("Marvel/Issue #1?.cbz") == "/Marvel/Issue%20%231%3F.cbz"
    assert file_href("./A.cbz") == "/A.cbz"
    assert file_href("") == "/"


def test_display_path():
    assert display_path("") == "./"
    assert display_path(".") == "./"
    assert display_path("Marvel/X-Men") == "Marvel/X-Men"


@pytest.mark.skipif(sys.platform == "win32", reason="filenames are not bytes on Windows")
def test_undecodable_names_are_escaped_byte_for_byte():
    name = os.fsdecode(b"bad\xff.cbz")

    assert directory_href(name) == "?path=bad%FF.cbz"
    assert file_href("Marvel/" + name) == "/Marvel/bad%FF.cbz"
    assert display_name(name) == "bad\ufffd.cbz"
    assert display_name("Ünïcode.cbz") == "Ünïcode.cbz"
