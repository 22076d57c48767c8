"""Tests for projection glob matching."""

from __future__ import annotations

import pytest

from tiltshift.globbing import matches_glob


@pytest.mark.parametrize(
    ("path", "pattern"),
    [
        ("package.json", "*.json"),
        ("package.json", "package.json"),
        ("src/package.json", "**/package.json"),
        ("package.json", "**/package.json"),
        ("src/app/main.py", "src/**/*.py"),
        ("src/main.py", "src/**/*.py"),
        ("docs/guide.md", "docs/**"),
        ("config/app.yml", "config/*.{yml,yaml}"),
        ("lib/a.ts", "lib/?.ts"),
        ("lib/b.ts", "lib/[abc].ts"),
        ("./package.json", "package.json"),
        (".eslintrc.json", ".eslintrc.*"),
        (".github/workflows/ci.yml", ".github/**/*.yml"),
        ("a/.x/b.js", "a/.x/*.js"),
        ("src/.env.example", "src/.env*"),
    ],
)
def test_matches(path: str, pattern: str) -> None:
    assert matches_glob(path, pattern)


@pytest.mark.parametrize(
    ("path", "pattern"),
    [
        ("readme.md", "*.json"),
        ("src/package.json", "*.json"),
        ("src/app/main.py", "src/*.py"),
        ("config/app.toml", "config/*.{yml,yaml}"),
        ("lib/d.ts", "lib/[abc].ts"),
        ("lib/d.ts", "lib/[!d].ts"),
        (".eslintrc.json", "*.json"),
        ("a/.x/b.js", "**/*.js"),
        (".github/workflows/ci.yml", "**"),
        ("src/.hidden", "src/*"),
        ("lib/.a", "lib/?a"),
    ],
)
def test_does_not_match(path: str, pattern: str) -> None:
    assert not matches_glob(path, pattern)


def test_windows_separators_are_normalized() -> None:
    assert matches_glob("src\\app\\main.py", "src/**/*.py")


def test_wildcards_inside_a_segment_may_follow_a_dot() -> None:
    assert matches_glob("config/app.local.yml", "config/app.*.yml")
    assert matches_glob("src/module.test.ts", "**/*.test.ts")
