"""Tests for file selection: marginalia.content.language, tree and github.select_files."""

from __future__ import annotations

import pytest

from marginalia.content import language, parse_repository_url
from marginalia.content.github import select_files, TreeEntry
from marginalia.content.tree import render_tree
from marginalia.core.config import GitHubSettings
from marginalia.errors import InvalidRepositoryUrl


def blob(path: str, size: int = 100) -> TreeEntry:
    return TreeEntry(path=path, type="blob", size=size)


class TestLanguage(object):
    """Tests for marginalia.content.language."""

    @pytest.mark.parametrize(
        "path, expected",
        [
            ("src/app.py", "Python"),
            ("web/index.TSX", "TypeScript"),
            ("Dockerfile", "Dockerfile"),
            ("README.md", None),
        ],
    )
    def test_detect_language(self, path: str, expected: str | None) -> None:
        assert language.detect_language(path) == expected

    @pytest.mark.parametrize(
        "path",
        [
            "node_modules/react/index.js",
            "app/vendor/lib.php",
            "package-lock.json",
            "static/app.min.js",
            ".env.local",
            "keys/server.pem",
            "build/out.js",
        ],
    )
    def test_excluded(self, path: str) -> None:
        assert language.is_excluded(path)

    def test_not_excluded(self) -> None:
        assert not language.is_excluded("src/builder.py")
        assert not language.is_excluded("src/index.js")

    def test_is_code_file(self) -> None:
        assert language.is_code_file("Makefile")
        assert language.is_code_file("styles/site.scss")
        assert not language.is_code_file("logo.png")

    def test_file_type(self) -> None:
        assert language.file_type("a/b.rs") == "rust"
        assert language.file_type("a/b.scala") == "scala"
        assert language.file_type("Makefile") == "text"


class TestSelectFiles(object):
    """Tests for select_files()."""

    def test_skips_non_code_and_dependency_directories(self) -> None:
        """Each dependency directory is reported once, not once per file in it."""
        entries = [
            blob("src/app.py"),
            blob("logo.png"),
            blob("node_modules/a/index.js"),
            blob("node_modules/b/index.js"),
            TreeEntry(path="src", type="tree"),
        ]

        selected, omitted = select_files(entries, GitHubSettings())

        assert [e.path for e in selected] == ["src/app.py"]
        assert [(o.path, o.reason) for o in omitted] == [("node_modules/", "excluded")]

    def test_file_too_large(self) -> None:
        settings = GitHubSettings(max_file_size=1000)

        selected, omitted = select_files([blob("a.py", 500), blob("big.py", 5000)], settings)

        assert [e.path for e in selected] == ["a.py"]
        assert [(o.path, o.reason) for o in omitted] == [("big.py", "file_too_large")]

    def test_total_size_keeps_smallest(self) -> None:
        """Over the total budget the smallest files are kept until the next would not fit."""
        settings = GitHubSettings(max_file_size=1000, max_total_size=1000)
        entries = [blob("a.py", 600), blob("b.py", 300), blob("c.py", 400), blob("d.py", 200)]

        selected, omitted = select_files(entries, settings)

        assert [e.path for e in selected] == ["b.py", "c.py", "d.py"]
        assert [(o.path, o.reason) for o in omitted] == [("a.py", "total_size_exceeded")]

    def test_file_limit(self) -> None:
        settings = GitHubSettings(max_files=2)

        selected, omitted = select_files([blob("c.py"), blob("a.py"), blob("b.py")], settings)

        assert [e.path for e in selected] == ["a.py", "b.py"]
        assert [(o.path, o.reason) for o in omitted] == [("c.py", "file_limit_exceeded")]

    def test_path_prefix(self) -> None:
        entries = [blob("frontend/app.js"), blob("backend/app.py"), blob("frontend-old/app.js")]

        selected, _ = select_files(entries, GitHubSettings(), prefix="/frontend/")

        assert [e.path for e in selected] == ["frontend/app.js"]


class TestParseRepositoryUrl(object):
    """Tests for parse_repository_url()."""

    @pytest.mark.parametrize(
        "url, expected",
        [
            ("https://github.com/ada/portfolio", ("ada", "portfolio", None, None)),
            ("https://github.com/ada/portfolio.git", ("ada", "portfolio", None, None)),
            ("git@github.com:ada/portfolio.git", ("ada", "portfolio", None, None)),
            ("https://www.github.com/ada/portfolio/", ("ada", "portfolio", None, None)),
            ("https://github.com/ada/portfolio/tree/dev", ("ada", "portfolio", "dev", None)),
            ("https://github.com/ada/portfolio/tree/main/web/src", ("ada", "portfolio", "main", "web/src")),
        ],
    )
    def test_valid(self, url: str, expected: tuple[str, str, str | None, str | None]) -> None:
        r = parse_repository_url(url)

        assert (r.owner, r.repo, r.ref, r.path) == expected

    @pytest.mark.parametrize(
        "url",
        ["https://gitlab.com/ada/portfolio", "https://github.com/ada", "ftp://github.com/ada/portfolio", "portfolio"],
    )
    def test_invalid(self, url: str) -> None:
        with pytest.raises(InvalidRepositoryUrl):
            parse_repository_url(url)


def test_render_tree() -> None:
    rendered = render_tree(["src/a.py", "src/lib/b.py", "README.md"])

    assert rendered.splitlines() == [
        "├── src",
        "│   ├── a.py",
        "│   └── lib",
        "│       └── b.py",
        "└── README.md",
    ]
