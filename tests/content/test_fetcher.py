"""Tests for marginalia.content.fetcher, github and web modules."""

from __future__ import annotations

import base64

import httpx
import pydantic as p
import pytest
import respx

from marginalia.content import ContentFetcher, GitHubRepositoryWalker, parse_repository_url, web
from marginalia.content.fetcher import raw_url
from marginalia.core.config import GitHubSettings, WebPageSettings
from marginalia.errors import ContentFetchFailed, ContentTooLarge, InvalidRepositoryUrl
from marginalia.model import FetchOptions, SubmissionKind

API = "https://api.github.com"

Repository = parse_repository_url("https://github.com/ada/portfolio")

Files: dict[str, str] = {
    "README.md": "# Portfolio\n",
    "src/app.py": "print('hello')\n",
    "src/util.js": "export const x = 1;\n",
}


def mock_repository(
    router: respx.MockRouter,
    files: dict[str, str] = Files,
    extra: tuple[tuple[str, int], ...] = (),
    ref: str = "main",
    truncated: bool = False,
) -> None:
    """Serve `ada/portfolio` from the mocked GitHub API."""
    sha = "c0ffee"
    router.get(f"{API}/repos/ada/portfolio").respond(json={"default_branch": "main"})
    router.get(f"{API}/repos/ada/portfolio/commits/{ref}").respond(
        json={
            "sha": sha,
            "commit": {"message": "first", "author": {"name": "Ada", "date": "2026-03-01T12:00:00Z"}},
        }
    )
    tree = [{"path": path, "type": "blob", "size": len(body)} for path, body in files.items()]
    tree += [{"path": path, "type": "blob", "size": size} for path, size in extra]
    router.get(f"{API}/repos/ada/portfolio/git/trees/{sha}").respond(json={"tree": tree, "truncated": truncated})
    for path, body in files.items():
        router.get(f"{API}/repos/ada/portfolio/contents/{path}", params={"ref": sha}).respond(
            json={"encoding": "base64", "content": base64.b64encode(body.encode()).decode()}
        )


@pytest.fixture
def walker(http_client: httpx.AsyncClient) -> GitHubRepositoryWalker:
    return GitHubRepositoryWalker(http_client, GitHubSettings())


@pytest.mark.anyio
class TestGitHubRepositoryWalker(object):
    """Tests for GitHubRepositoryWalker.walk()."""

    async def test_walk(self, fetcher: ContentFetcher) -> None:
        """Three files come back combined, with a tree, languages and the last commit."""
        with respx.mock(assert_all_called=False) as router:
            mock_repository(router, extra=(("node_modules/x/index.js", 10),))

            fetched = await fetcher.fetch(SubmissionKind.GitHub, reference="https://github.com/ada/portfolio")

        assert fetched.title == "ada/portfolio"
        assert [f.path for f in fetched.files] == ["README.md", "src/app.py", "src/util.js"]
        assert "## src/app.py\n\n```python\nprint('hello')\n```" in fetched.content
        assert fetched.structure is not None and "app.py" in fetched.structure
        assert fetched.metadata.total_files == 3
        assert fetched.metadata.total_size == sum(len(b) for b in Files.values())
        assert fetched.metadata.languages == {"Python": 1, "JavaScript": 1}
        assert fetched.metadata.last_commit is not None
        assert fetched.metadata.last_commit.author == "Ada"
        assert [(o.path, o.reason) for o in fetched.metadata.omitted] == [("node_modules/", "excluded")]
        assert not fetched.metadata.tree_truncated

    async def test_branch_and_path_options(self, fetcher: ContentFetcher) -> None:
        with respx.mock(assert_all_called=False) as router:
            mock_repository(router, ref="dev")

            fetched = await fetcher.fetch(
                SubmissionKind.GitHub,
                reference="https://github.com/ada/portfolio",
                options=FetchOptions(branch="dev", path="src"),
            )

        assert [f.path for f in fetched.files] == ["src/app.py", "src/util.js"]

    async def test_file_fetch_failure_is_omitted(self, walker: GitHubRepositoryWalker) -> None:
        """A file that cannot be fetched is recorded as omitted and the walk goes on."""
        with respx.mock(assert_all_called=False) as router:
            files = {path: body for path, body in Files.items() if path != "src/util.js"}
            mock_repository(router, files=files, extra=(("src/util.js", 20),))
            router.get(f"{API}/repos/ada/portfolio/contents/src/util.js").respond(500)

            fetched = await walker.walk(Repository)

        assert [f.path for f in fetched.files] == ["README.md", "src/app.py"]
        assert [(o.path, o.reason) for o in fetched.metadata.omitted] == [("src/util.js", "fetch_failed")]

    async def test_missing_repository(self, walker: GitHubRepositoryWalker) -> None:
        with respx.mock() as router:
            router.get(f"{API}/repos/ada/portfolio").respond(404)

            with pytest.raises(ContentFetchFailed) as excinfo:
                await walker.walk(Repository)

        assert "not found" in excinfo.value.message
        assert not excinfo.value.transient

    async def test_rate_limited_is_transient(self, walker: GitHubRepositoryWalker) -> None:
        with respx.mock() as router:
            router.get(f"{API}/repos/ada/portfolio").respond(403, headers={"x-ratelimit-remaining": "0"})

            with pytest.raises(ContentFetchFailed) as excinfo:
                await walker.walk(Repository)

        assert excinfo.value.transient

    async def test_nothing_readable(self, walker: GitHubRepositoryWalker) -> None:
        with respx.mock(assert_all_called=False) as router:
            mock_repository(router, files={}, extra=(("logo.png", 100),))

            with pytest.raises(ContentFetchFailed, match="no readable source files"):
                await walker.walk(Repository)

    async def test_truncated_tree_is_recorded(self, walker: GitHubRepositoryWalker) -> None:
        """Files GitHub left out of a truncated tree are flagged in the metadata."""
        with respx.mock(assert_all_called=False) as router:
            mock_repository(router, truncated=True)

            fetched = await walker.walk(Repository)

        assert fetched.metadata.total_files == 3
        assert fetched.metadata.tree_truncated

    async def test_malformed_body_is_transient(self, walker: GitHubRepositoryWalker) -> None:
        with respx.mock() as router:
            router.get(f"{API}/repos/ada/portfolio").respond(200, text="<html>unicorn</html>")

            with pytest.raises(ContentFetchFailed, match="malformed") as excinfo:
                await walker.walk(Repository)

        assert excinfo.value.transient

    async def test_commit_without_sha_is_transient(self, walker: GitHubRepositoryWalker) -> None:
        with respx.mock() as router:
            router.get(f"{API}/repos/ada/portfolio").respond(json={"default_branch": "main"})
            router.get(f"{API}/repos/ada/portfolio/commits/main").respond(json={"commit": {"message": "first"}})

            with pytest.raises(ContentFetchFailed, match="without a sha") as excinfo:
                await walker.walk(Repository)

        assert excinfo.value.transient

    async def test_token_is_sent(self, http_client: httpx.AsyncClient) -> None:
        walker = GitHubRepositoryWalker(http_client, GitHubSettings(), token=p.Secret("ghp_secret"))
        with respx.mock() as router:
            route = router.get(f"{API}/repos/ada/portfolio").respond(404)

            with pytest.raises(ContentFetchFailed):
                await walker.walk(Repository)

        assert route.calls.last.request.headers["Authorization"] == "Bearer ghp_secret"


Page = """
<html><head><title>My First  Post &amp; More</title><script>alert(1)</script></head>
<body>
<nav>Home | About</nav>
<article><h1>Hello</h1><p>I built a <b>portfolio</b>&nbsp;site.</p><script>steal()</script></article>
<footer>(c) me</footer>
</body></html>
"""


@pytest.mark.anyio
class TestContentFetcher(object):
    """Tests for ContentFetcher with blog and code submissions."""

    async def test_blog_page(self, fetcher: ContentFetcher) -> None:
        with respx.mock() as router:
            router.get("https://blog.example.com/post").respond(200, html=Page)

            fetched = await fetcher.fetch(SubmissionKind.Blog, reference="https://blog.example.com/post")

        assert fetched.title == "My First Post & More"
        assert fetched.content == "Hello I built a portfolio site."
        assert fetched.metadata.total_files == 1

    async def test_title_override(self, fetcher: ContentFetcher) -> None:
        with respx.mock() as router:
            router.get("https://blog.example.com/post").respond(200, html=Page)

            fetched = await fetcher.fetch(
                SubmissionKind.Blog, reference="https://blog.example.com/post", title="Week 3"
            )

        assert fetched.title == "Week 3"

    async def test_inline_code_is_sanitized(self, fetcher: ContentFetcher) -> None:
        fetched = await fetcher.fetch(
            SubmissionKind.Code, content='x = 1\n<script>alert("x")</script>\n<a onclick="go()">y</a>'
        )

        assert "<script" not in fetched.content
        assert "onclick" not in fetched.content
        assert fetched.content.startswith("x = 1")

    async def test_code_from_github_blob(self, fetcher: ContentFetcher) -> None:
        with respx.mock() as router:
            route = router.get("https://raw.githubusercontent.com/ada/portfolio/main/app.py").respond(
                200, text="print('hi')\n"
            )

            fetched = await fetcher.fetch(
                SubmissionKind.Code, reference="https://github.com/ada/portfolio/blob/main/app.py"
            )

        assert route.called
        assert fetched.content == "print('hi')\n"

    async def test_http_error(self, fetcher: ContentFetcher) -> None:
        with respx.mock() as router:
            router.get("https://blog.example.com/post").respond(404)

            with pytest.raises(ContentFetchFailed) as excinfo:
                await fetcher.fetch(SubmissionKind.Blog, reference="https://blog.example.com/post")

        assert excinfo.value.details["status"] == 404
        assert not excinfo.value.transient

    async def test_unreachable_is_transient(self, fetcher: ContentFetcher) -> None:
        with respx.mock() as router:
            router.get("https://blog.example.com/post").mock(side_effect=httpx.ConnectError("refused"))

            with pytest.raises(ContentFetchFailed) as excinfo:
                await fetcher.fetch(SubmissionKind.Blog, reference="https://blog.example.com/post")

        assert excinfo.value.transient

    async def test_too_large(self, http_client: httpx.AsyncClient) -> None:
        github = GitHubRepositoryWalker(http_client, GitHubSettings())
        fetcher = ContentFetcher(http_client, github, WebPageSettings(max_content_length=10))
        with respx.mock() as router:
            router.get("https://blog.example.com/post").respond(200, html=Page)

            with pytest.raises(ContentTooLarge):
                await fetcher.fetch(SubmissionKind.Blog, reference="https://blog.example.com/post")

    async def test_empty_content(self, fetcher: ContentFetcher) -> None:
        with pytest.raises(ContentFetchFailed, match="no readable content"):
            await fetcher.fetch(SubmissionKind.Blog, content="   <script>x</script>  ")

    async def test_missing_reference(self, fetcher: ContentFetcher) -> None:
        with pytest.raises(ContentFetchFailed):
            await fetcher.fetch(SubmissionKind.GitHub)
        with pytest.raises(InvalidRepositoryUrl):
            await fetcher.fetch(SubmissionKind.GitHub, reference="https://gitlab.com/ada/portfolio")


class TestWeb(object):
    """Tests for marginalia.content.web helpers."""

    def test_extract_prefers_main_region(self) -> None:
        html = "<body><div>menu</div><main><p>Body text</p></main></body>"

        assert web.extract_text(html) == "Body text"

    def test_extract_falls_back_to_body(self) -> None:
        assert web.extract_text("<body><p>a</p>\n\n<p>b</p></body>") == "a b"

    def test_extract_title_missing(self) -> None:
        assert web.extract_title("<p>x</p>") is None

    def test_sanitize(self) -> None:
        dirty = "<iframe src=x></iframe><a href=\"javascript:go()\" onmouseover='x()'>ok</a>"

        assert web.sanitize(dirty) == '<a href="go()" >ok</a>'

    def test_raw_url(self) -> None:
        assert raw_url("https://example.com/a.py") == "https://example.com/a.py"
        assert raw_url("https://github.com/o/r/blob/dev/a/b.py") == "https://raw.githubusercontent.com/o/r/dev/a/b.py"
