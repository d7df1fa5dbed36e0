"""Tests for tree sources and the retry helper."""

import pytest
import requests

from flowmap.exceptions import AuthorizationError, ErrorCode, ExternalDependencyError, ValidationError
from flowmap.sources import (
    FileEntry,
    GitHubTreeSource,
    LocalTreeSource,
    MemoryTreeSource,
    call_with_retry,
    git_blob_sha,
)


class FakeResponse:
    def __init__(self, status_code=200, body=None, content=b"", text=""):
        self.status_code = status_code
        self._body = body
        self.content = content
        self.text = text

    def json(self):
        return self._body


class FakeSession:
    """Routes GETs by URL suffix to canned responses."""

    def __init__(self, routes=None, error=None):
        self.routes = routes or {}
        self.error = error
        self.requests = []

    def get(self, url, headers=None, params=None, timeout=None):
        self.requests.append({"url": url, "headers": headers, "params": params})
        if self.error is not None:
            raise self.error
        for suffix, response in self.routes.items():
            if url.endswith(suffix):
                return response
        return FakeResponse(404, text="Not Found")


class TestCallWithRetry:
    def test_retries_then_succeeds(self):
        attempts = []
        delays = []

        def flaky():
            attempts.append(1)
            if len(attempts) < 3:
                raise ExternalDependencyError("502")
            return "ok"

        assert call_with_retry(flaky, retries=2, backoff_seconds=0.25, sleep=delays.append) == "ok"
        assert delays == [0.25, 0.5]

    def test_exhausted_retries_reraise(self):
        def always():
            raise ExternalDependencyError("down")

        with pytest.raises(ExternalDependencyError):
            call_with_retry(always, retries=1, backoff_seconds=0, sleep=lambda _: None)

    def test_non_retryable_not_retried(self):
        calls = []

        def missing():
            calls.append(1)
            raise ExternalDependencyError("404", retryable=False)

        with pytest.raises(ExternalDependencyError):
            call_with_retry(missing, retries=5, backoff_seconds=0, sleep=lambda _: None)
        assert len(calls) == 1

    def test_authorization_never_retried(self):
        calls = []

        def denied():
            calls.append(1)
            raise AuthorizationError("no")

        with pytest.raises(AuthorizationError):
            call_with_retry(denied, retries=5, backoff_seconds=0, sleep=lambda _: None)
        assert len(calls) == 1


class TestGitHubTreeSource:
    def test_resolve_commit_and_auth_header(self):
        session = FakeSession({"/repos/acme/shop/commits/main": FakeResponse(body={"sha": "abc"})})
        source = GitHubTreeSource("https://gh.example/", session=session)
        assert source.resolve_commit("acme/shop", "main", "tok") == "abc"
        assert session.requests[0]["headers"]["Authorization"] == "Bearer tok"

    def test_list_tree_skips_submodules(self):
        tree = {
            "tree": [
                {"path": "src", "type": "tree", "sha": "t1"},
                {"path": "src/a.ts", "type": "blob", "sha": "b1", "size": 10},
                {"path": "vendor/lib", "type": "commit", "sha": "c1"},
            ]
        }
        session = FakeSession({"/git/trees/abc": FakeResponse(body=tree)})
        entries = GitHubTreeSource(session=session).list_tree("acme/shop", "abc")
        assert entries == [
            FileEntry("src", "t1", 0, "tree"),
            FileEntry("src/a.ts", "b1", 10, "blob"),
        ]
        assert session.requests[0]["params"] == {"recursive": "1"}

    def test_get_content_raw(self):
        session = FakeSession({"/contents/src/a.ts": FakeResponse(content=b"export {}")})
        assert GitHubTreeSource(session=session).get_content("acme/shop", "abc", "src/a.ts") == b"export {}"

    def test_private_repo_without_token_is_authorization_error(self):
        source = GitHubTreeSource(session=FakeSession())
        with pytest.raises(AuthorizationError):
            source.resolve_commit("acme/private", "main")

    def test_missing_file_not_retryable(self):
        source = GitHubTreeSource(session=FakeSession())
        with pytest.raises(ExternalDependencyError) as exc_info:
            source.get_content("acme/shop", "abc", "nope.ts", "tok")
        assert exc_info.value.retryable is False
        assert exc_info.value.status_code == 404

    def test_bad_token(self):
        session = FakeSession({"/commits/main": FakeResponse(401)})
        with pytest.raises(AuthorizationError):
            GitHubTreeSource(session=session).resolve_commit("acme/shop", "main", "bad")

    def test_rate_limit_is_retryable(self):
        session = FakeSession({"/commits/main": FakeResponse(403, text="API rate limit exceeded")})
        with pytest.raises(ExternalDependencyError) as exc_info:
            GitHubTreeSource(session=session).resolve_commit("acme/shop", "main", "tok")
        assert exc_info.value.code == ErrorCode.FM202
        assert exc_info.value.retryable

    def test_timeout(self):
        source = GitHubTreeSource(session=FakeSession(error=requests.Timeout("slow")))
        with pytest.raises(ExternalDependencyError) as exc_info:
            source.resolve_commit("acme/shop", "main", "tok")
        assert exc_info.value.code == ErrorCode.FM201

    def test_server_error_retryable(self):
        session = FakeSession({"/commits/main": FakeResponse(502)})
        with pytest.raises(ExternalDependencyError) as exc_info:
            GitHubTreeSource(session=session).resolve_commit("acme/shop", "main", "tok")
        assert exc_info.value.retryable


class TestLocalTreeSource:
    def _project(self, root):
        (root / "app" / "about").mkdir(parents=True)
        (root / "app" / "page.tsx").write_text("export default function Home() {}\n")
        (root / "app" / "about" / "page.tsx").write_text("export default function About() {}\n")
        (root / "node_modules" / "x").mkdir(parents=True)
        (root / "node_modules" / "x" / "index.js").write_text("//")
        (root / ".env").write_text("SECRET=1")
        return root

    def test_list_tree_skips_dependencies_and_hidden(self, tmp_path):
        source = LocalTreeSource(self._project(tmp_path))
        paths = [e.path for e in source.list_tree("local", "HEAD")]
        assert paths == ["app/about/page.tsx", "app/page.tsx"]

    def test_blob_sha_matches_git(self, tmp_path):
        source = LocalTreeSource(self._project(tmp_path))
        entry = next(e for e in source.list_tree("local", "HEAD") if e.path == "app/page.tsx")
        assert entry.sha == git_blob_sha(b"export default function Home() {}\n")

    def test_known_blob_sha(self):
        # git hash-object of an empty file
        assert git_blob_sha(b"") == "e69de29bb2d1d6434b8b29ae775ad8c2e48c5391"

    def test_resolve_commit_without_git_is_content_digest(self, tmp_path):
        root = self._project(tmp_path)
        first = LocalTreeSource(root).resolve_commit("local", "HEAD")
        assert first == LocalTreeSource(root).resolve_commit("local", "HEAD")
        assert len(first) == 40

        (root / "app" / "page.tsx").write_text("export default function Home() { return 1 }\n")
        assert LocalTreeSource(root).resolve_commit("local", "HEAD") != first

    def test_path_escape_rejected(self, tmp_path):
        source = LocalTreeSource(self._project(tmp_path))
        with pytest.raises(ValidationError):
            source.get_content("local", "HEAD", "../outside.txt")

    def test_not_a_directory(self, tmp_path):
        with pytest.raises(ValidationError):
            LocalTreeSource(tmp_path / "missing")


class TestMemoryTreeSource:
    def test_counts_calls(self):
        source = MemoryTreeSource()
        source.put("o/r", "main", "c1", {"a.ts": "x"})
        assert source.resolve_commit("o/r", "main") == "c1"
        assert [e.path for e in source.list_tree("o/r", "c1")] == ["a.ts"]
        assert source.get_content("o/r", "c1", "a.ts") == b"x"
        assert source.calls == {"resolve_commit": 1, "list_tree": 1, "get_content": 1}

    def test_required_token(self):
        source = MemoryTreeSource(required_token="secret")
        source.put("o/r", "main", "c1", {})
        with pytest.raises(AuthorizationError):
            source.resolve_commit("o/r", "main")
        assert source.resolve_commit("o/r", "main", "secret") == "c1"

    def test_unknown_branch(self):
        with pytest.raises(ExternalDependencyError) as exc_info:
            MemoryTreeSource().resolve_commit("o/r", "nope")
        assert not exc_info.value.retryable
