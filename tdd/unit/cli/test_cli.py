"""
Unit tests for the repoview command line client.

HTTP calls are answered by an httpx.MockTransport; nothing listens on a port.
"""
import os
import sys
from pathlib import Path

import httpx
import pytest
from click.testing import CliRunner

# Add cli to path for imports
cli_path = Path(__file__).parent.parent.parent.parent / "cli"
sys.path.insert(0, str(cli_path))

import repoview.cli as cli_module
from repoview.cli import cli, format_size


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def api(monkeypatch):
    """Route CLI requests to canned responses keyed by path."""
    routes: dict[str, httpx.Response] = {}
    seen: list[httpx.Request] = []
    real_client = httpx.Client

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return routes.get(request.url.path, httpx.Response(404, json={"detail": "Repository not found: x"}))

    def client_factory(**kwargs):
        return real_client(transport=httpx.MockTransport(handler), **kwargs)

    monkeypatch.setattr(cli_module.httpx, "Client", client_factory)
    monkeypatch.setenv("REPOVIEW_SERVER", "http://repoview.test/")
    return routes, seen


class TestFormatSize:
    """Tests for format_size()."""

    @pytest.mark.parametrize("size,expected", [
        (None, ""), (0, "0 B"), (1023, "1023 B"), (2048, "2.0 KB"), (5 * 1024 * 1024, "5.0 MB"),
    ])
    def test_units(self, size, expected):
        assert format_size(size) == expected


class TestBrowseCommands:
    """Tests for repos / ls / cat / log / show."""

    def test_repos_table(self, runner, api):
        routes, _ = api
        routes["/api/repos"] = httpx.Response(200, json=[
            {"name": "site", "is_public": True, "description": "Website", "last_commit": None},
        ])
        result = runner.invoke(cli, ["repos"])
        assert result.exit_code == 0
        assert "site" in result.output
        assert "public" in result.output

    def test_ls_uses_ref_and_path(self, runner, api):
        routes, seen = api
        routes["/api/repos/site/tree/v1/docs"] = httpx.Response(200, json={
            "ref": "v1", "revision": "a" * 40, "path": "docs", "is_empty": False,
            "entries": [
                {"name": "img", "kind": "dir", "mode": "0040000", "hash": "b" * 40, "size": None},
                {"name": "guide.md", "kind": "file", "mode": "0100644", "hash": "c" * 40, "size": 8},
            ],
            "submodules": {}, "readme": None,
        })
        result = runner.invoke(cli, ["ls", "site", "/docs/", "--ref", "v1"])
        assert result.exit_code == 0
        assert "img/" in result.output
        assert "guide.md" in result.output
        assert seen[0].url.host == "repoview.test"

    def test_ls_empty_repo(self, runner, api):
        routes, _ = api
        routes["/api/repos/empty/tree/HEAD/"] = httpx.Response(200, json={
            "ref": "HEAD", "revision": None, "path": "", "is_empty": True,
            "entries": [], "submodules": {}, "readme": None,
        })
        result = runner.invoke(cli, ["ls", "empty"])
        assert result.exit_code == 0
        assert "empty" in result.output

    def test_cat_writes_raw_bytes(self, runner, api):
        routes, _ = api
        routes["/api/repos/site/raw/main/README.md"] = httpx.Response(200, content=b"# Site\n")
        result = runner.invoke(cli, ["cat", "site", "README.md", "-r", "main"])
        assert result.exit_code == 0
        assert result.output == "# Site\n"

    def test_log_passes_limit(self, runner, api):
        routes, seen = api
        routes["/api/repos/site/commits/HEAD"] = httpx.Response(200, json={
            "ref": "HEAD", "is_empty": False,
            "commits": [{
                "id": "d" * 40, "short_id": "d" * 8, "message": "Add docs\n\nBody",
                "author": "Test User", "email": "t@example.com", "date": "2024-01-01T00:00:00+00:00",
            }],
        })
        result = runner.invoke(cli, ["log", "site", "-n", "5"])
        assert result.exit_code == 0
        assert "Add docs" in result.output
        assert "Body" not in result.output
        assert seen[0].url.params["limit"] == "5"

    def test_show_renders_diff(self, runner, api):
        routes, _ = api
        routes[f"/api/repos/site/commit/{'d' * 40}"] = httpx.Response(200, json={
            "commit": {
                "id": "d" * 40, "short_id": "d" * 8, "message": "Tweak",
                "author": "Test User", "email": "t@example.com", "date": "2024-01-01T00:00:00+00:00",
            },
            "parent_hash": "e" * 8,
            "files": [{
                "name": "a.txt", "old_name": None, "status": "modified",
                "additions": 1, "deletions": 1, "is_binary": False,
                "chunks": [{
                    "old_start": 1, "old_lines": 1, "new_start": 1, "new_lines": 1,
                    "lines": [
                        {"type": "delete", "content": "old", "old_num": 1, "new_num": None},
                        {"type": "add", "content": "new", "old_num": None, "new_num": 1},
                    ],
                }],
            }],
            "stats": {"files_changed": 1, "additions": 1, "deletions": 1},
        })
        result = runner.invoke(cli, ["show", "site", "d" * 40])
        assert result.exit_code == 0
        assert "-old" in result.output
        assert "+new" in result.output
        assert "@@ -1,1 +1,1 @@" in result.output

    def test_api_error_exits_nonzero(self, runner, api):
        result = runner.invoke(cli, ["log", "ghost"])
        assert result.exit_code == 1
        assert "404" in result.output

    def test_connection_error(self, runner, monkeypatch):
        def refuse(request):
            raise httpx.ConnectError("refused", request=request)

        real_client = httpx.Client
        monkeypatch.setattr(
            cli_module.httpx, "Client",
            lambda **kwargs: real_client(transport=httpx.MockTransport(refuse), **kwargs),
        )
        result = runner.invoke(cli, ["repos", "--server", "http://down.test"])
        assert result.exit_code == 1
        assert "Could not connect" in result.output


class TestServe:
    """Tests for the serve command."""

    def test_missing_repos_dir(self, runner, tmp_path):
        result = runner.invoke(cli, ["serve", "--repos", str(tmp_path / "nope")])
        assert result.exit_code == 1
        assert "does not exist" in result.output

    def test_runs_uvicorn_with_environment(self, runner, tmp_path, monkeypatch):
        calls = []
        import uvicorn

        monkeypatch.setattr(uvicorn, "run", lambda app, **kwargs: calls.append((app, kwargs)))
        monkeypatch.setenv("REPOVIEW_REPOS_PATH", "unset")
        monkeypatch.setenv("REPOVIEW_PUBLIC_URL", "unset")
        result = runner.invoke(cli, [
            "serve", "--repos", str(tmp_path), "--port", "9000",
            "--public-url", "https://git.example.com",
        ])

        assert result.exit_code == 0
        assert calls == [("app.main:app", {"host": "0.0.0.0", "port": 9000, "reload": False})]
        assert os.environ["REPOVIEW_REPOS_PATH"] == str(tmp_path.resolve())
        assert os.environ["REPOVIEW_PUBLIC_URL"] == "https://git.example.com"
