"""
Response assertions for the RepoView HTTP API.

Failures print the request line and body so a broken test shows what the
server actually answered.
"""
from typing import Any

from httpx import Response


def _describe(response: Response) -> str:
    request = response.request
    return f"{request.method} {request.url.path} -> {response.status_code}: {response.text}"


def assert_status_code(response: Response, expected: int) -> None:
    assert response.status_code == expected, f"Expected {expected}; {_describe(response)}"


def assert_json_contains(response: Response, expected: dict[str, Any] = None, **fields) -> None:
    """Partial match on a JSON object body.

    Keys may come as a dict, as keyword arguments, or both; keys not named
    are ignored.
    """
    wanted = {**(expected or {}), **fields}
    body = response.json()
    missing = [key for key in wanted if key not in body]
    assert not missing, f"Keys {missing} absent; {_describe(response)}"
    mismatched = {key: (value, body[key]) for key, value in wanted.items() if body[key] != value}
    assert not mismatched, f"Expected vs actual {mismatched}; {_describe(response)}"


def assert_repo_names(response: Response, expected: list[str]) -> None:
    """Assert a repository index lists exactly ``expected`` (any order)."""
    assert_status_code(response, 200)
    names = sorted(repo["name"] for repo in response.json())
    assert names == sorted(expected), f"Repositories {names}, expected {sorted(expected)}"


def assert_error_response(response: Response, status_code: int, detail: str) -> None:
    """Assert status and the exact ``detail`` message."""
    assert_status_code(response, status_code)
    actual = response.json().get("detail")
    assert actual == detail, f"Expected detail {detail!r}, got {actual!r}"


def assert_not_found(response: Response, fragment: str = None) -> None:
    """Assert response is a 404 Not Found error.

    If fragment is provided, the detail must mention it; otherwise the
    detail must say "not found".
    """
    assert_status_code(response, 404)
    actual = response.json()
    assert "detail" in actual, f"Expected 'detail' in error response: {actual}"

    if fragment:
        assert fragment in actual["detail"], (
            f"Expected '{fragment}' in detail, got '{actual['detail']}'"
        )
    else:
        assert "not found" in actual["detail"].lower(), (
            f"Expected 'not found' in detail, got '{actual['detail']}'"
        )


def assert_forbidden(response: Response) -> None:
    """Assert response is a 403 with an access denied message."""
    assert_status_code(response, 403)
    detail = response.json().get("detail", "")
    assert detail.startswith("Access denied"), f"Unexpected 403 detail: {detail!r}"


def assert_empty_repo_response(response: Response) -> None:
    """Assert response is the 404 reserved for repositories with no commits."""
    assert_status_code(response, 404)
    assert response.json() == {"detail": "Repository is empty", "empty": True}


def assert_validation_error(response: Response) -> dict[str, Any]:
    """Assert response is a validation error (422).

    Returns the error detail for further inspection.
    """
    assert_status_code(response, 422)
    return response.json()


# -----------------------------------------------------------------------------
# Git LFS Assertions
# -----------------------------------------------------------------------------

def assert_lfs_response(response: Response, status_code: int = 200) -> dict[str, Any]:
    """Assert response carries the Git LFS media type.

    Returns the response JSON.
    """
    assert_status_code(response, status_code)
    content_type = response.headers["content-type"]
    assert content_type.startswith("application/vnd.git-lfs+json"), (
        f"Expected LFS content-type, got '{content_type}'"
    )
    return response.json()
