# Custom assertion helpers

from .api import (
    assert_empty_repo_response,
    assert_error_response,
    assert_forbidden,
    assert_json_contains,
    assert_lfs_response,
    assert_not_found,
    assert_repo_names,
    assert_status_code,
    assert_validation_error,
)
from .models import (
    assert_schema_invalid,
    assert_schema_valid,
)

__all__ = [
    # API assertions
    "assert_status_code",
    "assert_json_contains",
    "assert_repo_names",
    "assert_error_response",
    "assert_not_found",
    "assert_forbidden",
    "assert_empty_repo_response",
    "assert_validation_error",
    # Git LFS assertions
    "assert_lfs_response",
    # Schema assertions
    "assert_schema_valid",
    "assert_schema_invalid",
]
