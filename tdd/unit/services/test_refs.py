"""
Unit tests for reference resolution.

These tests verify:
- Branch, tag, HEAD and raw commit id resolution order
- Annotated tags peel to their commit
- Unknown refs fall back to HEAD
- Empty repositories are unresolvable
"""
import sys
from pathlib import Path

import pytest

# Add backend and tdd to path for imports
backend_path = Path(__file__).parent.parent.parent.parent / "backend"
tdd_path = Path(__file__).parent.parent.parent.parent / "tdd"
sys.path.insert(0, str(backend_path))
sys.path.insert(0, str(tdd_path))

from app.services.errors import ReferenceUnresolvable
from app.services.refs import head_commit, resolve_ref


# -----------------------------------------------------------------------------
# Fixtures
# -----------------------------------------------------------------------------

@pytest.fixture
def history(make_repo):
    """main -> c2 -> c1, feature -> c3, tag v1 -> c1, annotated tag rel -> c2."""
    builder = make_repo("refs-demo")
    c1 = builder.commit({"a.txt": "one\n"}, message="first")
    c2 = builder.commit({"a.txt": "two\n"}, message="second", parents=[c1])
    c3 = builder.commit({"a.txt": "three\n"}, message="feature", parents=[c2], branch="feature")
    builder.lightweight_tag("v1", c1)
    builder.annotated_tag("rel", c2)
    return builder, {"c1": c1, "c2": c2, "c3": c3}


def resolved(builder, ref) -> str:
    return resolve_ref(builder.repo, ref).decode("ascii")


# -----------------------------------------------------------------------------
# Resolution Order Tests
# -----------------------------------------------------------------------------

class TestResolveRef:
    """Tests for resolve_ref()."""

    def test_branch_name(self, history):
        builder, ids = history
        assert resolved(builder, "feature") == ids["c3"]

    def test_lightweight_tag(self, history):
        builder, ids = history
        assert resolved(builder, "v1") == ids["c1"]

    def test_annotated_tag_peels_to_commit(self, history):
        builder, ids = history
        assert resolved(builder, "rel") == ids["c2"]

    @pytest.mark.parametrize("ref", ["", "HEAD", None, "   "])
    def test_empty_or_head_is_default_branch(self, history, ref):
        builder, ids = history
        assert resolved(builder, ref) == ids["c2"]

    def test_raw_commit_id(self, history):
        builder, ids = history
        assert resolved(builder, ids["c1"]) == ids["c1"]

    def test_raw_commit_id_is_case_insensitive(self, history):
        builder, ids = history
        assert resolved(builder, ids["c1"].upper()) == ids["c1"]

    def test_tree_id_is_not_a_commit(self, history):
        """A 40-hex id of a non-commit object falls back to HEAD."""
        builder, ids = history
        assert resolved(builder, builder.tree_id(ids["c1"])) == ids["c2"]

    def test_unknown_ref_falls_back_to_head(self, history):
        builder, ids = history
        assert resolved(builder, "no-such-branch") == ids["c2"]

    def test_abbreviated_id_is_not_resolved(self, history):
        builder, ids = history
        assert resolved(builder, ids["c1"][:8]) == ids["c2"]

    @pytest.mark.parametrize("ref", ["../../HEAD", "main..feature", "bad ref", "feature.lock"])
    def test_malformed_ref_names_fall_back(self, history, ref):
        builder, ids = history
        assert resolved(builder, ref) == ids["c2"]

    def test_nested_branch_name(self, history):
        builder, ids = history
        builder.set_branch("release/2.0", ids["c1"])
        assert resolved(builder, "release/2.0") == ids["c1"]


class TestBranchOverTag:
    """A name that is both a branch and a tag resolves to the branch."""

    def test_branch_wins(self, history):
        builder, ids = history
        builder.set_branch("foo", ids["c3"])
        builder.lightweight_tag("foo", ids["c1"])
        assert resolved(builder, "foo") == ids["c3"]

    def test_branch_named_like_a_commit_id_wins(self, history):
        builder, ids = history
        builder.set_branch(ids["c1"], ids["c3"])
        assert resolved(builder, ids["c1"]) == ids["c3"]


# -----------------------------------------------------------------------------
# Empty Repository Tests
# -----------------------------------------------------------------------------

class TestUnresolvable:
    """Repositories with nothing behind HEAD."""

    def test_empty_repo_raises(self, make_repo):
        builder = make_repo("empty")
        with pytest.raises(ReferenceUnresolvable):
            resolve_ref(builder.repo, "main")

    def test_head_commit_of_empty_repo_raises(self, make_repo):
        builder = make_repo("empty")
        with pytest.raises(ReferenceUnresolvable):
            head_commit(builder.repo)

    def test_branch_resolves_even_when_head_is_dangling(self, make_repo):
        builder = make_repo("dangling", branch="trunk")
        sha = builder.commit({"x": "1\n"}, branch="other")
        assert resolved(builder, "other") == sha
        with pytest.raises(ReferenceUnresolvable):
            resolve_ref(builder.repo, "")
