"""Tests for gitflow_enforcer.workflow.provision module."""

import pytest

from conftest import FakeProbe, make_state, read_state
from gitflow_enforcer.workflow.provision import create_feature_branch
from gitflow_enforcer.workflow.results import (
    ALREADY_EXISTS_LOCAL,
    ALREADY_EXISTS_REMOTE,
    GIT_ERROR,
    WRONG_BRANCH,
)
from gitflow_enforcer.workflow.state_store import StateMissing


@pytest.fixture
def trunk_ctx(make_ctx):
    def _make(**kwargs):
        probe = kwargs.pop("probe", None) or FakeProbe(current="main")
        return make_ctx(state=make_state(feature_branch=None, phase="PLANNING"), probe=probe, **kwargs)
    return _make


class TestCreateFeatureBranch:
    """Tests for create_feature_branch()."""

    def test_creates_and_pushes(self, trunk_ctx):
        ctx = trunk_ctx()

        result = create_feature_branch(ctx, "proj")

        assert result.success
        assert result.details["branch"] == "feature/proj"
        assert ctx.executor.calls == [
            ("create_branch", "feature/proj"),
            ("push_set_upstream", "feature/proj"),
        ]

    def test_records_branch_in_state(self, trunk_ctx):
        ctx = trunk_ctx()
        create_feature_branch(ctx, "proj")

        state = read_state(ctx)
        assert state["feature_branch"] == "feature/proj"
        assert state["checkpoint"]["last_action"] == "Created feature branch feature/proj"
        assert state["checkpoint"]["phase"] == "PLANNING"

    def test_wrong_branch(self, trunk_ctx):
        """Not on trunk: nothing is created."""
        ctx = trunk_ctx(probe=FakeProbe(current="feature/other"))

        result = create_feature_branch(ctx, "proj")

        assert result.error == WRONG_BRANCH
        assert ctx.executor.calls == []

    def test_exists_locally(self, trunk_ctx):
        ctx = trunk_ctx(probe=FakeProbe(current="main", local_branches={"feature/proj"}))
        result = create_feature_branch(ctx, "proj")
        assert result.error == ALREADY_EXISTS_LOCAL
        assert ctx.executor.calls == []

    def test_exists_on_remote(self, trunk_ctx):
        ctx = trunk_ctx(probe=FakeProbe(current="main", remote_branches={"feature/proj"}))
        result = create_feature_branch(ctx, "proj")
        assert result.error == ALREADY_EXISTS_REMOTE

    def test_push_failure_returns_to_trunk(self, trunk_ctx):
        ctx = trunk_ctx(fail={"push_set_upstream": "Permission denied"})

        result = create_feature_branch(ctx, "proj")

        assert result.error == GIT_ERROR
        assert result.details["returned_to_trunk"] is True
        assert ctx.executor.calls[-1] == ("checkout", "main")
        assert read_state(ctx)["feature_branch"] is None

    def test_failed_return_is_flagged(self, trunk_ctx):
        ctx = trunk_ctx(fail={"create_branch": "fatal: bad ref", "checkout": "error"})

        result = create_feature_branch(ctx, "proj")

        assert result.error == GIT_ERROR
        assert result.details["returned_to_trunk"] is False

    def test_missing_state_raises_before_git(self, make_ctx):
        ctx = make_ctx(state=None, probe=FakeProbe(current="main"))
        with pytest.raises(StateMissing):
            create_feature_branch(ctx, "proj")
        assert ctx.executor.calls == []
