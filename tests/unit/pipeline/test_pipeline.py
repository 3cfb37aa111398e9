"""Tests for the interception pipeline."""

from unittest.mock import AsyncMock

import pytest

from abacgate.core.abac.errors import AccessDenied, PipelineStateError, StoreLookupError
from abacgate.core.abac.service import ABACService
from abacgate.core.pipeline.machine import Interception, InterceptionPipeline, RawBody
from abacgate.core.pipeline.states import PipelineState

from conftest import run


@pytest.fixture
def pipeline(default_store):
    return InterceptionPipeline(ABACService(default_store))


class TestIntercept:
    """Test the pre-handler phases."""

    def test_unauthenticated_request_passes_through(self, pipeline, sample_users):
        """Test a request without caller skips filtering."""
        interception = run(pipeline.intercept("POST", "/payrolls", {"amount": 1}))
        assert interception.state is PipelineState.START
        assert interception.body == {"amount": 1}

        result = run(interception.finalize(sample_users))
        assert result == sample_users
        assert interception.state is PipelineState.DONE

    def test_input_is_replaced(self, pipeline, manager):
        """Test partial writers get a redacted body."""
        interception = run(
            pipeline.intercept("PUT", "/users/5", {"name": "Jo", "salary": 1}, manager)
        )
        assert interception.body == {"name": "Jo"}
        assert interception.state is PipelineState.DELETE_CHECKED
        assert interception.route.resource_name == "users"

    def test_denied_input_moves_to_error(self, pipeline, user):
        """Test a blocked write aborts in the error state."""
        route = pipeline.mapper.map_path("/payrolls", "POST")
        interception = Interception(pipeline.service, "POST", "/payrolls", {"amount": 1}, user, route)

        with pytest.raises(AccessDenied) as exc_info:
            run(interception.filter_input())

        assert exc_info.value.resource_name == "payrolls"
        assert interception.state is PipelineState.ERROR
        assert interception.is_terminal

    def test_raw_body_needs_full_write(self, pipeline, manager, admin):
        """Test an unparsed body is refused unless the caller writes in full."""
        body = RawBody(b"name=Jo&salary=1")

        with pytest.raises(AccessDenied):
            run(pipeline.intercept("PUT", "/users/5", body, manager))

        interception = run(pipeline.intercept("PUT", "/users/5", body, admin))
        assert interception.body is body
        assert interception.state is PipelineState.DELETE_CHECKED

    def test_null_body_is_still_filtered(self, pipeline, user):
        """Test a present body of null still runs the write gate."""
        with pytest.raises(AccessDenied):
            run(pipeline.intercept("POST", "/payrolls", None, user, has_body=True))

    def test_absent_body_skips_input_filtering(self, pipeline, user):
        """Test a request without a body is not gated on write."""
        interception = run(pipeline.intercept("POST", "/payrolls", None, user))
        assert interception.has_body is False
        assert interception.state is PipelineState.DELETE_CHECKED

    def test_body_ignored_for_get(self, pipeline, user):
        """Test GET bodies are never filtered."""
        interception = run(pipeline.intercept("GET", "/payrolls", {"amount": 1}, user))
        assert interception.body == {"amount": 1}
        assert interception.state is PipelineState.DELETE_CHECKED

    def test_delete_gate(self, pipeline, manager, admin):
        """Test DELETE is refused for a blocked primary role."""
        with pytest.raises(AccessDenied) as exc_info:
            run(pipeline.intercept("DELETE", "/users/3", None, manager))
        assert exc_info.value.operation == "delete"

        interception = run(pipeline.intercept("DELETE", "/users/3", None, admin))
        assert interception.state is PipelineState.DELETE_CHECKED

    def test_unmapped_path(self, pipeline, user):
        """Test unmapped paths are neither gated nor filtered."""
        interception = run(pipeline.intercept("DELETE", "/reports/1", {"x": 1}, user))
        assert interception.route is None
        assert run(interception.finalize([{"secret": 1}])) == [{"secret": 1}]

    def test_store_failure_propagates(self, default_store, admin):
        """Test store errors surface as they are."""
        default_store.get_resource_by_name = AsyncMock(side_effect=StoreLookupError("down"))
        pipeline = InterceptionPipeline(ABACService(default_store))

        with pytest.raises(StoreLookupError):
            run(pipeline.intercept("POST", "/users", {"name": "x"}, admin))


class TestFinalize:
    """Test output filtering and state tracking."""

    def test_history(self, pipeline, user):
        """Test every phase is recorded in order."""

        async def scenario():
            interception = await pipeline.intercept("GET", "/users", None, user)
            await interception.finalize([{"id": "1"}, {"id": "2"}])
            return interception

        interception = run(scenario())
        assert [step["to"] for step in interception.history] == [
            PipelineState.INPUT_FILTERED,
            PipelineState.DELETE_CHECKED,
            PipelineState.HANDLER_INVOKED,
            PipelineState.OUTPUT_FILTERED,
            PipelineState.DONE,
        ]
        assert interception.is_terminal

    def test_finalize_twice_is_rejected(self, pipeline, admin):
        """Test the result callback runs exactly once."""

        async def scenario():
            interception = await pipeline.intercept("GET", "/users", None, admin)
            await interception.finalize([])
            await interception.finalize([])

        with pytest.raises(PipelineStateError) as exc_info:
            run(scenario())
        assert exc_info.value.from_state is PipelineState.DONE


class TestRun:
    """Test the one-call wrapper."""

    def test_run_filters_both_ways(self, pipeline, manager):
        """Test the handler sees filtered input and its result is filtered."""
        seen = []

        async def handler(body):
            seen.append(body)
            return {**body, "id": "5", "salary": 99, "password": "secret"}

        result = run(pipeline.run("PATCH", "/users/5", handler, {"name": "Jo", "salary": 1}, manager))

        assert seen == [{"name": "Jo"}]
        assert result == {"name": "Jo", "id": "5"}

    def test_run_accepts_sync_handler(self, pipeline, user):
        """Test plain functions work as handlers."""
        calls = []

        def handler(body):
            calls.append(body)
            return [{"id": "1", "password": "p"}, {"id": "2"}]

        result = run(pipeline.run("GET", "/users", handler, None, user))

        assert calls == [None]
        assert result == [{"id": "1", "password": "p"}]

    def test_run_never_calls_handler_when_denied(self, pipeline, user):
        """Test denied requests stop before the handler."""
        handler = AsyncMock()

        with pytest.raises(AccessDenied):
            run(pipeline.run("DELETE", "/users/1", handler, None, user))
        handler.assert_not_called()
