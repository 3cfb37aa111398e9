"""Interception pipeline implementation.

Wraps a request handler with input filtering, the delete gate and output
filtering, tracking each request through the PipelineState machine.
"""

import inspect
from typing import Any, Awaitable, Callable, Dict, List, NamedTuple, Optional, Union

from ...common.logger import get_logger
from ..abac.errors import AccessDenied, PipelineStateError
from ..abac.permissions import Caller, Operation
from ..abac.service import ABACService
from .mapper import BODY_METHODS, PathResourceMapper, ResourceRoute
from .states import TERMINAL_STATES, PipelineState, can_transition

logger = get_logger("pipeline")

Handler = Callable[[Any], Union[Any, Awaitable[Any]]]


class RawBody(NamedTuple):
    """A request body that could not be parsed into records."""

    content: bytes


class Interception:
    """
    One request travelling through the pipeline.

    Holds the (possibly replaced) request body and exposes finalize() as the
    post-processing callback for the handler's result.
    """

    def __init__(
        self,
        service: ABACService,
        method: str,
        path: str,
        body: Any = None,
        caller: Optional[Caller] = None,
        route: Optional[ResourceRoute] = None,
        has_body: Optional[bool] = None,
    ):
        self.service = service
        self.method = method.upper()
        self.path = path
        self.body = body
        self.caller = caller
        self.route = route
        # A JSON null body is still a body
        self.has_body = body is not None if has_body is None else has_body
        self._state = PipelineState.START
        self._history: List[Dict[str, Any]] = []

    @property
    def state(self) -> PipelineState:
        return self._state

    @property
    def history(self) -> List[Dict[str, Any]]:
        return list(self._history)

    @property
    def is_terminal(self) -> bool:
        return self._state in TERMINAL_STATES

    def transition(self, to_state: PipelineState) -> PipelineState:
        """Move to the next phase.

        Raises:
            PipelineStateError: If the transition is not allowed from the current state
        """
        if not can_transition(self._state, to_state):
            raise PipelineStateError(
                f"Cannot move from {self._state.value} to {to_state.value}",
                self._state,
                to_state,
            )
        self._history.append({"from": self._state, "to": to_state})
        logger.debug(f"{self.method} {self.path}: {self._state.value} -> {to_state.value}")
        self._state = to_state
        return to_state

    async def filter_input(self) -> None:
        self.transition(PipelineState.INPUT_FILTERED)
        if self.route is None or not self.has_body or self.method not in BODY_METHODS:
            return
        try:
            if isinstance(self.body, RawBody):
                await self.service.check_raw_input(
                    self.route.resource_name, self.caller, self.route.operation
                )
            else:
                self.body = await self.service.filter_input(
                    self.route.resource_name, self.body, self.caller, self.route.operation
                )
        except AccessDenied:
            self.transition(PipelineState.ERROR)
            raise

    async def check_delete(self) -> None:
        self.transition(PipelineState.DELETE_CHECKED)
        if self.route is None or self.route.operation is not Operation.DELETE:
            return
        try:
            await self.service.check_delete(self.route.resource_name, self.caller)
        except AccessDenied:
            self.transition(PipelineState.ERROR)
            raise

    async def finalize(self, result: Any) -> Any:
        """Filter the handler's result; call exactly once after the handler completes."""
        self.transition(PipelineState.HANDLER_INVOKED)
        self.transition(PipelineState.OUTPUT_FILTERED)
        if self.caller is not None and self.route is not None:
            result = await self.service.filter_output(self.route.resource_name, result, self.caller)
        self.transition(PipelineState.DONE)
        return result


class InterceptionPipeline:
    """
    Applies access control around request handlers.

    Usage:
        pipeline = InterceptionPipeline(ABACService(store))
        interception = await pipeline.intercept("POST", "/payrolls", body, caller)
        result = await handler(interception.body)
        return await interception.finalize(result)
    """

    def __init__(self, service: ABACService, mapper: Optional[PathResourceMapper] = None):
        self.service = service
        self.mapper = mapper or PathResourceMapper()

    async def intercept(
        self,
        method: str,
        path: str,
        body: Any = None,
        caller: Optional[Caller] = None,
        has_body: Optional[bool] = None,
    ) -> Interception:
        """
        Run the pre-handler phases for a request.

        Args:
            method: HTTP method
            path: Request path
            body: Parsed request body, or RawBody when it could not be parsed
            caller: Authenticated caller, if any
            has_body: Whether the request carries a body; defaults to body is not None

        Returns:
            Interception carrying the body to forward and the finalize() callback

        Raises:
            AccessDenied: If the request must not reach the handler
        """
        route = self.mapper.map_path(path, method)
        interception = Interception(self.service, method, path, body, caller, route, has_body)

        if caller is None:
            logger.debug(f"{method} {path}: no authenticated caller, passing through")
            return interception

        await interception.filter_input()
        await interception.check_delete()
        return interception

    async def run(
        self,
        method: str,
        path: str,
        handler: Handler,
        body: Any = None,
        caller: Optional[Caller] = None,
    ) -> Any:
        """Intercept a request, invoke the handler once and filter its result."""
        interception = await self.intercept(method, path, body, caller)
        result = handler(interception.body)
        if inspect.isawaitable(result):
            result = await result
        return await interception.finalize(result)
