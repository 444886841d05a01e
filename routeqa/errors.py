"""Exceptions raised by the map page object and the routing API client.

Timeouts are not wrapped: waits surface Playwright's own TimeoutError.
"""


class RouteQAError(Exception):
    """Base class for routeqa errors."""

    pass


class NoRouteCapturedError(RouteQAError):
    """A readout was requested before any interaction captured a response."""

    def __init__(self, accessor: str) -> None:
        super().__init__(
            f"No route calculated yet: {accessor}() needs a captured response. "
            "Call draw_route() or select_start()/select_end() first."
        )
        self.accessor = accessor


class ResponseShapeMismatchError(RouteQAError):
    """A response of the wrong kind was captured and no fallback is configured."""

    def __init__(self, expected: str, observed: str, hints: list[str]) -> None:
        lines = [f"Expected {expected} response but captured {observed} response."]
        lines.extend(f"  - {hint}" for hint in hints)
        super().__init__("\n".join(lines))
        self.expected = expected
        self.observed = observed
        self.hints = hints


class UnrecognizedResponseError(RouteQAError):
    """The captured response is neither a route nor an address result."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Unrecognized response shape: {reason}")
        self.reason = reason


class ScenarioStateError(RouteQAError):
    """A step needs state that an earlier step never set up."""

    pass


class RouteApiError(RouteQAError):
    """Routing API returned a non-success status."""

    def __init__(self, status: int, body: str) -> None:
        super().__init__(f"Routing API returned {status}: {body}")
        self.status = status
        self.body = body
