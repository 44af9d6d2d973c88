"""
=============================================================================
URL ROUTER
=============================================================================

Matches requests against registered path patterns and dispatches them
to handlers.

- Literal segments:  /api/v1/code
- Named captures:    /api/v1/{message}
- Method filtering:  GET, POST, ... or "*" for any method

=============================================================================
ROUTING FLOW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        ROUTING FLOW                                 │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   GET /api/v1/hello                                                  │
    │        │                                                             │
    │        ▼                                                             │
    │   ┌─────────────────────────────────────────────────────────────┐   │
    │   │  ROUTER (sorted by specificity, most specific first)         │   │
    │   │                                                              │   │
    │   │   score 6  GET  /api/v1/code       ✗ "code" != "hello"       │   │
    │   │   score 6  POST /api/v1/code       ✗ wrong method            │   │
    │   │   score 5  GET  /api/v1/{message}  ✓ MATCH                   │   │
    │   │   score 0  GET  /                  (never tried)             │   │
    │   │                                                              │   │
    │   │   path_params = {"message": "hello"}                         │   │
    │   └─────────────────────────────────────────────────────────────┘   │
    │        │                                                             │
    │        ▼                                                             │
    │   handler.handle(RouteMatch, stream)                                 │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
SPECIFICITY SCORE
=============================================================================

Routes are tried in descending score order, so registration order does
not decide between "/api/v1/code" and "/api/v1/{message}":

    Segment kind     Points
    ────────────     ──────
    literal            2
    {capture}          1
    empty              0       (leading, trailing or doubled "/")

    "/api/v1/code"       ["", "api", "v1", "code"]       0+2+2+2 = 6
    "/api/v1/{message}"  ["", "api", "v1", "{message}"]  0+2+2+1 = 5
    "/"                  ["", ""]                        0+0     = 0

A fully literal path always beats a pattern with a capture of the same
length. Equal scores keep registration order (the sort is stable).

=============================================================================
MATCHING
=============================================================================

Pattern and path are both split on "/" and compared pairwise:

    /api/v1/{message}     ["", "api", "v1", "{message}"]
    /api/v1/hello         ["", "api", "v1", "hello"]      ✓ message=hello
    /api/v1/hello/extra   5 segments vs 4                 ✗ no match

There are no wildcard or "rest of path" captures: segment counts must
be equal. A trailing slash is a segment too ("/a/" is ["", "a", ""]).

=============================================================================
IMMUTABLE TABLE
=============================================================================

Routes are collected in a RouterBuilder at startup and frozen into a
Router. Worker threads share the Router read-only, so matching needs
no locks.

    router = (RouterBuilder()
        .get("/", home)
        .get("/api/v1/{message}", message)
        .get("/api/v1/code", code)
        .build())

=============================================================================
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import BinaryIO, Callable, Iterable, Optional, Union

from .errors import HandlerIOError, NoRouteMatched
from .request import HTTPRequest


# Any method
WILDCARD_METHOD = "*"


@dataclass
class RouteMatch:
    """
    Result of a successful match, handed to the handler.

    Example:
        Pattern: /api/v1/{message}
        Request: GET /api/v1/hello?lang=en
        Result:  RouteMatch(path_params={"message": "hello"},
                            query_params={"lang": "en"}, ...)
    """

    path_params: dict[str, str]
    query_params: dict[str, str]
    request: HTTPRequest
    route: Optional["Route"] = field(default=None, repr=False)


class RouteHandler(ABC):
    """
    Something that can answer a matched request.

    Implement ``handle`` to write a complete HTTP response to ``stream``.
    Subclasses may carry their own configuration:

        class Greeter(RouteHandler):
            def __init__(self, greeting):
                self.greeting = greeting

            def handle(self, match, stream):
                name = match.path_params["name"]
                text_response(200, f"{self.greeting}, {name}!").write_to(stream)
    """

    @abstractmethod
    def handle(self, match: RouteMatch, stream: BinaryIO) -> None:
        """
        Write a response for ``match`` to ``stream``.

        Raises:
            OSError: If writing to the connection fails.
        """


RouteFunction = Callable[[RouteMatch, BinaryIO], None]


class FunctionHandler(RouteHandler):
    """Adapts a plain ``func(match, stream)`` to RouteHandler."""

    def __init__(self, func: RouteFunction):
        self.func = func

    def handle(self, match: RouteMatch, stream: BinaryIO) -> None:
        self.func(match, stream)

    def __repr__(self) -> str:
        return f"FunctionHandler({getattr(self.func, '__name__', self.func)!r})"


def as_handler(handler: Union[RouteHandler, RouteFunction]) -> RouteHandler:
    """Return ``handler`` as a RouteHandler, wrapping plain callables."""
    if isinstance(handler, RouteHandler):
        return handler
    if callable(handler):
        return FunctionHandler(handler)
    raise TypeError(f"Route handler must be callable, got {type(handler).__name__}")


def is_capture(segment: str) -> bool:
    """True for ``{name}`` segments."""
    return len(segment) >= 2 and segment.startswith("{") and segment.endswith("}")


def specificity(pattern: str) -> int:
    """
    Score a pattern: 2 per literal segment, 1 per capture, 0 per empty one.

        specificity("/")                  → 0
        specificity("/api/v1/code")       → 6
        specificity("/api/v1/{message}")  → 5
    """
    score = 0
    for segment in pattern.split("/"):
        if is_capture(segment):
            score += 1
        elif segment:
            score += 2
    return score


@dataclass(frozen=True)
class Route:
    """
    A registered (method, pattern) → handler binding.

    The pattern is split and scored once, at registration.
    """

    method: str
    pattern: str
    handler: RouteHandler = field(compare=False)
    score: int = field(init=False)
    segments: tuple[str, ...] = field(init=False, repr=False)

    def __post_init__(self):
        object.__setattr__(self, "segments", tuple(self.pattern.split("/")))
        object.__setattr__(self, "score", specificity(self.pattern))

    def accepts(self, method: str) -> bool:
        """Method filter: exact verb or the "*" wildcard."""
        return self.method == WILDCARD_METHOD or self.method == method

    def match_path(self, path: str) -> Optional[dict[str, str]]:
        """
        Match ``path`` against this route's pattern.

        Returns:
            Captured parameters keyed by bare name, or None on mismatch.
        """
        parts = path.split("/")
        if len(parts) != len(self.segments):
            return None

        params: dict[str, str] = {}
        for segment, part in zip(self.segments, parts):
            if is_capture(segment):
                params[segment[1:-1]] = part
            elif segment != part:
                return None
        return params


class Router:
    """
    Immutable, specificity-ordered route table.

    Build one with RouterBuilder. After construction the table never
    changes, so a single Router is safely shared by all worker threads.
    """

    def __init__(self, routes: Iterable[Route] = ()):
        # sorted() is stable: equal scores keep registration order
        self._routes: tuple[Route, ...] = tuple(
            sorted(routes, key=lambda route: route.score, reverse=True)
        )

    @property
    def routes(self) -> tuple[Route, ...]:
        """The table, most specific route first."""
        return self._routes

    def __len__(self) -> int:
        return len(self._routes)

    # =========================================================================
    # MATCHING
    # =========================================================================

    def match(self, request: HTTPRequest) -> Optional[RouteMatch]:
        """
        Find the first route accepting the request's method and path.

        Returns:
            RouteMatch if found, None otherwise
        """
        for route in self._routes:
            if not route.accepts(request.method):
                continue

            params = route.match_path(request.path)
            if params is not None:
                return RouteMatch(
                    path_params=params,
                    query_params=request.query_params,
                    request=request,
                    route=route,
                )

        return None

    def dispatch(self, request: HTTPRequest, stream: BinaryIO) -> bool:
        """
        Route ``request`` and let the matched handler write to ``stream``.

        Returns:
            True if a handler ran, False if no route matched (nothing is
            written in that case).

        Raises:
            HandlerIOError: The handler failed to write its response.
        """
        match = self.match(request)
        if match is None:
            return False

        try:
            match.route.handler.handle(match, stream)
        except OSError as e:
            raise HandlerIOError(match.route.pattern, e) from e

        return True

    def handle(self, request: HTTPRequest, stream: BinaryIO) -> None:
        """
        Like dispatch(), but an unmatched request is an error.

        Raises:
            NoRouteMatched: Nothing matched; callers answer 404.
            HandlerIOError: The handler failed to write its response.
        """
        if not self.dispatch(request, stream):
            raise NoRouteMatched(request.method, request.path)

    # =========================================================================
    # UTILITY METHODS
    # =========================================================================

    def describe(self) -> list[str]:
        """
        One line per route, in matching order (useful for startup logs).

            GET      /api/v1/code            (6)
            GET      /api/v1/{message}       (5)
        """
        return [
            f"{route.method:8} {route.pattern:24} ({route.score})"
            for route in self._routes
        ]


class RouterBuilder:
    """
    Collects routes at startup and freezes them into a Router.

    ==========================================================================
    CHAINED REGISTRATION
    ==========================================================================

    Every registration method returns the builder:

        router = (RouterBuilder()
            .get("/", home_handler)
            .get("/api/v1/{message}", message_handler)
            .post("/api/v1/code", code_post_handler)
            .route("*", "/echo", echo_handler)
            .build())

    The pending table is re-sorted after every insertion, so
    ``builder.routes`` always shows the final matching order.

    ==========================================================================
    """

    def __init__(self):
        self._routes: list[Route] = []

    @property
    def routes(self) -> tuple[Route, ...]:
        """Routes registered so far, in matching order."""
        return tuple(self._routes)

    def route(
        self,
        method: str,
        pattern: str,
        handler: Union[RouteHandler, RouteFunction],
    ) -> "RouterBuilder":
        """
        Register ``handler`` for ``method`` (or "*") and ``pattern``.

        Args:
            method: HTTP verb, any case, or "*" for every method.
            pattern: "/"-delimited template; "{name}" segments capture.
            handler: RouteHandler instance or ``func(match, stream)``.

        Returns:
            Self for method chaining
        """
        self._routes.append(Route(
            method=method.upper(),
            pattern=pattern,
            handler=as_handler(handler),
        ))
        self._routes.sort(key=lambda route: route.score, reverse=True)
        return self

    def get(self, pattern: str, handler: Union[RouteHandler, RouteFunction]) -> "RouterBuilder":
        """Register a GET route."""
        return self.route("GET", pattern, handler)

    def post(self, pattern: str, handler: Union[RouteHandler, RouteFunction]) -> "RouterBuilder":
        """Register a POST route."""
        return self.route("POST", pattern, handler)

    def build(self) -> Router:
        """Freeze the collected routes into an immutable Router."""
        return Router(self._routes)
