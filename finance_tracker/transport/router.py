"""
In-Memory Router

Emulates a REST collection endpoint on top of the in-memory database.
It sits in the client's interceptor chain: requests it recognises are
answered from the store, everything else is handed to the next handler.

Contract:
    GET    /api/<collection>          list, filtered by query parameters
    GET    /api/<collection>/<id>     one record or 404
    POST   /api/<collection>          create (body id ignored), 201
    PUT    /api/<collection>/<id>     shallow merge or 404
    DELETE /api/<collection>/<id>     remove or 404

Only 200, 201 and 404 are ever produced. There is no validation,
conflict detection or authorization here.
"""

from http import HTTPStatus
from typing import Awaitable, Callable, Optional

import structlog

from finance_tracker.models.transport import ApiRequest, ApiResponse, HttpMethod
from finance_tracker.store.memory import InMemoryDatabase


logger = structlog.get_logger(__name__)

NextHandler = Callable[[ApiRequest], Awaitable[Optional[ApiResponse]]]

NOT_FOUND_BODY = {"error": "Not found"}


class Route:
    """A request path split into collection and optional record id."""

    __slots__ = ("collection", "record_id")

    def __init__(self, collection: str, record_id: Optional[int]):
        self.collection = collection
        self.record_id = record_id

    def __repr__(self) -> str:
        return f"Route({self.collection!r}, {self.record_id!r})"


class InMemoryRouter:
    """
    Interceptor answering /api/<collection>[/<id>] from the database.

    Usage:
        router = InMemoryRouter(InMemoryDatabase(seed=True))
        client = ApiClient([router])
    """

    def __init__(self, database: InMemoryDatabase, api_prefix: str = "/api"):
        self._db = database
        self._prefix = api_prefix.strip("/")

    def parse_route(self, request: ApiRequest) -> Optional[Route]:
        """
        Extract collection and id from the request path.

        Returns None when the path is outside the API prefix, names an
        unknown collection, or has a non-numeric id.
        """
        path = request.path.lstrip("/")
        if not path.startswith(f"{self._prefix}/"):
            return None

        parts = [p for p in path[len(self._prefix) + 1:].split("/") if p]
        if not parts or len(parts) > 2:
            return None

        collection = parts[0]
        if not self._db.has_collection(collection):
            return None

        record_id = None
        if len(parts) == 2:
            if not parts[1].isdigit():
                return None
            record_id = int(parts[1])

        return Route(collection, record_id)

    async def handle(
        self,
        request: ApiRequest,
        next_handler: NextHandler,
    ) -> Optional[ApiResponse]:
        """Answer the request, or pass it through when it is not ours."""
        route = self.parse_route(request)
        if route is None:
            return await next_handler(request)

        response = self.dispatch(request, route)
        if response is None:
            return await next_handler(request)

        logger.debug(
            "request_intercepted",
            method=request.method.value,
            collection=route.collection,
            record_id=route.record_id,
            status=response.status,
        )
        return response

    def dispatch(self, request: ApiRequest, route: Route) -> Optional[ApiResponse]:
        """Branch per verb. Returns None for verb/path combinations we skip."""
        repo = self._db.collection(route.collection)
        method = request.method

        if method == HttpMethod.GET:
            rows = repo.select(request.query_params)
            if route.record_id is None:
                return ApiResponse.from_data(HTTPStatus.OK, rows)
            for row in rows:
                if row.get("id") == route.record_id:
                    return ApiResponse.from_data(HTTPStatus.OK, row)
            return ApiResponse.from_data(HTTPStatus.NOT_FOUND, NOT_FOUND_BODY)

        if method == HttpMethod.POST:
            body = request.payload() or {}
            if not isinstance(body, dict):
                return None
            created = repo.insert(body)
            return ApiResponse.from_data(HTTPStatus.CREATED, created)

        if method == HttpMethod.PUT and route.record_id is not None:
            changes = request.payload() or {}
            if not isinstance(changes, dict):
                return None
            merged = repo.update(route.record_id, changes)
            if merged is None:
                return ApiResponse.from_data(HTTPStatus.NOT_FOUND, NOT_FOUND_BODY)
            return ApiResponse.from_data(HTTPStatus.OK, merged)

        if method == HttpMethod.DELETE and route.record_id is not None:
            if not repo.delete(route.record_id):
                return ApiResponse.from_data(HTTPStatus.NOT_FOUND, NOT_FOUND_BODY)
            return ApiResponse.from_data(HTTPStatus.OK, {})

        return None
