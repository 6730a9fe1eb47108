"""
In-Process API Client

The services talk to the backend through this client exactly as they
would talk to a REST API: they name a collection, an optional id, query
parameters and a body. Requests travel through a chain of interceptors;
the in-memory router is normally the only one.

DESIGN DECISION: Bodies are serialized to JSON text on the way in and
parsed back on the way out. Dates come back as ISO strings, and the
services are responsible for restoring their types.
"""

import json
from typing import Any, Optional, Protocol

import structlog
from pydantic_core import to_jsonable_python

from finance_tracker.models.transport import ApiRequest, ApiResponse, HttpMethod
from finance_tracker.store.interface import NotFoundError, StorageError, TransportError
from finance_tracker.transport.router import NextHandler


logger = structlog.get_logger(__name__)


class Interceptor(Protocol):
    """Anything that can answer a request or hand it on."""

    async def handle(
        self,
        request: ApiRequest,
        next_handler: NextHandler,
    ) -> Optional[ApiResponse]:
        ...


def _link(interceptor: Interceptor, next_handler: NextHandler) -> NextHandler:
    async def handler(request: ApiRequest) -> Optional[ApiResponse]:
        return await interceptor.handle(request, next_handler)
    return handler


class ApiClient:
    """
    Async client for the simulated REST surface.

    Usage:
        client = ApiClient([InMemoryRouter(db)])
        rows = await client.get("expenses", params={"userId": 1})
    """

    def __init__(
        self,
        interceptors: list[Interceptor],
        fallback: Optional[NextHandler] = None,
        api_prefix: str = "/api",
    ):
        """
        Args:
            interceptors: Chain, first one sees the request first
            fallback: Called when every interceptor passed the request on.
                      Without one, unhandled requests raise TransportError.
            api_prefix: Path prefix for collection URLs
        """
        self._interceptors = list(interceptors)
        self._fallback = fallback
        self._prefix = "/" + api_prefix.strip("/")

    async def send(self, request: ApiRequest) -> ApiResponse:
        """Run one request through the chain and return the raw response."""

        async def terminal(req: ApiRequest) -> Optional[ApiResponse]:
            if self._fallback is not None:
                return await self._fallback(req)
            return None

        handler: NextHandler = terminal
        for interceptor in reversed(self._interceptors):
            handler = _link(interceptor, handler)

        try:
            response = await handler(request)
        except StorageError:
            raise
        except Exception as e:
            logger.error(
                "transport_failed",
                method=request.method.value,
                url=request.url,
                error=str(e),
            )
            raise TransportError(f"{request.method.value} {request.url} failed: {e}") from e

        if response is None:
            raise TransportError(
                f"No handler for {request.method.value} {request.url}"
            )
        return response

    def url_for(self, collection: str, record_id: Optional[int] = None) -> str:
        path = f"{self._prefix}/{collection}"
        if record_id is not None:
            path = f"{path}/{record_id}"
        return path

    async def get(
        self,
        collection: str,
        record_id: Optional[int] = None,
        params: Optional[dict[str, Any]] = None,
    ) -> Any:
        request = ApiRequest.build(
            HttpMethod.GET,
            self.url_for(collection, record_id),
            params=params,
        )
        return await self._call(request, collection, record_id)

    async def post(self, collection: str, body: dict[str, Any]) -> Any:
        request = ApiRequest.build(
            HttpMethod.POST,
            self.url_for(collection),
            body=self._encode(body),
        )
        return await self._call(request, collection, None)

    async def put(
        self,
        collection: str,
        record_id: int,
        body: dict[str, Any],
    ) -> Any:
        request = ApiRequest.build(
            HttpMethod.PUT,
            self.url_for(collection, record_id),
            body=self._encode(body),
        )
        return await self._call(request, collection, record_id)

    async def delete(self, collection: str, record_id: int) -> None:
        request = ApiRequest.build(
            HttpMethod.DELETE,
            self.url_for(collection, record_id),
        )
        await self._call(request, collection, record_id)

    async def _call(
        self,
        request: ApiRequest,
        collection: str,
        record_id: Optional[int],
    ) -> Any:
        response = await self.send(request)
        if response.status == 404:
            raise NotFoundError(collection, record_id)
        if not response.ok:
            raise TransportError(
                f"Unexpected status {response.status} for {request.method.value} {request.url}"
            )
        return response.payload()

    @staticmethod
    def _encode(body: dict[str, Any]) -> str:
        return json.dumps(to_jsonable_python(body))
