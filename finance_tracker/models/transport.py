"""
Transport Models

The simulated REST surface never leaves the process, but requests and
responses still carry their bodies as JSON text. That is the point where
date typing is lost, and why services re-parse every record they receive.
"""

import json
from enum import Enum
from http import HTTPStatus
from typing import Any, Optional
from urllib.parse import parse_qsl, urlencode, urlsplit

from pydantic import BaseModel, Field


class HttpMethod(str, Enum):
    """Verbs understood by the in-memory router."""
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"


def _param_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class ApiRequest(BaseModel):
    """An outbound call, as seen by the interceptor chain."""

    method: HttpMethod
    url: str = Field(
        ...,
        min_length=1,
        description="Path plus optional query string, e.g. /api/expenses?userId=1"
    )
    body: Optional[str] = Field(
        default=None,
        description="JSON text body (POST and PUT)"
    )

    @classmethod
    def build(
        cls,
        method: HttpMethod,
        path: str,
        params: Optional[dict[str, Any]] = None,
        body: Optional[str] = None,
    ) -> "ApiRequest":
        """Build a request, encoding params into the query string."""
        url = path
        if params:
            query = urlencode({k: _param_text(v) for k, v in params.items() if v is not None})
            if query:
                url = f"{path}?{query}"
        return cls(method=method, url=url, body=body)

    @property
    def path(self) -> str:
        return urlsplit(self.url).path

    @property
    def query_params(self) -> dict[str, str]:
        return dict(parse_qsl(urlsplit(self.url).query))

    def payload(self) -> Any:
        """Decoded request body, or None when there is none."""
        if not self.body:
            return None
        return json.loads(self.body)


class ApiResponse(BaseModel):
    """A response produced by an interceptor."""

    status: int
    body: str = Field(default="null", description="JSON text body")

    @classmethod
    def from_data(cls, status: HTTPStatus, data: Any) -> "ApiResponse":
        return cls(status=int(status), body=json.dumps(data))

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def payload(self) -> Any:
        return json.loads(self.body)
