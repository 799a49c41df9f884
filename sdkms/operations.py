"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
SDKMS Client, a product of Garudex Labs

Operation descriptors.

Every REST endpoint is described once by an ``Operation`` subclass that binds
the HTTP method, the path template, the query-parameter structure, the body
type and the output type. Descriptors carry no instance state and are never
instantiated; the dispatcher in ``sdkms.client`` consumes them through the
classmethods defined here.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, fields, is_dataclass
from enum import Enum
from functools import lru_cache
from typing import Any, ClassVar, Dict, Optional, Sequence, Union
from urllib.parse import quote, urlencode
from uuid import UUID

from pydantic import TypeAdapter, ValidationError

from sdkms.exceptions import EncoderError, SDKConfigurationError


class Method(str, Enum):
    """HTTP verbs used by the service."""
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"


class Order(str, Enum):
    """Sort order for list endpoints."""
    ASCENDING = "asc"
    DESCENDING = "desc"


def format_query_value(value: Any) -> str:
    """Render a single query value the way the service expects it."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


class QueryParams:
    """Base class for query-parameter structures.

    Subclasses are dataclasses whose optional fields default to ``None``.
    ``url_encode`` inserts only the fields that are present. A field value
    that has its own ``url_encode`` (e.g. ``Sort``) renders itself.
    """

    def url_encode(self, m: Dict[str, str]) -> None:
        if not is_dataclass(self):
            raise TypeError(f"{type(self).__name__} must be a dataclass")
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None:
                continue
            if hasattr(value, "url_encode"):
                value.url_encode(m)
            else:
                m[f.name] = format_query_value(value)

    def encode(self) -> str:
        """Render as ``k=v&k=v`` with URL escaping. Empty structures render ``""``."""
        m: Dict[str, str] = {}
        self.url_encode(m)
        return urlencode(m)


@dataclass(frozen=True)
class Sort:
    """Sort key for list endpoints, rendered as ``sort=<by>:<order>[&start=...]``."""
    by: str
    order: Order = Order.ASCENDING
    start: Optional[Union[str, UUID]] = None

    def url_encode(self, m: Dict[str, str]) -> None:
        m["sort"] = f"{self.by}:{self.order.value}"
        if self.start is not None:
            m["start"] = format_query_value(self.start)


@lru_cache(maxsize=None)
def type_adapter(tp: Any) -> TypeAdapter:
    """Cached pydantic adapter for a body or output type."""
    return TypeAdapter(tp)


_PLACEHOLDER = re.compile(r"\{[a-z_]+\}")

PathParams = Union[None, str, UUID, Sequence[Union[str, UUID]]]


def _normalize_path_params(path_params: PathParams) -> tuple:
    if path_params is None:
        return ()
    if isinstance(path_params, (str, UUID)):
        return (path_params,)
    return tuple(path_params)


class Operation:
    """Static description of one REST endpoint.

    Class attributes:
        method: HTTP verb.
        path_template: Path with ``{name}`` placeholders filled in order from
            the path parameters, e.g. ``/crypto/v1/keys/{id}``.
        query_type: ``QueryParams`` subclass accepted by the endpoint, or None.
        body_type: Request body type, or None when the endpoint takes no body.
        output_type: Response type, or None when the body is ignored.
    """

    method: ClassVar[Method]
    path_template: ClassVar[str]
    query_type: ClassVar[Optional[type]] = None
    body_type: ClassVar[Any] = None
    output_type: ClassVar[Any] = None

    def __init__(self) -> None:
        raise TypeError(f"{type(self).__name__} is a descriptor and cannot be instantiated")

    @classmethod
    def path(
        cls,
        path_params: PathParams = None,
        query_params: Optional[QueryParams] = None,
    ) -> str:
        """Render the request path including the query string, if any."""
        params = _normalize_path_params(path_params)
        placeholders = _PLACEHOLDER.findall(cls.path_template)
        if len(params) != len(placeholders):
            raise SDKConfigurationError(
                f"{cls.__name__} expects {len(placeholders)} path parameter(s), "
                f"got {len(params)}"
            )

        values = iter(params)
        path = _PLACEHOLDER.sub(
            lambda _: quote(format_query_value(next(values)), safe=""),
            cls.path_template,
        )

        if query_params is not None:
            query = query_params.encode()
            if query:
                path = f"{path}?{query}"
        return path

    @classmethod
    def to_body(cls, body: Any) -> Optional[Any]:
        """JSON-ready request body.

        Operations without ``body_type`` send nothing and return None. For the
        others a None result is sent as JSON ``null``.
        """
        if cls.body_type is None:
            return None
        adapter = type_adapter(cls.body_type)
        try:
            value = adapter.validate_python(body)
            return adapter.dump_python(value, mode="json", exclude_none=True, by_alias=True)
        except ValidationError as e:
            raise EncoderError(f"cannot encode {cls.__name__} request body: {e}") from e

    @classmethod
    def decode_output(cls, value: Any) -> Any:
        """Validate decoded JSON into ``output_type``."""
        if cls.output_type is None:
            return None
        try:
            return type_adapter(cls.output_type).validate_python(value)
        except ValidationError as e:
            raise EncoderError(f"cannot decode {cls.__name__} response: {e}") from e

    @classmethod
    def has_body(cls) -> bool:
        return cls.body_type is not None
