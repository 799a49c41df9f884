"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
SDKMS Client, a product of Garudex Labs

Plugin management and invocation.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional, Union
from uuid import UUID

from pydantic import BaseModel, Field
from pydantic_core import PydanticSerializationError

from sdkms.api.common import ApiModel, Principal, Time
from sdkms.exceptions import EncoderError
from sdkms.operations import Method, Operation, Order, QueryParams, Sort, type_adapter


class Language(str, Enum):
    LUA = "LUA"


class PluginType(str, Enum):
    STANDARD = "STANDARD"
    IMPERSONATING = "IMPERSONATING"
    CUSTOMALGORITHM = "CUSTOMALGORITHM"


class PluginSourceRequest(ApiModel):
    """Inline source ``{language, code}`` or a repository reference."""

    language: Optional[Language] = None
    code: Optional[str] = None
    repo_url: Optional[str] = None
    name: Optional[str] = None
    version: Optional[str] = None


class Plugin(ApiModel):
    acct_id: UUID
    created_at: Time
    creator: Principal
    default_group: UUID
    description: Optional[str] = None
    enabled: bool
    lastrun_at: Optional[Time] = None
    lastupdated_at: Time
    legacy_access: bool = False
    name: str
    plugin_id: UUID
    plugin_type: PluginType
    source: Any = None
    groups: List[UUID] = []


class PluginRequest(ApiModel):
    default_group: Optional[UUID] = None
    description: Optional[str] = None
    enabled: Optional[bool] = None
    name: Optional[str] = None
    plugin_type: Optional[PluginType] = None
    source_req: Optional[PluginSourceRequest] = Field(default=None, alias="source")
    add_groups: Optional[List[UUID]] = None
    del_groups: Optional[List[UUID]] = None
    mod_groups: Optional[List[UUID]] = None


@dataclass
class ListPluginsParams(QueryParams):
    group_id: Optional[UUID] = None
    limit: Optional[int] = None
    offset: Optional[int] = None
    sort: Optional[Sort] = None

    @staticmethod
    def sort_by_plugin_id(order: Order = Order.ASCENDING, start: Optional[UUID] = None) -> Sort:
        return Sort("plugin_id", order, start)


# Plugin input and output are arbitrary JSON values
PluginOutput = Any


class OperationListPlugins(Operation):
    method = Method.GET
    path_template = "/sys/v1/plugins"
    query_type = ListPluginsParams
    output_type = List[Plugin]


class OperationGetPlugin(Operation):
    method = Method.GET
    path_template = "/sys/v1/plugins/{id}"
    output_type = Plugin


class OperationCreatePlugin(Operation):
    method = Method.POST
    path_template = "/sys/v1/plugins"
    body_type = PluginRequest
    output_type = Plugin


class OperationUpdatePlugin(Operation):
    method = Method.PATCH
    path_template = "/sys/v1/plugins/{id}"
    body_type = PluginRequest
    output_type = Plugin


class OperationDeletePlugin(Operation):
    method = Method.DELETE
    path_template = "/sys/v1/plugins/{id}"


class OperationInvokePlugin(Operation):
    method = Method.POST
    path_template = "/sys/v1/plugins/{id}"
    body_type = Any
    output_type = PluginOutput


PluginId = Union[UUID, str]


def _to_json_value(req: Any) -> Any:
    try:
        if isinstance(req, BaseModel):
            return req.model_dump(mode="json", exclude_none=True, by_alias=True)
        return type_adapter(type(req)).dump_python(req, mode="json")
    except PydanticSerializationError as e:
        raise EncoderError(f"cannot encode plugin input: {e}") from e


class PluginOperations:
    """Plugin management, mixed into both clients."""

    def list_plugins(self, query_params: Optional[ListPluginsParams] = None):
        return self.execute(OperationListPlugins, query_params=query_params)

    def get_plugin(self, id: PluginId):
        return self.execute(OperationGetPlugin, path_params=(id,))

    def create_plugin(self, req: PluginRequest):
        return self.execute(OperationCreatePlugin, req)

    def request_approval_to_create_plugin(
        self, req: PluginRequest, description: Optional[str] = None
    ):
        return self.request_approval(OperationCreatePlugin, req, description=description)

    def update_plugin(self, id: PluginId, req: PluginRequest):
        return self.execute(OperationUpdatePlugin, req, path_params=(id,))

    def request_approval_to_update_plugin(
        self, id: PluginId, req: PluginRequest, description: Optional[str] = None
    ):
        return self.request_approval(
            OperationUpdatePlugin, req, path_params=(id,), description=description
        )

    def delete_plugin(self, id: PluginId):
        return self.execute(OperationDeletePlugin, path_params=(id,))

    def invoke_plugin(self, id: PluginId, req: Any):
        """Invoke a plugin with a raw JSON value and return its raw JSON output."""
        return self.execute(OperationInvokePlugin, req, path_params=(id,))

    def request_approval_to_invoke_plugin(
        self, id: PluginId, req: Any, description: Optional[str] = None
    ):
        return self.request_approval(
            OperationInvokePlugin, req, path_params=(id,), description=description
        )

    def invoke_plugin_nice(self, id: PluginId, req: Any, output_type: Any = Any):
        """Invoke a plugin with a typed input and decode its output as ``output_type``.

        ``req`` may be a pydantic model or any JSON-serializable value.
        """
        value = _to_json_value(req)
        return self._map_result(
            self.execute(OperationInvokePlugin, value, path_params=(id,)),
            lambda output: self._decode_as(output_type, output),
        )
