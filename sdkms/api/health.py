"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
SDKMS Client, a product of Garudex Labs

Cluster health check. A 2xx response means healthy; anything else raises.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from sdkms.operations import Method, Operation, QueryParams


@dataclass
class HealthParams(QueryParams):
    consistency: Optional[str] = None
    check_queues: bool = False


class OperationGetHealth(Operation):
    method = Method.GET
    path_template = "/sys/v1/health"
    query_type = HealthParams


class HealthOperations:
    def health(self, query_params: Optional[HealthParams] = None):
        return self.execute(OperationGetHealth, query_params=query_params)
