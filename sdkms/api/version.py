"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
SDKMS Client, a product of Garudex Labs

Service version information.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from sdkms.api.common import ApiModel
from sdkms.operations import Method, Operation


class ServerMode(str, Enum):
    SOFTWARE = "Software"
    SGX = "Sgx"


class VersionResponse(ApiModel):
    version: str
    api_version: str
    server_mode: ServerMode
    # Absent when the service is not running in FIPS compliant mode
    fips_level: Optional[int] = None


class OperationVersion(Operation):
    method = Method.GET
    path_template = "/sys/v1/version"
    output_type = VersionResponse


class VersionOperations:
    def version(self):
        return self.execute(OperationVersion)
