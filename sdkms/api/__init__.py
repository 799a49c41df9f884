"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
SDKMS Client, a product of Garudex Labs

Endpoint catalog. Each module declares the records, query parameters,
operation descriptors and client wrappers for one area of the API.
"""
