"""Limit/offset pagination matching the storefront's response shape.

Responses look like::

    {"<results_key>": [...],
     "pagination": {"total": 42, "limit": 10, "offset": 0, "hasMore": true}}
"""

from __future__ import annotations

from rest_framework.pagination import LimitOffsetPagination
from rest_framework.response import Response


class LimitOffsetResultsPagination(LimitOffsetPagination):
    default_limit = 20
    max_limit = 100

    def __init__(self, results_key: str = "results", default_limit: int | None = None):
        self.results_key = results_key
        if default_limit is not None:
            self.default_limit = default_limit

    def get_paginated_response(self, data) -> Response:
        return Response(
            {
                self.results_key: data,
                "pagination": {
                    "total": self.count,
                    "limit": self.limit,
                    "offset": self.offset,
                    "hasMore": self.offset + self.limit < self.count,
                },
            }
        )
