"""Request body parsers."""

from __future__ import annotations

from rest_framework.exceptions import ParseError
from rest_framework.parsers import JSONParser

JSON_OBJECT_REQUIRED = "Request body must be a JSON object"


class JSONObjectParser(JSONParser):
    """``JSONParser`` that only accepts an object at the top level.

    Every endpoint reads named fields from ``request.data``; arrays and
    scalars are rejected with a 400 before a view sees them.
    """

    def parse(self, stream, media_type=None, parser_context=None):
        data = super().parse(stream, media_type, parser_context)
        if not isinstance(data, dict):
            raise ParseError(JSON_OBJECT_REQUIRED)
        return data
