"""Success envelope shared by the routers.

Bodies are serialized once with orjson so the response cache stores exactly
the bytes the client received.
"""

from __future__ import annotations

from typing import Any

import orjson
from fastapi import Response

JSON_MEDIA_TYPE = "application/json"


def success_response(message: str, data: Any = None, status_code: int = 200) -> Response:
    """Render ``{"status": "success", "message": ..., "data": ...}``.

    ``data`` is omitted when None.
    """
    body: dict[str, Any] = {"status": "success", "message": message}
    if data is not None:
        body["data"] = data
    return Response(orjson.dumps(body), status_code=status_code, media_type=JSON_MEDIA_TYPE)
