import json
from typing import Any

from fastapi.responses import JSONResponse


class PrettyJSONResponse(JSONResponse):
    """JSON rendered with a 3-space indent, as the front-end has always received it."""

    def render(self, content: Any) -> bytes:
        return json.dumps(
            content,
            ensure_ascii=False,
            allow_nan=False,
            indent=3,
            separators=(",", ": "),
        ).encode("utf-8")
