# postapi/dispatch/encoding.py

import json
from typing import Any, Tuple

from fastapi.encoders import jsonable_encoder

from postapi.errors import DispatchError

JSON_MEDIA_TYPE = "application/json"


class ResponseEncoder:
    """
    Canonical JSON for results and errors.

    Output is compact and keeps model field order, so identical input always
    yields identical bytes.
    """

    media_type = JSON_MEDIA_TYPE

    def encode(self, value: Any) -> bytes:
        return json.dumps(
            jsonable_encoder(value),
            ensure_ascii=False,
            separators=(",", ":"),
        ).encode("utf-8")

    def encode_error(self, error: DispatchError) -> Tuple[int, bytes]:
        body = {"error": error.kind, "detail": error.detail}
        return error.status_code, self.encode(body)
