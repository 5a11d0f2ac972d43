"""Success Envelope — the shape every 2xx JSON body takes.

Invariants:
    - Always {"success": true, "data": ...}; "message" and "meta" only when given
    - Error bodies are built by AwoofError.to_response(), never here
"""

from typing import Any


def success(data: Any = None, message: str | None = None, meta: dict | None = None) -> dict:
    body: dict[str, Any] = {"success": True, "data": data}
    if message:
        body["message"] = message
    if meta:
        body["meta"] = meta
    return body
