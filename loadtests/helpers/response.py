"""Turn Fleetline API error bodies into one-line failure messages.

Body shapes produced by the API:

- Request schema errors (422): {"detail": [{"loc": [...], "msg": "..."}]}
- Guarded endpoints (400/403): {"detail": "..."}
- Domain errors (400/404/503): {"error": {"field": ["msg", ...]}} or {"error": "msg"}
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from requests import Response

_MAX_DETAIL = 300


def _flatten(messages) -> str:
    if isinstance(messages, list):
        return "; ".join(str(m) for m in messages)
    return str(messages)


def extract_error_detail(response: Response) -> str:
    try:
        body = response.json()
    except ValueError:
        text = getattr(response, "text", "") or ""
        return text[:_MAX_DETAIL] or "(empty response body)"

    if not isinstance(body, dict):
        return str(body)[:_MAX_DETAIL]

    detail = body.get("detail")
    if isinstance(detail, list):
        return " | ".join(
            f"{'.'.join(str(p) for p in err.get('loc', []))}: {err.get('msg', err)}" for err in detail
        )
    if detail is not None:
        return str(detail)[:_MAX_DETAIL]

    error = body.get("error")
    if isinstance(error, dict):
        return " | ".join(f"{field}: {_flatten(msgs)}" for field, msgs in error.items())
    if error is not None:
        return str(error)[:_MAX_DETAIL]

    return str(body)[:_MAX_DETAIL]
