from __future__ import annotations

import json
from typing import cast
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode
from urllib.request import Request, urlopen

USER_AGENT = "linkpost/0.1"


class UpstreamServiceError(RuntimeError):
    def __init__(self, message: str, *, status_code: int | None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ConfigurationError(RuntimeError):
    pass


def request_json(
    *,
    method: str,
    url: str,
    headers: dict[str, str],
    params: dict[str, str] | None = None,
    payload: dict[str, object] | None = None,
    timeout_seconds: float,
    service_name: str,
    error_class: type[UpstreamServiceError] = UpstreamServiceError,
) -> dict[str, object]:
    query = urlencode(params or {})
    request_url = f"{url}?{query}" if query else url
    request_headers = {"Accept": "application/json", "User-Agent": USER_AGENT, **headers}

    body: bytes | None = None
    if payload is not None:
        body = json.dumps(payload, ensure_ascii=True).encode("utf-8")
        request_headers["Content-Type"] = "application/json"

    request = Request(request_url, data=body, headers=request_headers, method=method)

    try:
        with urlopen(request, timeout=timeout_seconds) as response:
            raw_body = response.read().decode("utf-8", errors="replace")
    except HTTPError as exc:
        response_body = exc.read().decode("utf-8", errors="replace") if exc.fp else ""
        message = _extract_error_message(decode_json_object(response_body)) or str(exc)
        raise error_class(
            f"{service_name} API request failed: {message}",
            status_code=exc.code,
        ) from exc
    except (URLError, TimeoutError, OSError) as exc:
        reason = exc.reason if isinstance(exc, URLError) else exc
        raise error_class(
            f"{service_name} request failed: {reason}",
            status_code=None,
        ) from exc

    return decode_json_object(raw_body)


def decode_json_object(raw_body: str) -> dict[str, object]:
    if not raw_body.strip():
        return {}
    try:
        parsed = json.loads(raw_body)
    except json.JSONDecodeError:
        return {}
    if isinstance(parsed, dict):
        parsed_dict = cast(dict[object, object], parsed)
        return {key: value for key, value in parsed_dict.items() if isinstance(key, str)}
    return {}


def _extract_error_message(payload: dict[str, object]) -> str | None:
    errors = payload.get("errors")
    if isinstance(errors, list) and errors:
        first = cast(list[object], errors)[0]
        if isinstance(first, dict):
            message = cast(dict[str, object], first).get("message")
            if isinstance(message, str) and message.strip():
                return message.strip()
    for key in ("errorMessage", "error_description", "message", "error"):
        value = payload.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None
