from __future__ import annotations

import json
import logging
from typing import Any

import httpx
from pydantic import ValidationError as PydanticValidationError

from ..core.errors import BackendApiError, DecodeError, TransportError
from ..schemas.backend import ApiError

logger = logging.getLogger(__name__)

JSON_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
}


def join_url(endpoint: str, path: str) -> str:
    """Join base and path with exactly one slash between them."""

    base = endpoint[:-1] if endpoint.endswith("/") else endpoint
    clean_path = path[1:] if path.startswith("/") else path
    return f"{base}/{clean_path}"


def _decode(response: httpx.Response) -> Any:
    try:
        return json.loads(response.content)
    except ValueError as exc:
        raise DecodeError(f"could not deserialize response body: {exc}") from exc


def _parse_api_error(response: httpx.Response) -> ApiError | None:
    try:
        return ApiError.model_validate_json(response.content)
    except PydanticValidationError:
        return None


class RestClient:
    """Thin authenticated JSON client for a PostgREST style backend."""

    def __init__(
        self,
        endpoint: str,
        api_key: str,
        *,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.endpoint = endpoint[:-1] if endpoint.endswith("/") else endpoint
        self.api_key = api_key
        self._client = httpx.Client(timeout=httpx.Timeout(timeout), transport=transport)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> RestClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def send(
        self,
        method: str,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        json_body: Any = None,
    ) -> httpx.Response:
        url = join_url(self.endpoint, path)
        request_headers = {**JSON_HEADERS, **(headers or {}), "apikey": self.api_key}
        logger.info(
            "backend.request",
            extra={"extra_data": {"method": method, "url": url}},
        )
        content = None if json_body is None else json.dumps(json_body).encode("utf-8")
        try:
            return self._client.request(method, url, headers=request_headers, content=content)
        except httpx.HTTPError as exc:
            raise TransportError(f"{method} {url} failed: {exc}") from exc

    def get_json(self, path: str) -> Any:
        response = self.send("GET", path)
        self._raise_for_status(response)
        return _decode(response)

    def list_table(self, path: str, limit: int, offset: int) -> Any:
        # Literal "{offset}-{limit}", not an inclusive end index.
        response = self.send("GET", path, headers={"Range": f"{offset}-{limit}"})
        self._raise_for_status(response)
        return _decode(response)

    def send_json(self, method: str, path: str, data: Any) -> Any:
        """POST/PATCH ``data`` and return the rows the backend echoes back."""

        response = self.send(
            method,
            path,
            headers={"Prefer": "return=representation"},
            json_body=data,
        )
        if not response.is_success:
            api_error = _parse_api_error(response)
            if api_error is not None:
                logger.warning(
                    "backend.api_error",
                    extra={
                        "extra_data": {
                            "status": response.status_code,
                            "code": api_error.code,
                            "hint": api_error.hint,
                        }
                    },
                )
            raise BackendApiError("api request failed", status_code=response.status_code, api_error=api_error)
        return _decode(response)

    def post_json(self, path: str, data: Any) -> Any:
        return self.send_json("POST", path, data)

    def patch_json(self, path: str, data: Any) -> Any:
        return self.send_json("PATCH", path, data)

    @staticmethod
    def _raise_for_status(response: httpx.Response) -> None:
        if response.is_success:
            return
        if response.status_code >= 500:
            logger.error("Backend error %s for %s", response.status_code, response.request.url)
        else:
            logger.warning("Backend request error %s for %s", response.status_code, response.request.url)
        raise BackendApiError(
            "api request failed",
            status_code=response.status_code,
            api_error=_parse_api_error(response),
        )
