import logging
from typing import Any, Optional

import httpx
from pydantic import ValidationError as PydanticValidationError

from digitizer.core.errors import ErrorCode
from digitizer.core.exceptions import ApiError, TransportError
from digitizer.core.settings import api_settings
from digitizer.domain.models import JobSnapshot

logger = logging.getLogger(__name__)


class DigitizationApiClient:
    """Thin async wrapper around the digitization HTTP API.

    Unwraps the ``{data, message?}`` envelope on success and raises
    ApiError for non-2xx responses or TransportError when the server
    cannot be reached or answers with an unusable body.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        upload_timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or api_settings.api_root).rstrip("/")
        self.timeout = timeout or api_settings.DIGITIZER_HTTP_TIMEOUT_SECONDS
        self.upload_timeout = upload_timeout or api_settings.DIGITIZER_UPLOAD_TIMEOUT_SECONDS
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        self._client = httpx.AsyncClient(timeout=self.timeout, transport=self._transport)
        return self

    async def __aexit__(self, *args):
        await self.aclose()

    async def aclose(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    def _url(self, endpoint: str) -> str:
        return f"{self.base_url}/{endpoint.lstrip('/')}"

    async def _request(
        self,
        method: str,
        endpoint: str,
        *,
        default_message: str = ErrorCode.API_ERROR.value.message,
        **kwargs,
    ) -> Any:
        if not self._client:
            raise RuntimeError("Client not started")

        try:
            resp = await self._client.request(method, self._url(endpoint), **kwargs)
        except httpx.TimeoutException as e:
            logger.warning(f"{method} {endpoint} timed out: {e}")
            raise TransportError("timeout", detail=str(e)) from e
        except httpx.HTTPError as e:
            logger.warning(f"{method} {endpoint} failed: {type(e).__name__}: {e}")
            raise TransportError("unreachable", detail=str(e)) from e

        try:
            payload = resp.json()
        except ValueError as e:
            logger.warning(
                f"{method} {endpoint} returned a non-JSON body",
                extra={"http_status": resp.status_code},
            )
            raise TransportError(
                "invalid_response",
                detail="Response body is not JSON",
                status_code=resp.status_code,
                payload=resp.text[:1000],
            ) from e

        if not resp.is_success:
            logger.info(
                f"{method} {endpoint} -> {resp.status_code}",
                extra={"http_status": resp.status_code},
            )
            raise ApiError(resp.status_code, payload, default_message=default_message)

        if not isinstance(payload, dict):
            raise TransportError(
                "invalid_response",
                detail="Response envelope is not an object",
                status_code=resp.status_code,
                payload=payload,
            )
        return payload.get("data")

    async def fetch(self, endpoint: str, method: str = "GET", json: Any = None) -> Any:
        """JSON request against ``{base_url}/{endpoint}`` returning the envelope data."""
        kwargs = {"headers": {"Content-Type": "application/json"}}
        if json is not None:
            kwargs["json"] = json
        return await self._request(method, endpoint, **kwargs)

    async def submit_url(self, image_url: str, target_language: str) -> str:
        data = await self.fetch(
            "digitize/url",
            method="POST",
            json={"imageUrl": image_url, "targetLanguage": target_language},
        )
        return self._digitization_id(data)

    async def submit_upload(
        self,
        file_content: bytes,
        filename: str,
        target_language: str,
        content_type: Optional[str] = None,
    ) -> str:
        files = {
            "image": (filename, file_content, content_type or "application/octet-stream")
        }
        data = await self._request(
            "POST",
            "digitize/upload",
            default_message=ErrorCode.UPLOAD_FAILED.value.message,
            files=files,
            data={"targetLanguage": target_language or ""},
            timeout=self.upload_timeout,
        )
        return self._digitization_id(data)

    async def get_result(self, job_id: str) -> JobSnapshot:
        data = await self.fetch(f"digitize/result/{job_id}")
        if not isinstance(data, dict):
            raise TransportError(
                "invalid_response", detail="Result payload is not an object", payload=data
            )
        try:
            snapshot = JobSnapshot.model_validate(data)
        except PydanticValidationError as e:
            raise TransportError("invalid_response", detail=str(e), payload=data) from e

        if snapshot.id is None:
            snapshot = snapshot.model_copy(update={"id": job_id})
        return snapshot

    @staticmethod
    def _digitization_id(data: Any) -> str:
        job_id = data.get("digitizationId") if isinstance(data, dict) else None
        if not isinstance(job_id, str) or not job_id:
            raise TransportError(
                "invalid_response", detail="Response missing digitizationId", payload=data
            )
        return job_id
