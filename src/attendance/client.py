"""REST client for the attendance backend.

Every endpoint answers with the same envelope, ``{success, data, message}``.
AttendanceApiClient unwraps it: a successful envelope yields ``data``, a
``success=false`` envelope raises BackendError, and anything that prevents
reading an envelope at all raises TransportError.

The bearer token travels in an explicit ApiSession rather than being
looked up from global state. Records that do not parse are skipped and
logged so one bad row never fails a whole listing.
"""

from dataclasses import dataclass, field
from typing import Any, TypeVar

import requests
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from src.attendance.config import AttendanceConfig, get_config
from src.attendance.errors import BackendError, TransportError
from src.attendance.logging import get_logger
from src.attendance.models import ApiResponse, MarkAttendancePayload, Student, Subject

logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


@dataclass
class ApiSession:
    """Request identity for one workflow: where to call and as whom."""

    base_url: str
    token: str = ""
    timeout: float = 15.0
    extra_headers: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_config(
        cls, config: AttendanceConfig | None = None
    ) -> "ApiSession":
        config = config or get_config()
        return cls(
            base_url=config.api_base_url,
            token=config.api_token,
            timeout=config.request_timeout_seconds,
        )

    def headers(self) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        headers.update(self.extra_headers)
        return headers


class AttendanceApiClient:
    """Thin wrapper over the three endpoints the attendance workflow uses."""

    def __init__(
        self, session: ApiSession, http: requests.Session | None = None
    ) -> None:
        self.session = session
        self.http = http or requests.Session()

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        json_body: dict[str, Any] | None = None,
        fallback_message: str,
    ) -> Any:
        """Send a request and unwrap the response envelope.

        Returns:
            The envelope's ``data`` field.

        Raises:
            TransportError: If no envelope could be read.
            BackendError: If the envelope reports ``success=false``.
        """
        url = f"{self.session.base_url}{path}"
        try:
            resp = self.http.request(
                method,
                url,
                params=params,
                json=json_body,
                headers=self.session.headers(),
                timeout=self.session.timeout,
            )
        except requests.RequestException as e:
            logger.warning("request_failed", method=method, url=url, error=str(e))
            raise TransportError(f"{fallback_message}: {e}") from e

        try:
            envelope = ApiResponse.model_validate(resp.json())
        except ValueError as e:
            # Covers JSON decode errors and envelope validation errors
            logger.warning(
                "response_unreadable",
                method=method,
                url=url,
                status=resp.status_code,
            )
            if resp.ok:
                raise TransportError(f"{fallback_message}: invalid response") from e
            raise TransportError(
                f"Server error: {resp.status_code} {resp.reason}"
            ) from e

        if not resp.ok or not envelope.success:
            logger.info(
                "backend_rejected",
                method=method,
                url=url,
                status=resp.status_code,
                message=envelope.message,
            )
            raise BackendError(
                envelope.message or fallback_message, status_code=resp.status_code
            )

        logger.debug("request_succeeded", method=method, url=url)
        return envelope.data

    def _records(self, data: Any, fallback_message: str) -> list[dict[str, Any]]:
        """Check that an envelope's data is a list of records.

        Raises:
            TransportError: If data is neither null nor a list.
        """
        if data is None:
            return []
        if not isinstance(data, list):
            logger.warning("response_unexpected_data", type=type(data).__name__)
            raise TransportError(f"{fallback_message}: invalid response")
        return [item for item in data if isinstance(item, dict)]

    def _parse(self, model: type[ModelT], records: list[dict[str, Any]]) -> list[ModelT]:
        """Parse each record, skipping the ones that do not fit the model."""
        parsed = []
        for record in records:
            try:
                parsed.append(model.model_validate(record))
            except PydanticValidationError as e:
                logger.warning(
                    "record_skipped",
                    model=model.__name__,
                    errors=e.error_count(),
                    record_id=record.get("id"),
                )
        return parsed

    def list_users(self) -> list[dict[str, Any]]:
        """``GET /users/list``: every user account, regardless of role."""
        fallback = "Failed to fetch users"
        data = self._request("GET", "/users/list", fallback_message=fallback)
        return self._records(data, fallback)

    def list_students(self) -> list[Student]:
        """All users with role ``student``, parsed into Student snapshots."""
        users = [user for user in self.list_users() if user.get("role") == "student"]
        return self._parse(Student, users)

    def list_subjects(self, department: str | None = None) -> list[Subject]:
        """``GET /subjects``, optionally scoped to one department."""
        fallback = "Failed to fetch subjects"
        params = {"department": department} if department else None
        data = self._request("GET", "/subjects", params=params, fallback_message=fallback)
        return self._parse(Subject, self._records(data, fallback))

    def mark_attendance(self, payload: MarkAttendancePayload) -> Any:
        """``POST /attendance/mark`` for a single student."""
        return self._request(
            "POST",
            "/attendance/mark",
            json_body=payload.to_wire(),
            fallback_message="Failed to mark attendance",
        )

    def close(self) -> None:
        self.http.close()
