"""Attendance client configuration loaded from environment variables."""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

# Locations offered by the manual attendance form
LOCATIONS: tuple[str, ...] = (
    "Lab 01",
    "Lab 02",
    "Lab 03",
    "Lecture Hall A",
    "Lecture Hall B",
    "Computer Lab",
)


class AttendanceConfig(BaseSettings):
    """Attendance client configuration loaded from environment variables.

    Settings are loaded from environment variables with sensible defaults.
    For local development, create a .env file in the project root.
    """

    # Backend settings
    api_base_url: str = Field(
        default="http://localhost:8080/MlvissioTrack/api",
        description="Base URL of the attendance REST backend",
    )
    api_token: str = Field(
        default="",
        description="Bearer token attached to every backend request",
    )
    request_timeout_seconds: float = Field(
        default=15.0,
        description="Timeout for a single HTTP request",
    )
    submit_timeout_seconds: float = Field(
        default=30.0,
        description="Upper bound on one attendance submission call",
    )

    # Form defaults
    default_location: str = Field(
        default="Lab 01",
        description="Location shared by every record in a submission batch",
    )
    default_arrival_time: str = Field(
        default="",
        description="Default arrival time (HH:MM); empty means the time the form opens",
    )
    undo_capacity: int = Field(
        default=10,
        description="Number of ledger snapshots kept for undo",
    )

    # Logging
    log_json: bool = Field(
        default=False,
        description="Output logs in JSON format (for production)",
    )
    log_level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    model_config = {
        "env_prefix": "ATTENDANCE_",
        "case_sensitive": False,
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @field_validator("api_base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("default_location")
    @classmethod
    def _known_location(cls, value: str) -> str:
        if value not in LOCATIONS:
            raise ValueError(f"Unknown location {value!r}. Valid: {list(LOCATIONS)}")
        return value


# Singleton pattern
_config: AttendanceConfig | None = None


def get_config() -> AttendanceConfig:
    """Get the attendance configuration singleton.

    Returns:
        AttendanceConfig: Attendance configuration instance
    """
    global _config
    if _config is None:
        _config = AttendanceConfig()
    return _config
