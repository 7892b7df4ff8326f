"""Application settings."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")


class HonorerSettings(BaseModel):
    """Settings of an honorer application."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    debug: bool = Field(default=False, description="Include stack traces in 500 responses")
    auto_init: bool = Field(default=True, description="Run init hooks after module registration")
    format_response: bool = Field(default=True, description="Wrap handler results in the response envelope")
    strict_injection: bool = Field(
        default=False,
        description="Raise for constructor parameters without an injection token or default",
    )
    middleware_scope: Literal["global", "module"] = Field(
        default="global",
        description="Mount module middleware on every route or only on the module's own routes",
    )
    log_level: str = Field(default="INFO", description="loguru level")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        return level
