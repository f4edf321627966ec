from __future__ import annotations

from typing import Any, ClassVar, Dict, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from whoop_common.errors import ToolInputError

M = TypeVar("M", bound="ToolInput")


class ToolInput(BaseModel):
    """Base for tool inputs: unknown keys are ignored, nothing is required by default."""

    model_config = ConfigDict(extra="ignore")

    # field name -> message raised when the field is absent or empty
    required_messages: ClassVar[Dict[str, str]] = {}


class NoInput(ToolInput):
    pass


class AuthUrlInput(ToolInput):
    state: Optional[str] = Field(None, description="Optional state parameter for OAuth flow")


class ExchangeTokenInput(ToolInput):
    required_messages: ClassVar[Dict[str, str]] = {"code": "Authorization code is required"}

    code: str = Field(..., description="Authorization code from OAuth callback")


class CollectionQuery(ToolInput):
    start: Optional[str] = Field(None, description="Start datetime (ISO 8601)")
    end: Optional[str] = Field(None, description="End datetime (ISO 8601)")
    limit: Optional[int] = Field(None, description="Limit on number of records (max 25)")
    nextToken: Optional[str] = Field(None, description="Token for pagination")

    def query_params(self) -> dict[str, str]:
        """Only filters that were actually given; absent ones are omitted, not sent empty."""
        params: dict[str, str] = {}
        for key in ("start", "end", "limit", "nextToken"):
            value = getattr(self, key)
            if value is None or value == "":
                continue
            params[key] = str(value)
        return params


def _id_text(v: Any) -> Any:
    # numeric ids are sent as-is in the URL path
    if isinstance(v, (int, float)) and not isinstance(v, bool):
        return str(v)
    return v


class CycleIdInput(ToolInput):
    required_messages: ClassVar[Dict[str, str]] = {"cycleId": "Cycle ID is required"}

    cycleId: int = Field(..., description="Cycle ID")


class SleepIdInput(ToolInput):
    required_messages: ClassVar[Dict[str, str]] = {"sleepId": "Sleep ID is required"}

    sleepId: str = Field(..., description="Sleep ID (UUID)")

    @field_validator("sleepId", mode="before")
    @classmethod
    def numeric_id_as_text(cls, v: Any) -> Any:
        return _id_text(v)


class WorkoutIdInput(ToolInput):
    required_messages: ClassVar[Dict[str, str]] = {"workoutId": "Workout ID is required"}

    workoutId: str = Field(..., description="Workout ID (UUID)")

    @field_validator("workoutId", mode="before")
    @classmethod
    def numeric_id_as_text(cls, v: Any) -> Any:
        return _id_text(v)


def parse_input(model: Type[M], arguments: Optional[Dict[str, Any]]) -> M:
    """Validate raw tool arguments into `model`, raising ToolInputError."""
    args = dict(arguments or {})
    for field, message in model.required_messages.items():
        if args.get(field) in (None, ""):
            raise ToolInputError(message)

    try:
        return model.model_validate(args)
    except ValidationError as e:
        first = e.errors()[0]
        where = ".".join(str(p) for p in first.get("loc", ())) or "input"
        raise ToolInputError(f"Invalid {where}: {first.get('msg')}") from e


def input_schema(model: Type[ToolInput]) -> dict:
    """JSON schema advertised to MCP clients for `model`."""
    schema = model.model_json_schema()
    schema.pop("title", None)
    for prop in schema.get("properties", {}).values():
        prop.pop("title", None)
    schema.setdefault("properties", {})
    schema["type"] = "object"
    return schema
