"""
Tool registry and dispatch.

Each tool is a closed `ToolName` member mapped to a `ToolSpec` (description,
input model, handler). Handlers take the server context and a validated
input record and return a JSON-serialisable payload; the dispatcher owns the
success/error envelope.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional, Type

from whoop_common.context import begin_request
from whoop_common.errors import WhoopError
from whoop_common.tooling import InstrumentConfig, instrument_sync_tool
from whoop_mcp.app_context import ServerContext
from whoop_mcp.models import (
    AuthUrlInput,
    CollectionQuery,
    CycleIdInput,
    ExchangeTokenInput,
    NoInput,
    SleepIdInput,
    ToolInput,
    WorkoutIdInput,
    parse_input,
)

log = logging.getLogger(__name__)


class ToolName(str, Enum):
    AUTH_URL = "whoop_auth_url"
    EXCHANGE_TOKEN = "whoop_exchange_token"
    REFRESH_TOKEN = "whoop_refresh_token"
    GET_PROFILE = "whoop_get_profile"
    GET_BODY_MEASUREMENT = "whoop_get_body_measurement"
    GET_CYCLES = "whoop_get_cycles"
    GET_CYCLE_BY_ID = "whoop_get_cycle_by_id"
    GET_RECOVERY = "whoop_get_recovery"
    GET_RECOVERY_FOR_CYCLE = "whoop_get_recovery_for_cycle"
    GET_SLEEP = "whoop_get_sleep"
    GET_SLEEP_BY_ID = "whoop_get_sleep_by_id"
    GET_SLEEP_FOR_CYCLE = "whoop_get_sleep_for_cycle"
    GET_WORKOUTS = "whoop_get_workouts"
    GET_WORKOUT_BY_ID = "whoop_get_workout_by_id"

    @classmethod
    def parse(cls, name: str) -> Optional["ToolName"]:
        try:
            return cls(name)
        except ValueError:
            return None


Handler = Callable[[ServerContext, Any], Any]


@dataclass(frozen=True)
class ToolSpec:
    name: ToolName
    description: str
    input_model: Type[ToolInput]
    handler: Handler

    def invoke(self, ctx: ServerContext, arguments: Optional[Dict[str, Any]]) -> Any:
        params = parse_input(self.input_model, arguments)
        return self.handler(ctx, params)


TOOLS: Dict[ToolName, ToolSpec] = {}


def whoop_tool(name: ToolName, input_model: Type[ToolInput], description: str):
    """Register a handler under `name`; input is validated before it runs."""

    def decorator(fn: Handler) -> Handler:
        if name in TOOLS:
            raise RuntimeError(f"Duplicate tool registration: {name.value}")
        TOOLS[name] = ToolSpec(name=name, description=description, input_model=input_model, handler=fn)
        return fn

    return decorator


def validate_registry() -> None:
    """Fail at startup if any ToolName has no handler."""
    missing = [t.value for t in ToolName if t not in TOOLS]
    if missing:
        raise RuntimeError(f"Tools without a registered handler: {', '.join(missing)}")


# ---------------------------------------------------------------------------
# Auth tools
# ---------------------------------------------------------------------------


@whoop_tool(ToolName.AUTH_URL, AuthUrlInput, "Generate OAuth authorization URL for Whoop")
def auth_url(ctx: ServerContext, params: AuthUrlInput) -> dict:
    return ctx.auth.build_auth_url(params.state)


@whoop_tool(ToolName.EXCHANGE_TOKEN, ExchangeTokenInput, "Exchange authorization code for access token")
def exchange_token(ctx: ServerContext, params: ExchangeTokenInput) -> dict:
    return ctx.auth.exchange_code(params.code)


@whoop_tool(ToolName.REFRESH_TOKEN, NoInput, "Refresh the access token using refresh token")
def refresh_token(ctx: ServerContext, params: NoInput) -> dict:
    return ctx.auth.refresh()


# ---------------------------------------------------------------------------
# Data tools
# ---------------------------------------------------------------------------


@whoop_tool(ToolName.GET_PROFILE, NoInput, "Get basic user profile (name, email)")
def get_profile(ctx: ServerContext, params: NoInput) -> Any:
    return ctx.api.get_profile()


@whoop_tool(
    ToolName.GET_BODY_MEASUREMENT,
    NoInput,
    "Get user body measurements (height, weight, max heart rate)",
)
def get_body_measurement(ctx: ServerContext, params: NoInput) -> Any:
    return ctx.api.get_body_measurement()


@whoop_tool(ToolName.GET_CYCLES, CollectionQuery, "Get physiological cycles for a date range")
def get_cycles(ctx: ServerContext, params: CollectionQuery) -> Any:
    return ctx.api.get_cycles(params)


@whoop_tool(ToolName.GET_CYCLE_BY_ID, CycleIdInput, "Get a specific cycle by ID")
def get_cycle_by_id(ctx: ServerContext, params: CycleIdInput) -> Any:
    return ctx.api.get_cycle_by_id(params.cycleId)


@whoop_tool(ToolName.GET_RECOVERY, CollectionQuery, "Get recovery data for a date range")
def get_recovery(ctx: ServerContext, params: CollectionQuery) -> Any:
    return ctx.api.get_recovery(params)


@whoop_tool(ToolName.GET_RECOVERY_FOR_CYCLE, CycleIdInput, "Get recovery for a specific cycle")
def get_recovery_for_cycle(ctx: ServerContext, params: CycleIdInput) -> Any:
    return ctx.api.get_recovery_for_cycle(params.cycleId)


@whoop_tool(ToolName.GET_SLEEP, CollectionQuery, "Get sleep data for a date range")
def get_sleep(ctx: ServerContext, params: CollectionQuery) -> Any:
    return ctx.api.get_sleep(params)


@whoop_tool(ToolName.GET_SLEEP_BY_ID, SleepIdInput, "Get a specific sleep by ID")
def get_sleep_by_id(ctx: ServerContext, params: SleepIdInput) -> Any:
    return ctx.api.get_sleep_by_id(params.sleepId)


@whoop_tool(ToolName.GET_SLEEP_FOR_CYCLE, CycleIdInput, "Get sleep for a specific cycle")
def get_sleep_for_cycle(ctx: ServerContext, params: CycleIdInput) -> Any:
    return ctx.api.get_sleep_for_cycle(params.cycleId)


@whoop_tool(ToolName.GET_WORKOUTS, CollectionQuery, "Get workout data for a date range")
def get_workouts(ctx: ServerContext, params: CollectionQuery) -> Any:
    return ctx.api.get_workouts(params)


@whoop_tool(ToolName.GET_WORKOUT_BY_ID, WorkoutIdInput, "Get a specific workout by ID")
def get_workout_by_id(ctx: ServerContext, params: WorkoutIdInput) -> Any:
    return ctx.api.get_workout_by_id(params.workoutId)


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ToolResult:
    text: str
    is_error: bool = False

    @classmethod
    def success(cls, payload: Any) -> "ToolResult":
        return cls(text=json.dumps(payload, indent=2))

    @classmethod
    def failure(cls, message: str) -> "ToolResult":
        return cls(text=f"Error: {message}", is_error=True)


class ToolDispatcher:
    """Routes a tool name to its handler and wraps the outcome in an envelope."""

    def __init__(self, ctx: ServerContext) -> None:
        validate_registry()
        self.ctx = ctx
        self._invokers = {
            name: instrument_sync_tool(InstrumentConfig(kind="tool", name=name.value))(spec.invoke)
            for name, spec in TOOLS.items()
        }

    def call(self, name: str, arguments: Optional[Dict[str, Any]] = None) -> ToolResult:
        tool = ToolName.parse(name)
        if tool is None:
            log.warning("Unknown tool requested: %s", name)
            return ToolResult.failure(f"Unknown tool: {name}")

        rid = begin_request()
        try:
            payload = self._invokers[tool](self.ctx, arguments)
        except WhoopError as e:
            log.warning("Tool %s failed (%s, request %s): %s", tool.value, e.code, rid, e)
            return ToolResult.failure(str(e))
        except Exception as e:
            log.exception("Unexpected error in tool %s", tool.value)
            return ToolResult.failure(str(e))

        return ToolResult.success(payload)
