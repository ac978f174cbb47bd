"""
Command execution data models.

Wire events are tagged by "type"; the terminal exit event uses the
host's field names (code, timedOut) which are mapped to snake_case here.
"""

from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class StdoutEvent(BaseModel):
    """A chunk of standard output."""

    model_config = ConfigDict(frozen=True)

    type: Literal["stdout"] = "stdout"
    data: str


class StderrEvent(BaseModel):
    """A chunk of standard error."""

    model_config = ConfigDict(frozen=True)

    type: Literal["stderr"] = "stderr"
    data: str


class ExitEvent(BaseModel):
    """Terminal event: the process finished, was killed, or timed out."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    type: Literal["exit"] = "exit"
    exit_code: Optional[int] = Field(default=None, alias="code")
    timed_out: bool = Field(default=False, alias="timedOut")
    signal: Optional[str] = None


CommandEvent = Annotated[Union[StdoutEvent, StderrEvent, ExitEvent], Field(discriminator="type")]

command_event_adapter: TypeAdapter = TypeAdapter(CommandEvent)


class CommandResult(BaseModel):
    """Buffered outcome of a finished command."""

    model_config = ConfigDict(frozen=True)

    stdout: str = Field(..., description="Standard output lines joined by newlines")
    stderr: str = Field(..., description="Standard error lines joined by newlines")
    exit_code: Optional[int] = Field(None, description="Process exit code, None if killed")
    timed_out: bool = Field(False, description="Host killed the process on timeout")
    signal: Optional[str] = Field(None, description="Signal that terminated the process")
