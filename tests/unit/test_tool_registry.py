import pytest
from pydantic import BaseModel, Field, ValidationError

from stepwise_rag.agent.registry import ToolRegistry, ToolSpec
from stepwise_rag.errors import ToolError


class EchoInput(BaseModel):
    value: int = Field(ge=1)


def _echo_spec() -> ToolSpec:
    def _handler(data: EchoInput) -> str:
        return str(data.value)

    return ToolSpec(
        name="echo",
        description="echo positive int",
        args_schema=EchoInput,
        handler=_handler,
    )


def test_tool_registry_validation() -> None:
    registry = ToolRegistry()
    registry.register(_echo_spec())

    assert registry.execute("echo", {"value": 3}) == "3"

    with pytest.raises(ValidationError):
        registry.execute("echo", {"value": 0})


def test_duplicate_tool_registration_rejected() -> None:
    registry = ToolRegistry()
    spec = _echo_spec()

    registry.register(spec)
    with pytest.raises(ValueError):
        registry.register(spec)


def test_unknown_tool_raises_key_error() -> None:
    registry = ToolRegistry()

    with pytest.raises(KeyError):
        registry.execute("missing", {})


def test_failing_handler_surfaces_as_tool_error() -> None:
    registry = ToolRegistry()

    def _handler(data: EchoInput) -> str:
        raise ConnectionError("index unreachable")

    registry.register(
        ToolSpec(name="broken", description="always fails", args_schema=EchoInput, handler=_handler)
    )

    with pytest.raises(ToolError) as excinfo:
        registry.execute("broken", {"value": 1})

    assert excinfo.value.tool_name == "broken"
    assert "index unreachable" in str(excinfo.value)
    assert isinstance(excinfo.value.__cause__, ConnectionError)
