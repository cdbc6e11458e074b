import json

import pytest

from conftest import RecordingCompletionStub
from plankernel.errors import (
    AIServiceError,
    ErrorCode,
    FunctionExecutionError,
    InvalidConfigurationError,
    OperationCancelledError,
    ValidationError,
)
from plankernel.functions import NativeFunction, PromptFunction, PromptTemplateConfig
from plankernel.interfaces import PromptTemplateRenderer
from plankernel.orchestration import CancellationToken, ExecutionContext, VariableStore
from plankernel.templates import BasicPromptTemplateRenderer, extract_variable_names


def _context(value: str = "", **variables) -> ExecutionContext:
    return ExecutionContext(VariableStore(value, variables=variables))


@pytest.mark.asyncio
async def test_renders_template_and_keeps_only_first_completion():
    backend = RecordingCompletionStub(["first answer", "second answer"])
    fn = PromptFunction("Tell me about {{$input}} in a {{ $style }} way", name="tell", service=backend)

    context = _context("otters", style="poetic")
    result = await fn.invoke(context)

    assert backend.calls[0]["prompt"] == "Tell me about otters in a poetic way"
    assert result.get_value() == "first answer"
    assert context.result == "first answer"
    assert len(result.metadata["model_results"]) == 2


@pytest.mark.asyncio
async def test_declared_default_values_fill_missing_variables():
    config = PromptTemplateConfig.from_json(
        json.dumps(
            {
                "schema": 1,
                "type": "completion",
                "description": "Greets someone",
                "completion": {"max_tokens": 64, "temperature": 0.2},
                "input": {"parameters": [{"name": "greeting", "description": "Word", "defaultValue": "Hello"}]},
            }
        )
    )
    backend = RecordingCompletionStub(["ok"])
    fn = PromptFunction("{{$greeting}}, {{$input}}", config=config, name="greet", service=backend)

    await fn.invoke(_context("Ada"))

    assert backend.calls[0]["prompt"] == "Hello, Ada"
    assert backend.calls[0]["settings"].max_tokens == 64
    view = fn.describe()
    assert view.is_semantic is True
    assert view.description == "Greets someone"
    assert [p.name for p in view.parameters] == ["greeting", "input"]


@pytest.mark.asyncio
async def test_empty_completion_list_is_an_invalid_response():
    fn = PromptFunction("{{$input}}", name="empty", service=RecordingCompletionStub([]))

    with pytest.raises(AIServiceError) as exc_info:
        await fn.invoke(_context("x"))
    assert exc_info.value.error_code == ErrorCode.AI_INVALID_RESPONSE


@pytest.mark.asyncio
async def test_backend_exception_becomes_ai_service_error():
    cause = RuntimeError("connection reset")
    fn = PromptFunction("{{$input}}", name="broken", service=RecordingCompletionStub(error=cause))

    with pytest.raises(AIServiceError) as exc_info:
        await fn.invoke(_context("x"))
    assert exc_info.value.cause is cause
    assert "connection reset" in str(exc_info.value)


@pytest.mark.asyncio
async def test_backend_ai_service_error_is_not_rewrapped():
    error = AIServiceError("bad key", status_code=401, detail="invalid api key")
    fn = PromptFunction("{{$input}}", name="auth", service=RecordingCompletionStub(error=error))

    with pytest.raises(AIServiceError) as exc_info:
        await fn.invoke(_context("x"))
    assert exc_info.value is error
    assert exc_info.value.status_code == 401
    assert exc_info.value.detail == "invalid api key"


@pytest.mark.asyncio
async def test_missing_service_is_a_configuration_error():
    fn = PromptFunction("{{$input}}", name="orphan")

    with pytest.raises(InvalidConfigurationError) as exc_info:
        await fn.invoke(_context("x"))
    assert exc_info.value.error_code == ErrorCode.SERVICE_NOT_CONFIGURED


@pytest.mark.asyncio
async def test_render_failure_is_an_execution_error():
    class FailingRenderer(PromptTemplateRenderer):
        async def render(self, template, context, cancellation_token=None):
            raise KeyError("missing block")

    fn = PromptFunction(
        "{{$input}}", name="render", renderer=FailingRenderer(), service=RecordingCompletionStub()
    )

    with pytest.raises(FunctionExecutionError) as exc_info:
        await fn.invoke(_context("x"))
    assert exc_info.value.error_code == ErrorCode.TEMPLATE_RENDER_FAILED


@pytest.mark.asyncio
async def test_cancelled_token_skips_backend_call():
    backend = RecordingCompletionStub()
    fn = PromptFunction("{{$input}}", name="cancel", service=backend)
    token = CancellationToken()
    token.cancel("user aborted")

    with pytest.raises(OperationCancelledError):
        await fn.invoke(_context("x"), cancellation_token=token)
    assert backend.calls == []


@pytest.mark.asyncio
async def test_renderer_leaves_unknown_variables_empty():
    renderer = BasicPromptTemplateRenderer()
    rendered = await renderer.render("[{{$missing}}] {{$input}}", _context("value"))
    assert rendered == "[] value"


def test_extract_variable_names_is_ordered_and_distinct():
    assert extract_variable_names("{{$b}} {{$a}} {{ $B }}") == ["b", "a"]


def test_native_function_cannot_take_ai_configuration():
    fn = NativeFunction(lambda context: None, name="native")

    with pytest.raises(InvalidConfigurationError) as exc_info:
        fn.set_ai_service(lambda: RecordingCompletionStub())
    assert exc_info.value.error_code == ErrorCode.INVALID_FUNCTION_TYPE


def test_unsupported_template_type_is_rejected():
    with pytest.raises(ValidationError):
        PromptTemplateConfig.from_json(json.dumps({"type": "embedding"}))
