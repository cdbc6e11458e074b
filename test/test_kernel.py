import json

import pytest

from conftest import RecordingCompletionStub
from plankernel import Kernel, Plan
from plankernel.errors import AIServiceError, FunctionNotFoundError, NotFoundError, ServiceNotFoundError
from plankernel.functions import NativeFunction


@pytest.mark.asyncio
async def test_run_async_threads_context_through_pipeline():
    kernel = Kernel()
    upper = kernel.register_function(NativeFunction(lambda context: context.result.upper(), name="upper"))
    bang = kernel.register_function(NativeFunction(lambda context: context.result + "!", name="bang"))

    result = await kernel.run_async(upper, bang, input="hello")

    assert result.get_value() == "HELLO!"
    assert [r.function_name for r in result.function_results] == ["upper", "bang"]


@pytest.mark.asyncio
async def test_run_async_reraises_errors_verbatim():
    kernel = Kernel()
    error = AIServiceError("Chat completion request failed", status_code=503, detail="upstream busy")

    def fail(context):
        raise error

    failing = kernel.register_function(NativeFunction(fail, name="fail"))

    with pytest.raises(AIServiceError) as exc_info:
        await kernel.run_async(failing, input="x")
    assert exc_info.value is error
    assert "HTTP 503" in str(exc_info.value)


@pytest.mark.asyncio
async def test_semantic_function_uses_default_service():
    kernel = Kernel()
    backend = RecordingCompletionStub(["Bonjour"])
    kernel.add_text_completion_service("stub", backend)

    translate = kernel.create_semantic_function(
        "Translate to French: {{$input}}",
        function_name="translate",
        plugin_name="Language",
        description="Translate text",
        max_tokens=32,
    )

    result = await kernel.run_async(translate, input="Hello")

    assert result.get_value() == "Bonjour"
    assert backend.calls[0]["prompt"] == "Translate to French: Hello"
    assert backend.calls[0]["settings"].max_tokens == 32
    assert kernel.func("language", "TRANSLATE") is translate


@pytest.mark.asyncio
async def test_missing_service_is_reported_at_invocation():
    kernel = Kernel()
    fn = kernel.create_semantic_function("{{$input}}", function_name="lonely")

    with pytest.raises(ServiceNotFoundError):
        await kernel.run_async(fn, input="x")


def test_get_service_respects_explicit_default():
    kernel = Kernel()
    first = RecordingCompletionStub(["a"])
    second = RecordingCompletionStub(["b"])
    kernel.add_text_completion_service("first", first)
    kernel.add_text_completion_service("second", lambda: second, set_as_default=True)

    assert kernel.get_service() is second
    assert kernel.get_service("first") is first
    with pytest.raises(ServiceNotFoundError):
        kernel.get_service("third")


@pytest.mark.asyncio
async def test_step_async_advances_plan_one_step():
    kernel = Kernel()
    first = kernel.register_function(NativeFunction(lambda context: "one", name="first"))
    second = kernel.register_function(NativeFunction(lambda context: context.result + " two", name="second"))
    plan = Plan("Count", first, second)

    plan = await kernel.step_async(plan, variables={"input": "start"})
    assert plan.next_step_index == 1
    assert plan.state.input == "one"

    plan = await kernel.step_async(plan, variables=plan.state)
    assert not plan.has_next_step
    assert plan.state.input == "one two"


@pytest.mark.asyncio
async def test_run_next_step_creates_context_from_kernel():
    kernel = Kernel()
    fn = kernel.register_function(NativeFunction(lambda context: context["topic"], name="topic"))
    plan = Plan("Topic", fn)

    await plan.run_next_step(kernel, {"topic": "whales"})

    assert plan.state.input == "whales"


@pytest.mark.asyncio
async def test_import_semantic_functions_from_directory(tmp_path):
    function_dir = tmp_path / "WriterPlugin" / "Summarize"
    function_dir.mkdir(parents=True)
    (function_dir / "skprompt.txt").write_text("Summarize: {{$input}}", encoding="utf-8")
    (function_dir / "config.json").write_text(
        json.dumps({"schema": 1, "type": "completion", "description": "Summarize text"}),
        encoding="utf-8",
    )
    bare_dir = tmp_path / "WriterPlugin" / "Bare"
    bare_dir.mkdir()
    (bare_dir / "skprompt.txt").write_text("{{$input}}", encoding="utf-8")
    (tmp_path / "WriterPlugin" / "NotAFunction").mkdir()

    kernel = Kernel()
    backend = RecordingCompletionStub(["short"])
    kernel.add_text_completion_service("stub", backend)

    imported = kernel.import_semantic_functions_from_directory(tmp_path, "WriterPlugin")

    assert sorted(imported) == ["Bare", "Summarize"]
    summarize = kernel.func("WriterPlugin", "Summarize")
    assert summarize.description == "Summarize text"

    result = await kernel.run_async(summarize, input="a long text")
    assert result.get_value() == "short"
    assert backend.calls[0]["prompt"] == "Summarize: a long text"


def test_import_from_missing_plugin_directory_raises(tmp_path):
    kernel = Kernel()
    with pytest.raises(NotFoundError):
        kernel.import_semantic_functions_from_directory(tmp_path, "MissingPlugin")


def test_func_raises_for_unknown_function():
    with pytest.raises(FunctionNotFoundError):
        Kernel().func("Nope", "missing")
