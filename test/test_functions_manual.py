from plankernel.config import PlanningSettings
from plankernel.functions import FunctionRegistry, NativeFunction, ParameterView
from plankernel.planning import get_available_functions, get_functions_manual


def _registry() -> FunctionRegistry:
    registry = FunctionRegistry()
    registry.register(
        NativeFunction(
            lambda context: None,
            name="Summarize",
            plugin_name="WriterPlugin",
            description="Summarize the input text",
            parameters=[
                ParameterView(name="input", description="Text to summarize"),
                ParameterView(name="style", description="Tone of voice", default_value="neutral"),
            ],
        )
    )
    registry.register(
        NativeFunction(lambda context: None, name="Now", plugin_name="TimePlugin", description="Current time")
    )
    registry.register(
        NativeFunction(lambda context: None, name="Secret", plugin_name="Internal", description="Hidden")
    )
    return registry


def test_manual_lists_functions_with_inputs():
    manual = get_functions_manual(_registry(), PlanningSettings(excluded_plugins=frozenset({"internal"})))

    assert manual == (
        "TimePlugin.Now:\n"
        "  description: Current time\n"
        "\n"
        "WriterPlugin.Summarize:\n"
        "  description: Summarize the input text\n"
        "  inputs:\n"
        "    - input: Text to summarize\n"
        "    - style: Tone of voice (default value: neutral)"
    )


def test_excluded_functions_and_limit():
    config = PlanningSettings(excluded_functions=frozenset({"now"}), max_relevant_functions=1)

    views = get_available_functions(_registry(), config)

    assert [view.qualified_name for view in views] == ["Internal.Secret"]


def test_environment_configures_exclusions(monkeypatch):
    monkeypatch.setenv("PLAN_EXCLUDED_PLUGINS", "Internal, WriterPlugin")

    views = get_available_functions(_registry())

    assert [view.qualified_name for view in views] == ["TimePlugin.Now"]
