import json

import pytest

from plankernel.errors import FunctionNotFoundError, PlanSerializationError
from plankernel.functions import FunctionRegistry, NativeFunction
from plankernel.orchestration import ExecutionContext
from plankernel.planning import Plan, PlanKind


def _registry() -> FunctionRegistry:
    registry = FunctionRegistry()
    registry.register(NativeFunction(lambda context: context.result.upper(), name="shout", plugin_name="Text"))
    registry.register(NativeFunction(lambda context: context.result + "!", name="exclaim", plugin_name="Text"))
    return registry


def _sample_plan(registry: FunctionRegistry) -> Plan:
    plan = Plan("Make it loud")
    shout = Plan.from_function(registry.get_function("Text", "shout"))
    shout.parameters["input"] = "$topic"
    shout.outputs.append("LOUD")
    exclaim = Plan.from_function(registry.get_function("Text", "exclaim"))
    exclaim.parameters["input"] = "$LOUD"
    exclaim.outputs.append("RESULT__FINAL")
    plan.add_steps(shout, exclaim)
    plan.outputs.append("RESULT__FINAL")
    plan.state["topic"] = "owls"
    return plan


def test_round_trip_preserves_fields():
    registry = _registry()
    plan = _sample_plan(registry)

    restored = Plan.from_json(plan.to_json())

    assert restored.name == plan.name
    assert restored.plugin_name == "Plan"
    assert restored.description == plan.description
    assert restored.state.to_dict() == plan.state.to_dict()
    assert restored.parameters.to_dict() == plan.parameters.to_dict()
    assert restored.outputs == plan.outputs
    assert len(restored.steps) == 2
    assert restored.steps[0].parameters["input"] == "$topic"
    assert restored.steps[1].outputs == ["RESULT__FINAL"]
    assert restored.steps[0].function is None


def test_round_trip_keeps_empty_names():
    plan = _sample_plan(_registry())
    plan.name = ""
    plan.steps[0].name = ""

    restored = Plan.from_json(plan.to_json())

    assert restored.name == ""
    assert restored.steps[0].name == ""
    assert restored.steps[1].name == "exclaim"


def test_document_uses_expected_field_names():
    plan = _sample_plan(_registry())

    document = json.loads(plan.to_json(indented=True))

    assert set(document) == {
        "name",
        "plugin_name",
        "description",
        "next_step_index",
        "state",
        "parameters",
        "outputs",
        "steps",
    }
    assert document["steps"][0]["plugin_name"] == "Text"
    assert document["steps"][0]["name"] == "shout"


@pytest.mark.asyncio
async def test_rebound_plan_resumes_from_saved_cursor():
    registry = _registry()
    plan = _sample_plan(registry)
    await plan.invoke_next_step(ExecutionContext(plan.state.clone(), functions=registry))
    assert plan.state["LOUD"] == "OWLS"

    restored = Plan.from_json(plan.to_json(), functions=registry)
    assert restored.next_step_index == 1
    assert restored.steps[1].kind is PlanKind.LEAF

    await restored.invoke_next_step(ExecutionContext(restored.state.clone(), functions=registry))

    assert not restored.has_next_step
    assert restored.state["RESULT__FINAL"] == "OWLS!"


def test_rebinding_requires_functions_by_default():
    plan = _sample_plan(_registry())

    with pytest.raises(FunctionNotFoundError):
        Plan.from_json(plan.to_json(), functions=FunctionRegistry())

    relaxed = Plan.from_json(plan.to_json(), functions=FunctionRegistry(), require_functions=False)
    assert all(step.function is None for step in relaxed.steps)


def test_key_value_pair_lists_are_accepted():
    document = {
        "name": "legacy",
        "plugin_name": "Plan",
        "description": "Legacy document",
        "next_step_index": 0,
        "state": [{"Key": "input", "Value": "seed"}],
        "parameters": [{"Key": "topic", "Value": "$x"}],
        "outputs": [],
        "steps": [],
    }

    plan = Plan.from_json(json.dumps(document))

    assert plan.state.input == "seed"
    assert plan.parameters["topic"] == "$x"


@pytest.mark.parametrize(
    "text",
    [
        "not json",
        json.dumps({"name": "p", "next_step_index": 2, "steps": []}),
        json.dumps({"name": "p", "next_step_index": -1}),
        json.dumps({"name": "p", "steps": "nope"}),
        json.dumps({"name": "p", "plugin_name": "Plan", "state": {"": "x"}}),
        json.dumps({"name": "p", "parameters": [{"Key": "", "Value": "x"}]}),
        json.dumps({"name": "p", "steps": [{"name": "child", "state": {"": "x"}}]}),
    ],
)
def test_malformed_documents_raise_serialization_error(text):
    with pytest.raises(PlanSerializationError):
        Plan.from_json(text)
