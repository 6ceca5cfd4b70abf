"""Unit tests for task resource substitution."""

from __future__ import annotations

import copy

from offline_step_functions.definitions.rewriter import rewrite_resources

OLD_ARN = "arn:aws:lambda:us-east-1:101010101010:function:old"


def _definition() -> dict[str, object]:
    return {
        "Comment": "example",
        "StartAt": "A",
        "States": {
            "A": {"Type": "Task", "Resource": OLD_ARN, "Next": "Wait"},
            "Wait": {"Type": "Wait", "Seconds": 5, "Next": "Done"},
            "Done": {"Type": "Succeed"},
        },
    }


def test_direct_resource_is_replaced() -> None:
    result = rewrite_resources(_definition(), {"A": "new-fn"})

    assert result["States"]["A"]["Resource"] == "new-fn"
    assert result["States"]["A"]["Next"] == "Wait"


def test_callback_task_redirects_function_name() -> None:
    definition = {
        "StartAt": "A",
        "States": {
            "A": {
                "Type": "Task",
                "Resource": "arn:aws:states:::lambda:invoke.waitForTaskToken",
                "Parameters": {"FunctionName": OLD_ARN, "Payload": {"token.$": "$$.Task.Token"}},
                "End": True,
            }
        },
    }

    result = rewrite_resources(definition, {"A": "new-fn"})

    state = result["States"]["A"]
    assert state["Resource"] == "arn:aws:states:::lambda:invoke.waitForTaskToken"
    assert state["Parameters"]["FunctionName"] == "new-fn"
    assert state["Parameters"]["Payload"] == {"token.$": "$$.Task.Token"}


def test_callback_task_without_parameters_gets_them() -> None:
    definition = {"States": {"A": {"Resource": "x.waitForTaskToken"}}}

    result = rewrite_resources(definition, {"A": "new-fn"})

    assert result["States"]["A"]["Parameters"] == {"FunctionName": "new-fn"}


def test_callback_task_with_unusable_parameters_is_left_alone() -> None:
    definition = {"States": {"A": {"Resource": "x.waitForTaskToken", "Parameters": "oops"}}}

    result = rewrite_resources(definition, {"A": "new-fn"})

    assert result == definition


def test_intrinsic_resource_is_overwritten() -> None:
    definition = {"States": {"A": {"Type": "Task", "Resource": {"Fn::GetAtt": ["hello", "Arn"]}}}}

    result = rewrite_resources(definition, {"A": "new-fn"})

    assert result["States"]["A"]["Resource"] == "new-fn"


def test_unmapped_states_and_resourceless_subtrees_are_unchanged() -> None:
    original = _definition()

    result = rewrite_resources(original, {"Other": "new-fn"})

    assert result == original


def test_empty_mapping_is_identity() -> None:
    original = _definition()

    assert rewrite_resources(original, {}) == original


def test_input_is_not_mutated() -> None:
    original = {
        "States": {
            "A": {"Resource": OLD_ARN},
            "B": {"Resource": "x.waitForTaskToken", "Parameters": {"FunctionName": OLD_ARN}},
        }
    }
    snapshot = copy.deepcopy(original)

    rewrite_resources(original, {"A": "new-a", "B": "new-b"})

    assert original == snapshot


def test_rewrite_is_idempotent() -> None:
    mapping = {"A": "new-fn", "B": "new-b"}
    definition = _definition()
    definition["States"]["B"] = {"Resource": "x.waitForTaskToken", "Parameters": {}}

    once = rewrite_resources(definition, mapping)
    twice = rewrite_resources(once, mapping)

    assert twice == once


def test_nested_parallel_branches_are_rewritten() -> None:
    definition = {
        "StartAt": "Fan",
        "States": {
            "Fan": {
                "Type": "Parallel",
                "Branches": [
                    {"StartAt": "Left", "States": {"Left": {"Type": "Task", "Resource": OLD_ARN, "End": True}}},
                    {"StartAt": "Right", "States": {"Right": {"Type": "Task", "Resource": OLD_ARN, "End": True}}},
                ],
                "End": True,
            }
        },
    }

    result = rewrite_resources(definition, {"Left": "left-fn"})

    branches = result["States"]["Fan"]["Branches"]
    assert branches[0]["States"]["Left"]["Resource"] == "left-fn"
    assert branches[1]["States"]["Right"]["Resource"] == OLD_ARN


def test_list_items_are_keyed_by_index() -> None:
    result = rewrite_resources({"Items": [{"Resource": OLD_ARN}]}, {"0": "by-index"})

    assert result["Items"][0]["Resource"] == "by-index"


def test_scalars_pass_through() -> None:
    assert rewrite_resources("plain", {"A": "x"}) == "plain"
    assert rewrite_resources(None, {"A": "x"}) is None
