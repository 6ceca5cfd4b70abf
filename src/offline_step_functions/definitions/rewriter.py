"""Task resource substitution for state machine definitions.

Definitions written for AWS usually point task states at deployed functions
(`Fn::GetAtt` references or real ARNs). Locally those have to be redirected to
whatever the lambda endpoint serves, keyed by the name of the state.

The walk is a plain depth-first descent over the definition tree. Every
container is reached with the key it sits under in its parent (list items use
their index), and a node carrying a `Resource` is rewritten when that key is in
the mapping. A new tree is returned; the input is left untouched.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

CALLBACK_MARKER = ".waitForTaskToken"

ResourceMapping = Mapping[str, str]


def rewrite_resources(
    tree: Any, mapping: ResourceMapping, parent_key: str | None = None
) -> Any:
    """Return a copy of `tree` with task resources replaced from `mapping`.

    Callback-pattern tasks (`arn:aws:states:::lambda:invoke.waitForTaskToken`)
    keep their integration `Resource`; the replacement goes to
    `Parameters.FunctionName` instead.

    Never raises: anything that cannot be interpreted is copied as is.
    """

    if isinstance(tree, Mapping):
        node = {key: _rewrite_child(value, mapping, key) for key, value in tree.items()}
        if "Resource" in node and parent_key is not None and parent_key in mapping:
            _substitute(node, mapping[parent_key])
        return node

    if isinstance(tree, (list, tuple)):
        return [_rewrite_child(item, mapping, str(index)) for index, item in enumerate(tree)]

    return tree


def _rewrite_child(value: Any, mapping: ResourceMapping, key: Any) -> Any:
    if isinstance(value, (Mapping, list, tuple)):
        return rewrite_resources(value, mapping, str(key))
    return value


def _substitute(node: dict[str, Any], replacement: str) -> None:
    resource = node["Resource"]
    if isinstance(resource, str) and CALLBACK_MARKER in resource:
        parameters = node.get("Parameters")
        if parameters is None:
            node["Parameters"] = {"FunctionName": replacement}
        elif isinstance(parameters, dict):
            parameters["FunctionName"] = replacement
        # Non-mapping Parameters: leave the state as written.
        return

    node["Resource"] = replacement

