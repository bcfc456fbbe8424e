from __future__ import annotations

import argparse
import inspect
import json
from typing import Any, List, Optional

import yaml
from pydantic import BaseModel, Field

from .config import CompanionSettings
from .models import ConditionSource, Operator
from .registry import registry

# Importing the package registers the built-in evaluators.
from . import operators as _builtin_operators  # noqa: F401


class OperatorCatalogEntry(BaseModel):
    operator: str
    negation: Optional[str] = None
    label: str
    description: str = ""
    sources: List[str] = Field(default_factory=list)

    module: str
    class_name: str


def _negation_of(operator: Operator) -> Optional[str]:
    try:
        return Operator(f"!{operator.value}").value
    except ValueError:
        return None


def build_catalog() -> List[OperatorCatalogEntry]:
    entries: List[OperatorCatalogEntry] = []
    for operator in registry.ids():
        evaluator = registry.get(operator)
        evaluator_cls = type(evaluator)
        sources = evaluator.sources or tuple(ConditionSource)
        doc = inspect.getdoc(evaluator_cls) or ""

        entries.append(
            OperatorCatalogEntry(
                operator=operator.value,
                negation=_negation_of(operator),
                label=evaluator.label,
                description=doc.split("\n\n", 1)[0].replace("\n", " ") if doc else "",
                sources=[s.value for s in sources],
                module=evaluator_cls.__module__,
                class_name=evaluator_cls.__name__,
            )
        )

    entries.sort(key=lambda e: e.operator)
    return entries


def settings_schema() -> dict[str, Any]:
    return CompanionSettings.model_json_schema(by_alias=True)


def _dump_json(payload: Any) -> str:
    return json.dumps(payload, indent=2, sort_keys=True)


def _dump_yaml(payload: Any) -> str:
    return yaml.safe_dump(payload, sort_keys=True)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="List the condition operators the rule engine supports.")
    parser.add_argument(
        "--format",
        choices=("yaml", "json"),
        default="yaml",
        help="Output format (default: yaml).",
    )
    parser.add_argument(
        "--settings-schema",
        action="store_true",
        help="Print the JSON schema of the settings file instead of the operator catalog.",
    )
    args = parser.parse_args(argv)

    if args.settings_schema:
        payload: Any = settings_schema()
    else:
        payload = [e.model_dump() for e in build_catalog()]

    if args.format == "json":
        print(_dump_json(payload))
    else:
        print(_dump_yaml(payload))


if __name__ == "__main__":
    main()
