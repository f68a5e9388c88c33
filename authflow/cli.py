"""Command-line interface for AuthFlow.

Current implemented features:
- inspect: assemble a flow definition document and print the graphs (JSON)
- validate: report definition and graph errors (exit code 1 when invalid)
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import List, Optional

from .core.registry import FlowDefinitionRegistry
from .definition import DefinitionWebflowConfigurer, load_flow_definition_json, validate_flow_definition
from .services import FlowBuilderServices
from .settings import WebflowSettings


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="authflow", add_help=True)
    p.add_argument("--log-level", default="warning", help="Logging level (default: warning)")
    sub = p.add_subparsers(dest="command")

    insp = sub.add_parser("inspect", help="Assemble a definition and print its flows (JSON)")
    insp.add_argument("definition", help="Path to a flow definition JSON file")
    insp.add_argument("--flow", default=None, help="Only print this flow id")

    val = sub.add_parser("validate", help="Validate a flow definition")
    val.add_argument("definition", help="Path to a flow definition JSON file")

    return p


def _assemble(path: str) -> FlowDefinitionRegistry:
    registry = FlowDefinitionRegistry()
    document = load_flow_definition_json(path)
    configurer = DefinitionWebflowConfigurer(
        FlowBuilderServices(),
        registry,
        document,
        settings=WebflowSettings(autoconfigure=True),
    )
    configurer.do_initialize()
    return registry


def main(args: Optional[List[str]] = None) -> int:
    if args is None:
        args = sys.argv[1:]

    parser = _build_parser()
    ns = parser.parse_args(args)
    logging.basicConfig(level=str(ns.log_level).upper())

    if ns.command == "inspect":
        registry = _assemble(ns.definition)
        flows = [f.to_dict() for f in registry if ns.flow is None or f.id == ns.flow]
        sys.stdout.write(json.dumps({"flows": flows}, indent=2, ensure_ascii=False) + "\n")
        return 0

    if ns.command == "validate":
        document = load_flow_definition_json(ns.definition)
        errors: List[str] = []
        for model in document.flows:
            errors.extend(validate_flow_definition(model))
        if not errors:
            for flow in _assemble(ns.definition):
                errors.extend(flow.validate())
        for e in errors:
            sys.stderr.write(f"error: {e}\n")
        if errors:
            return 1
        sys.stdout.write("ok\n")
        return 0

    parser.print_help()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
