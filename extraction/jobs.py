"""Job documents: YAML/JSON descriptions of an expression and the taps to extract."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from blocks.model import (
    COMBINATORS,
    Block,
    Group,
    Leaf,
    Route,
    Subroutine,
    TapId,
    compose,
)
from blocks.routing import bus, cut, wire
from extraction.taps import CATALOG, named_tap, tap

_WIRE_ALIASES = {"_", "wire"}
_CUT_ALIASES = {"!", "cut"}


@dataclass(frozen=True)
class ExtractionJob:
    """Parsed job document."""

    name: str
    expression: Block
    taps: dict[str, TapId]
    targets: list[TapId]
    persist: bool = False
    description: str = ""
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def target_names(self) -> list[str]:
        return [target.name for target in self.targets]


def _expect_dict(payload: Any, ctx: str) -> dict[str, Any]:
    if not isinstance(payload, dict):
        raise ValueError(f"{ctx} must be an object")
    return payload


def _expect_count(payload: dict[str, Any], key: str, ctx: str) -> int:
    value = payload.get(key)
    if not isinstance(value, int) or isinstance(value, bool) or value < 0:
        raise ValueError(f"{ctx}: {key} must be a non-negative integer")
    return value


def _single_key(payload: dict[str, Any]) -> tuple[str, Any]:
    if len(payload) != 1:
        raise ValueError(
            f"expression node must have exactly one key, got {sorted(payload)}"
        )
    return next(iter(payload.items()))


def _parse_tap(name: Any, taps: dict[str, TapId]) -> Block:
    key = str(name).strip()
    if key not in taps:
        raise ValueError(f"tap {key!r} is not declared")
    return tap(taps[key])


def _parse_route(payload: Any) -> Block:
    spec = _expect_dict(payload, "route")
    inputs = _expect_count(spec, "inputs", "route")
    outputs = _expect_count(spec, "outputs", "route")
    raw = spec.get("connections", [])
    if not isinstance(raw, list):
        raise ValueError("route: connections must be a list of [src, dst] pairs")

    connections: list[tuple[int, int]] = []
    for item in raw:
        if not isinstance(item, (list, tuple)) or len(item) != 2:
            raise ValueError(f"route: bad connection {item!r}")
        try:
            # documents use 1-based wire numbers
            src, dst = int(item[0]) - 1, int(item[1]) - 1
        except (TypeError, ValueError) as exc:
            raise ValueError(f"route: bad connection {item!r}") from exc
        connections.append((src, dst))
    return Route(inputs, outputs, tuple(connections))


def parse_expression(payload: Any, taps: dict[str, TapId]) -> Block:
    """Build a block from one node of a job document.

    Args:
        payload: A string shorthand (``_``, ``!``) or a single-key mapping.
        taps: Declared tap names.

    Returns:
        The parsed block.

    Raises:
        ValueError: On unknown node kinds, malformed nodes or undeclared taps.
        ArityError: If a composition is ill-formed.
    """
    if isinstance(payload, str):
        text = payload.strip()
        if text in _WIRE_ALIASES:
            return wire()
        if text in _CUT_ALIASES:
            return cut()
        raise ValueError(f"unknown expression shorthand {payload!r}")

    kind, body = _single_key(_expect_dict(payload, "expression node"))

    if kind in COMBINATORS:
        if not isinstance(body, list) or len(body) < 2:
            raise ValueError(f"{kind} needs a list of at least two operands")
        if kind == "feedback" and len(body) != 2:
            raise ValueError("feedback needs exactly two operands")
        return compose(kind, *(parse_expression(item, taps) for item in body))

    if kind == "tap":
        return _parse_tap(body, taps)

    if kind == "leaf":
        spec = _expect_dict(body, "leaf")
        name = str(spec.get("name", "")).strip()
        if not name:
            raise ValueError("leaf: name is required")
        return Leaf(
            name,
            _expect_count(spec, "inputs", f"leaf {name!r}"),
            _expect_count(spec, "outputs", f"leaf {name!r}"),
        )

    if kind == "bus":
        if not isinstance(body, int) or isinstance(body, bool):
            raise ValueError("bus: width must be an integer")
        return bus(body)

    if kind == "route":
        return _parse_route(body)

    if kind == "group":
        spec = _expect_dict(body, "group")
        label = str(spec.get("label", "")).strip()
        if not label:
            raise ValueError("group: label is required")
        return Group(label, parse_expression(spec.get("body"), taps))

    if kind == "subroutine":
        spec = _expect_dict(body, "subroutine")
        name = str(spec.get("name", "")).strip()
        if not name:
            raise ValueError("subroutine: name is required")
        params = spec.get("params", [])
        if not isinstance(params, list):
            raise ValueError(f"subroutine {name!r}: params must be a list")
        return Subroutine(name, parse_expression(spec.get("body"), taps), tuple(params))

    raise ValueError(f"unknown expression node {kind!r}")


def declare_taps(names: Any) -> dict[str, TapId]:
    """Mint one identifier per declared name; catalog names map to the catalog."""
    taps: dict[str, TapId] = {tap_id.name: tap_id for tap_id in CATALOG}
    if names is None:
        return taps
    if not isinstance(names, list):
        raise ValueError("taps must be a list of names")

    declared: set[str] = set()
    for raw in names:
        name = str(raw).strip()
        if not name:
            raise ValueError("taps contains an empty name")
        if name in declared:
            raise ValueError(f"Duplicate tap name: {name}")
        declared.add(name)
        if name not in taps:
            taps[name] = named_tap(name)
    return taps


def _load_payload(path: str) -> dict[str, Any]:
    job_path = Path(path)
    if not job_path.is_file():
        raise FileNotFoundError(f"Job file not found: {job_path}")

    text = job_path.read_text(encoding="utf-8")
    if job_path.suffix.lower() == ".json":
        payload = json.loads(text)
    else:
        payload = yaml.safe_load(text)
    return _expect_dict(payload, "job")


def parse_job(payload: dict[str, Any], default_name: str = "job") -> ExtractionJob:
    """Validate a job mapping and build its expression."""
    taps = declare_taps(payload.get("taps"))
    if "expression" not in payload:
        raise ValueError("expression is required")
    expression = parse_expression(payload["expression"], taps)

    raw_targets = payload.get("extract", [])
    if isinstance(raw_targets, str):
        raw_targets = [raw_targets]
    if not isinstance(raw_targets, list):
        raise ValueError("extract must be a tap name or a list of tap names")

    targets: list[TapId] = []
    for raw in raw_targets:
        name = str(raw).strip()
        if name not in taps:
            raise ValueError(f"extract: tap {name!r} is not declared")
        targets.append(taps[name])

    known = {"name", "description", "taps", "expression", "extract", "persist"}
    return ExtractionJob(
        name=str(payload.get("name", default_name)),
        expression=expression,
        taps=taps,
        targets=targets,
        persist=bool(payload.get("persist", False)),
        description=str(payload.get("description", "")),
        extra={k: v for k, v in payload.items() if k not in known},
    )


def load_job(path: str) -> ExtractionJob:
    """Load and validate a job document from a YAML/JSON file."""
    payload = _load_payload(path)
    return parse_job(payload, default_name=Path(path).stem)
