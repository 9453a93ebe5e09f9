"""Run report helpers for extraction runs."""

from __future__ import annotations

import json
import os
from datetime import datetime, timezone
from typing import Any, Sequence

from blocks.model import Block, Diagnostic, iter_blocks


def build_run_report(
    operation: str,
    source: Block,
    result: Block,
    targets: Sequence[str],
) -> dict[str, Any]:
    """Summarize one extract/persist run."""
    diagnostics = [
        {"kind": node.kind, "message": node.message}
        for node in iter_blocks(result)
        if isinstance(node, Diagnostic)
    ]
    return {
        "operation": operation,
        "targets": list(targets),
        "source_arity": list(source.arity),
        "result_arity": list(result.arity),
        "status": "failed" if diagnostics else "success",
        "diagnostics": diagnostics,
    }


def write_run_report(
    report: dict[str, Any],
    run_id: str,
    output_dir: str = "output/extract_reports",
) -> str:
    """Write a JSON run report and return its path."""
    os.makedirs(output_dir, exist_ok=True)
    payload = dict(report)
    payload.setdefault("run_id", run_id)
    payload.setdefault("timestamp_utc", datetime.now(timezone.utc).isoformat())
    path = os.path.join(output_dir, f"{run_id}.json")
    with open(path, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2, sort_keys=True)
    return path
