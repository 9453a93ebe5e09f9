"""Tests for the command-line runner."""

import io
import json
import os
import tempfile
import unittest
from contextlib import redirect_stdout
from pathlib import Path
from unittest.mock import patch

import run_extract

TEE_JOB = """
name: tee
taps: [p]
expression:
  sequential:
    - split:
        - _
        - parallel: [_, {tap: p}]
    - leaf: {name: f, inputs: 1, outputs: 1}
extract: [p]
"""

MISSING_TAP_JOB = """
name: missing
taps: [p, q]
expression:
  sequential: [_, {tap: p}]
extract: [q]
"""


class TestRunExtract(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.tmpdir = Path(self._tmp.name)
        env = patch.dict(os.environ, {}, clear=False)
        env.start()
        self.addCleanup(env.stop)
        for name in ("STRICT_EXTRACTION", "TAP_LOG_LEVEL", "TAP_REPORT_DIR"):
            os.environ.pop(name, None)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _write(self, name: str, text: str) -> str:
        path = self.tmpdir / name
        path.write_text(text, encoding="utf-8")
        return str(path)

    def _run(self, *argv: str) -> tuple:
        out = io.StringIO()
        with redirect_stdout(out):
            code = run_extract.main(list(argv))
        return code, out.getvalue()

    def _reports(self) -> list:
        report_dir = self.tmpdir / "reports"
        if not report_dir.is_dir():
            return []
        return [json.loads(p.read_text(encoding="utf-8")) for p in report_dir.glob("*.json")]

    def test_extract_prints_result_and_writes_report(self) -> None:
        job = self._write("tee.yml", TEE_JOB)
        code, out = self._run("--job", job, "--report-dir", str(self.tmpdir / "reports"))

        self.assertEqual(code, 0)
        self.assertIn('hgroup("p", _)', out)
        reports = self._reports()
        self.assertEqual(len(reports), 1)
        self.assertEqual(reports[0]["job"], "tee")
        self.assertEqual(reports[0]["operation"], "extract")
        self.assertEqual(reports[0]["source_arity"], [1, 1])
        self.assertEqual(reports[0]["result_arity"], [1, 2])
        self.assertEqual(reports[0]["status"], "success")

    def test_persist_flag_keeps_arity(self) -> None:
        job = self._write("tee.yml", TEE_JOB)
        code, out = self._run(
            "--job", job, "--report-dir", str(self.tmpdir / "reports"), "--persist"
        )

        self.assertEqual(code, 0)
        self.assertIn("attach", out)
        report = self._reports()[0]
        self.assertEqual(report["operation"], "persist")
        self.assertEqual(report["result_arity"], [1, 1])

    def test_missing_tap_renders_diagnostic(self) -> None:
        job = self._write("missing.yml", MISSING_TAP_JOB)
        code, out = self._run("--job", job, "--report-dir", str(self.tmpdir / "reports"))

        self.assertEqual(code, 0)
        self.assertIn("error(", out)
        report = self._reports()[0]
        self.assertEqual(report["status"], "failed")
        self.assertEqual(report["diagnostics"][0]["kind"], "not_found")

    def test_strict_fails_on_missing_tap(self) -> None:
        job = self._write("missing.yml", MISSING_TAP_JOB)
        code, out = self._run(
            "--job", job, "--report-dir", str(self.tmpdir / "reports"), "--strict"
        )

        self.assertEqual(code, 1)
        self.assertEqual(out, "")
        self.assertEqual(self._reports(), [])

    def test_missing_job_file(self) -> None:
        code, _ = self._run("--job", str(self.tmpdir / "nope.yml"))
        self.assertEqual(code, 1)

    def test_invalid_job_document(self) -> None:
        job = self._write("bad.yml", "taps: [p]\nextract: [p]\n")
        code, _ = self._run("--job", job, "--report-dir", str(self.tmpdir / "reports"))
        self.assertEqual(code, 1)

    def test_null_route_connection_is_a_job_error(self) -> None:
        job = self._write(
            "route.yml",
            "expression:\n  route: {inputs: 1, outputs: 1, connections: [[null, 1]]}\n",
        )
        code, out = self._run("--job", job, "--report-dir", str(self.tmpdir / "reports"))
        self.assertEqual(code, 1)
        self.assertEqual(out, "")

    def test_strict_settings_error(self) -> None:
        job = self._write("tee.yml", TEE_JOB)
        code, _ = self._run(
            "--job", job, "--settings", str(self.tmpdir / "missing-settings.yml"), "--strict"
        )
        self.assertEqual(code, 1)

    def test_settings_file_supplies_report_dir(self) -> None:
        job = self._write("tee.yml", TEE_JOB)
        settings = self._write(
            "settings.yml", f"report_dir: {self.tmpdir / 'reports'}\nlog_level: debug\n"
        )
        code, _ = self._run("--job", job, "--settings", settings)
        self.assertEqual(code, 0)
        self.assertEqual(len(self._reports()), 1)


if __name__ == "__main__":
    unittest.main()
