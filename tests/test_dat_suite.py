"""Runs the .dat fixtures in tests/xml-tests through run_tests.py."""

import importlib.util
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent


def load_runner():
    spec = importlib.util.spec_from_file_location("run_tests", ROOT / "run_tests.py")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


run_tests = load_runner()

CONFIG = {
    "fail_fast": False,
    "test_specs": [],
    "filter_files": None,
    "quiet": True,
    "filter_xml": None,
    "filter_errors": None,
    "verbosity": 0,
}


class TestDatSuite(unittest.TestCase):
    def test_fixture_files_parse(self):
        files = sorted((ROOT / "tests" / "xml-tests").glob("*.dat"))
        assert files
        for path in files:
            cases = run_tests.parse_dat_file(path)
            assert cases, path.name
            assert all(case.data for case in cases), path.name

    def test_all_fixtures_pass(self):
        runner = run_tests.TestRunner(run_tests.TEST_DIR, CONFIG)
        passed, failed = runner.run()
        failures = [result for result in runner.results if not result.passed]
        assert failed == 0, "\n\n".join(
            f"{r.input_xml!r}\nexpected {r.expected_errors} {r.expected_output!r}\n"
            f"actual   {r.actual_errors} {r.actual_output!r}"
            for r in failures
        )
        assert passed > 30

    def test_runner_reports_mismatch(self):
        case = run_tests.TestCase(data="<a/>", errors=[], document="| <b>")
        result = run_tests.TestRunner(run_tests.TEST_DIR, CONFIG)._run_single_test(case)
        assert not result.passed
        assert result.actual_output == "| <a>"

    def test_runner_captures_trace_when_verbose(self):
        case = run_tests.TestCase(data="<a/>", errors=[], document="| <a>")
        config = dict(CONFIG, verbosity=2)
        result = run_tests.TestRunner(run_tests.TEST_DIR, config)._run_single_test(case)
        assert result.passed
        assert "self-closing <a/>" in result.debug_output

    def test_test_specs_select_indices(self):
        config = dict(CONFIG, test_specs=["tags.dat:0,2"])
        runner = run_tests.TestRunner(run_tests.TEST_DIR, config)
        passed, failed = runner.run()
        assert (passed, failed) == (2, 0)


if __name__ == "__main__":
    unittest.main()
