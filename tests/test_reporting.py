import csv
import tempfile
import unittest
from pathlib import Path

from rnmigrate_analyzer.config.loader import Settings
from rnmigrate_analyzer.core.metrics.usage import UsageAggregator
from rnmigrate_analyzer.models.schema import ClassificationResult, FileOutcome, RunReport
from rnmigrate_analyzer.reporting.csv_export import export_all
from rnmigrate_analyzer.reporting.json_export import build_json_report
from rnmigrate_analyzer.reporting.render import github_url, priority_color, render_html_report


def _fixture():
    agg = UsageAggregator()
    agg.fold("src/A.tsx", {}, [("Field", ClassificationResult.direct())] * 3)
    agg.fold("src/B.tsx", {}, [("Chip", ClassificationResult.provenance("kit"))])
    usage = agg.finalize(3, 2)
    report = RunReport(
        mode="analyze",
        files=(
            FileOutcome("src/A.tsx", "analyzed", usages=3),
            FileOutcome("src/B.tsx", "analyzed", usages=1),
            FileOutcome("src/C.tsx", "errored", message="Parse error: syntax error (1:1)"),
        ),
        errors=(),
        counters={"files_processed": 2, "files_errored": 1},
        started_at="2024-01-01T00:00:00",
    )
    return report, usage


class TestReporting(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        self.settings = Settings(src_folder="./src", github_repository="acme/app", github_branch="dev")

    def tearDown(self):
        self._tmp.cleanup()

    def test_helpers(self):
        self.assertEqual(github_url(self.settings, "src/A.tsx", 12), "https://github.com/acme/app/blob/dev/src/A.tsx#L12")
        self.assertIsNone(github_url(Settings(src_folder="."), "src/A.tsx"))
        self.assertEqual(priority_color("high"), "#dc3545")
        self.assertEqual(priority_color("unknown"), "#6c757d")

    def test_json_report(self):
        report, usage = _fixture()
        data = build_json_report(report, usage, self.settings)
        self.assertEqual(data["summary"]["total_usages"], 4)
        self.assertEqual(data["components"][0], {
            "name": "Field", "total_usages": 3, "priority": "high", "packages": [], "files": {"src/A.tsx": 3},
        })
        self.assertEqual(data["summary"]["packages"], ["kit"])

    def test_html_report(self):
        report, usage = _fixture()
        out = self.root / "report.html"
        render_html_report(out, report, usage, self.settings)
        html = out.read_text(encoding="utf-8")
        self.assertIn("HIGH PRIORITY", html)
        self.assertIn("https://github.com/acme/app/blob/dev/src/A.tsx", html)
        self.assertIn("Imported from: kit", html)

    def test_csv_exports(self):
        report, usage = _fixture()
        counts = export_all(report, usage, self.root / "csv")
        self.assertEqual(counts, {"components.csv": 2, "component_files.csv": 2, "files.csv": 3})
        with open(self.root / "csv" / "files.csv", newline="", encoding="utf-8") as f:
            rows = list(csv.reader(f))
        self.assertEqual(rows[0], ["File Path", "Status", "Total Usages", "Components", "Message"])
        self.assertEqual(rows[1], ["src/A.tsx", "analyzed", "3", "Field=3", ""])
        self.assertEqual(rows[3][1], "errored")


if __name__ == "__main__":
    unittest.main()
