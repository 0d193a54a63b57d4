import tempfile
import unittest
from pathlib import Path

from rnmigrate_analyzer.config.loader import Settings
from rnmigrate_analyzer.core.discovery.repo_scanner import scan_sources
from rnmigrate_analyzer.core.pipeline.run import (
    MODE_ADD_PROPS,
    process_source,
    run_add_props,
    run_analysis,
)
from rnmigrate_analyzer.models.errors import ParseFailure, SourceRootUnreadable
from rnmigrate_analyzer.models.schema import AttributeDirective, IMPORT_PROVENANCE

FIELD_FORM = """import React from 'react';
import { View } from 'react-native';

export const Form = () => (
  <View>
    <Field />
    <Field label="Name" />
  </View>
);
"""

KIT_SCREEN = """import { Input } from "kit";
import { Chip } from "kit-extras";

export const Screen = () => <Input placeholder="x" />;
export const Other = () => <Chip label="y" />;
"""


def _write(root: Path, rel: str, text: str) -> Path:
    p = root / rel
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(text, encoding="utf-8")
    return p


class TestProcessSource(unittest.TestCase):
    def test_direct_name_insert(self):
        settings = Settings(src_folder=".", components=frozenset({"Field"}),
                            props=(AttributeDirective("required", "true"),))
        res = process_source("a.tsx", b"const a = <Field/>;\n", MODE_ADD_PROPS, settings)
        self.assertEqual(res.outcome.status, "modified")
        self.assertEqual(res.outcome.props_added, 1)
        self.assertEqual(res.new_source, b'const a = <Field required="true"/>;\n')

    def test_provenance_insert(self):
        settings = Settings(src_folder=".", packages=frozenset({"kit"}),
                            props=(AttributeDirective("size", "large"),))
        res = process_source("s.tsx", KIT_SCREEN.encode(), MODE_ADD_PROPS, settings)
        text = res.new_source.decode()
        self.assertIn('<Input placeholder="x" size="large" />', text)
        self.assertIn('<Chip label="y" />', text)
        self.assertEqual(res.outcome.components_found, 1)
        self.assertEqual(res.import_table["Input"][0].module_path, "kit")

    def test_update_suppressed(self):
        settings = Settings(src_folder=".", components=frozenset({"Field"}),
                            props=(AttributeDirective("maxLength", "20"),))
        res = process_source("a.tsx", b'const a = <Field maxLength="10"/>;\n', MODE_ADD_PROPS, settings)
        self.assertEqual(res.outcome.status, "unmodified")
        self.assertEqual(res.outcome.props_skipped, 1)
        self.assertIsNone(res.new_source)

    def test_second_run_is_a_no_op(self):
        settings = Settings(src_folder=".", components=frozenset({"Field"}), update_existing=True,
                            props=(AttributeDirective("testID", "field"), AttributeDirective("label", "Name")))
        first = process_source("f.tsx", FIELD_FORM.encode(), MODE_ADD_PROPS, settings)
        second = process_source("f.tsx", first.new_source, MODE_ADD_PROPS, settings)
        self.assertEqual(first.outcome.status, "modified")
        self.assertEqual(second.outcome.status, "unmodified")
        self.assertIn('<Field label="Name" testID="field" />', first.new_source.decode())

    def test_duplicate_attributes_collapse_in_output(self):
        settings = Settings(src_folder=".", components=frozenset({"Field"}),
                            props=(AttributeDirective("b", "x"),))
        res = process_source("d.tsx", b'const a = <Field a="1" a="2"/>;\n', MODE_ADD_PROPS, settings)
        self.assertEqual(res.new_source, b'const a = <Field a="2" b="x"/>;\n')

    def test_analysis_sightings(self):
        settings = Settings(src_folder=".", packages=frozenset({"kit"}))
        res = process_source("s.tsx", KIT_SCREEN.encode(), "analyze", settings)
        self.assertEqual([t for t, _ in res.sightings], ["Input"])
        self.assertEqual(res.sightings[0][1].match_kind, IMPORT_PROVENANCE)
        self.assertEqual(list(res.import_table), ["Input"])

    def test_parse_failure_propagates(self):
        settings = Settings(src_folder=".", components=frozenset({"Field"}))
        with self.assertRaises(ParseFailure):
            process_source("bad.tsx", b"const a = <Field label= />;\nfunction (\n", "analyze", settings)


class TestRuns(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)

    def tearDown(self):
        self._tmp.cleanup()

    def test_aggregation_across_two_files(self):
        a = _write(self.root, "A.tsx", "const a = <><Field/><Field/></>;\n")
        b = _write(self.root, "B.tsx", "const b = <Field/>;\n")
        settings = Settings(src_folder=str(self.root), components=frozenset({"Field"}))
        report, usage = run_analysis([a, b], settings, base=self.root)
        field = usage.components[0]
        self.assertEqual(field.total_usages, 3)
        self.assertEqual(field.per_file, {"A.tsx": 2, "B.tsx": 1})
        self.assertEqual(report.counters["total_usages"], 3)
        self.assertEqual(report.files_processed, 2)

    def test_malformed_file_does_not_abort(self):
        paths = [
            _write(self.root, "one.tsx", "const a = <Field/>;\n"),
            _write(self.root, "two.tsx", "const b = <Field label= />;\nexport default {\n"),
            _write(self.root, "three.tsx", "const c = <Field/>;\n"),
        ]
        settings = Settings(src_folder=str(self.root), components=frozenset({"Field"}),
                            props=(AttributeDirective("required", "true"),))
        report = run_add_props(paths, settings, base=self.root)

        self.assertEqual([f.status for f in report.files], ["modified", "errored", "modified"])
        self.assertEqual(report.counters["files_processed"], 2)
        self.assertEqual(report.counters["files_errored"], 1)
        self.assertEqual([e.path for e in report.errors], ["two.tsx"])
        self.assertTrue(report.errors[0].message.startswith("Parse error"))
        self.assertIn('required="true"', paths[2].read_text(encoding="utf-8"))

    def test_malformed_import_reported_and_file_processed(self):
        p = _write(self.root, "odd.tsx", 'import { Foo as } from "kit";\nconst a = <Field/>;\n')
        settings = Settings(src_folder=str(self.root), components=frozenset({"Field"}),
                            props=(AttributeDirective("required", "true"),))
        report = run_add_props([p], settings, base=self.root)

        self.assertEqual(report.files[0].status, "modified")
        self.assertEqual(report.files_errored, 0)
        self.assertEqual(len(report.files[0].warnings), 1)
        self.assertEqual([e.path for e in report.errors], ["odd.tsx"])
        self.assertTrue(report.errors[0].message.startswith("Import skipped"))
        self.assertIn('<Field required="true"/>', p.read_text(encoding="utf-8"))

    def test_dry_run_leaves_files(self):
        p = _write(self.root, "one.tsx", "const a = <Field/>;\n")
        settings = Settings(src_folder=str(self.root), components=frozenset({"Field"}),
                            props=(AttributeDirective("required", "true"),))
        report = run_add_props([p], settings, write=False, base=self.root)
        self.assertEqual(report.files_modified, 1)
        self.assertEqual(p.read_text(encoding="utf-8"), "const a = <Field/>;\n")

    def test_parallel_matches_sequential(self):
        paths = [_write(self.root, f"f{i}.tsx", "const a = <Field/>;\n" * (i + 1)) for i in range(6)]
        paths.append(_write(self.root, "bad.tsx", "function (\n"))
        settings = Settings(src_folder=str(self.root), components=frozenset({"Field"}))
        seq_report, seq_usage = run_analysis(paths, settings, jobs=1, base=self.root)
        par_report, par_usage = run_analysis(paths, settings, jobs=4, base=self.root)
        self.assertEqual(par_usage.components[0].total_usages, 21)
        self.assertEqual(par_usage.components[0].per_file, seq_usage.components[0].per_file)
        self.assertEqual([f.path for f in par_report.files], [f.path for f in seq_report.files])
        self.assertEqual(par_report.counters, seq_report.counters)

    def test_scan_sources(self):
        _write(self.root, "src/a.tsx", "")
        _write(self.root, "src/b.ts", "")
        _write(self.root, "src/readme.md", "")
        _write(self.root, "node_modules/pkg/c.tsx", "")
        _write(self.root, "src/node_modules/pkg/d.jsx", "")
        found = scan_sources(self.root, ["tsx", "ts", "jsx"], exclude_globs=["node_modules/", "**/node_modules/**"])
        rel = [p.relative_to(self.root.resolve()).as_posix() for p in found]
        self.assertEqual(rel, ["src/a.tsx", "src/b.ts"])

    def test_scan_missing_root(self):
        with self.assertRaises(SourceRootUnreadable):
            scan_sources(self.root / "nope", ["tsx"])


if __name__ == "__main__":
    unittest.main()
