import unittest

from rnmigrate_analyzer.core.classification.classifier import BUILTIN_TAGS, ClassifierConfig, classify
from rnmigrate_analyzer.core.imports.table import build_import_table, import_records, tracked_imports
from rnmigrate_analyzer.core.parsing.jsx_parser import ImportDeclaration
from rnmigrate_analyzer.models.schema import ClassificationResult, DIRECT_NAME, IMPORT_PROVENANCE


def _decl(module, named=(), **kw):
    return ImportDeclaration(module_path=module, named=tuple(named), **kw)


class TestImportTable(unittest.TestCase):
    def test_named_bindings_only(self):
        table = build_import_table([
            _decl("react", ["useState"], default="React"),
            _decl("kit", [], namespace="Kit"),
            _decl("kit", ["Input", "Button"], line=3),
            _decl("kit", ["InputProps"], type_only=True),
        ])
        self.assertEqual(sorted(table), ["Button", "Input", "useState"])
        self.assertEqual(table["Input"][0].module_path, "kit")
        self.assertEqual(table["Input"][0].bound_names, frozenset({"Input", "Button"}))

    def test_tracked_variant_keeps_only_tracked_modules(self):
        decls = [_decl("kit", ["Input"]), _decl("kit-extras", ["Chip"]), _decl("react-native", ["View"])]
        table = build_import_table(decls, tracked_modules={"kit"})
        self.assertEqual(list(table), ["Input"])
        self.assertEqual(tracked_imports(table), {"kit": ["Input"]})

    def test_reimported_name_keeps_every_record(self):
        table = build_import_table([_decl("a", ["Field"], line=1), _decl("b", ["Field"], line=2)])
        self.assertEqual([r.module_path for r in table["Field"]], ["a", "b"])
        self.assertEqual([r.module_path for r in import_records(table)], ["a", "b"])


class TestClassify(unittest.TestCase):
    def setUp(self):
        self.table = build_import_table([_decl("kit", ["Input"]), _decl("kit-extras", ["Chip"])])
        self.cfg = ClassifierConfig.build(target_components={"Field"}, tracked_modules={"kit"})

    def test_direct_name(self):
        result = classify("Field", {}, self.cfg)
        self.assertEqual(result, ClassificationResult.direct())
        self.assertEqual(result.match_kind, DIRECT_NAME)

    def test_provenance(self):
        result = classify("Input", self.table, self.cfg)
        self.assertTrue(result.in_scope)
        self.assertEqual(result.match_kind, IMPORT_PROVENANCE)
        self.assertEqual(result.source_module, "kit")

    def test_module_match_is_exact(self):
        self.assertEqual(classify("Chip", self.table, self.cfg), ClassificationResult.out_of_scope())

    def test_builtin_always_ignored(self):
        cfg = ClassifierConfig.build(target_components=set(BUILTIN_TAGS), tracked_modules={"kit"})
        table = build_import_table([_decl("kit", ["input", "button"])])
        for tag in sorted(BUILTIN_TAGS):
            self.assertEqual(classify(tag, table, cfg).kind, "ignored", tag)

    def test_capitalized_html_names_are_components(self):
        table = build_import_table([_decl("kit", ["Input", "Button", "Label", "Form"])])
        for tag in ["Input", "Button", "Label", "Form"]:
            result = classify(tag, table, self.cfg)
            self.assertTrue(result.in_scope, tag)
            self.assertEqual(result.source_module, "kit")
        self.assertEqual(classify("Table", {}, ClassifierConfig.build(target_components={"Table"})).match_kind, DIRECT_NAME)

    def test_include_filter_is_exclusive(self):
        cfg = ClassifierConfig.build(target_components={"Field"}, tracked_modules={"kit"}, include_filter={"Input"})
        self.assertFalse(classify("Field", {}, cfg).in_scope)
        self.assertTrue(classify("Input", self.table, cfg).in_scope)

    def test_exclude_filter(self):
        cfg = ClassifierConfig.build(target_components={"Field"}, exclude_filter={"Field"})
        self.assertEqual(classify("Field", {}, cfg).kind, "out_of_scope")

    def test_empty_tag_name(self):
        self.assertEqual(classify("", self.table, self.cfg).kind, "out_of_scope")

    def test_deterministic(self):
        first = [classify(t, self.table, self.cfg) for t in ("Field", "Input", "Chip", "div")]
        for _ in range(3):
            self.assertEqual([classify(t, self.table, self.cfg) for t in ("Field", "Input", "Chip", "div")], first)


if __name__ == "__main__":
    unittest.main()
