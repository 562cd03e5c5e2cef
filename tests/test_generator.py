"""Tests for the code generator and its source map."""

from __future__ import annotations

import pytest

from scimitar._types import SourcePosition, TemplateSource, TypeContext
from scimitar.environment.exceptions import ParseError
from scimitar.generator import CodeGenerator, SourceWriter, generate
from scimitar.template import TemplateBase


@pytest.fixture
def context() -> TypeContext:
    return TypeContext(class_name="_Template_test", template_base_type=TemplateBase)


def gen(text: str, context: TypeContext, key: str = "page.html", imports: tuple[str, ...] = ()):
    sources = [TemplateSource(f"{'sub/' * i}_imports.html", body) for i, body in enumerate(imports)]
    return generate(TemplateSource(key, text), context, sources)


def line_of(source_text: str, fragment: str) -> int:
    """1-based number of the first generated line containing ``fragment``."""
    for number, line in enumerate(source_text.splitlines(), start=1):
        if fragment in line:
            return number
    raise AssertionError(f"{fragment!r} not in generated source:\n{source_text}")


class TestModuleShape:
    """The generated module as a whole."""

    def test_header_and_class(self, context):
        unit = gen("Hello @Model.Name!", context)
        text = unit.source_text
        assert text.startswith("# Generated by scimitar from 'page.html'\n")
        assert "class _Template_test(__template_base__):" in text
        assert "    template_key = 'page.html'" in text
        assert "    def execute(self):" in text
        assert "        Model = model = self.model" in text
        assert "        ViewBag = self.view_bag" in text
        assert unit.class_name == "_Template_test"
        assert unit.template_key == "page.html"
        assert unit.template_text == "Hello @Model.Name!"

    def test_body_statements(self, context):
        text = gen("Hello @Model.Name!", context).source_text
        assert "write_literal('Hello ')" in text
        assert "write(Model.Name)" in text
        assert "write_literal('!')" in text

    def test_generated_module_is_valid_python(self, context):
        source = (
            "@using json\n"
            "@section Head {<title>@ViewBag.Title</title>}\n"
            "@for item in Model.items {<li>@item</li>} empty {<li>none</li>}\n"
            "@if Model.flag {yes} elif Model.other {maybe} else {}\n"
            "@{\n    total = sum(Model.items)\n}\n"
            "@while False {}\n"
            "Total: @(total * 2)\n"
        )
        compile(gen(source, context).source_text, "<generated>", "exec")

    def test_literal_text_is_repr_escaped(self, context):
        text = gen("it's \"quoted\"\n\\ and ''' triple", context).source_text
        assert repr("it's \"quoted\"\n\\ and ''' triple") in text

    def test_module_function_matches_class(self, context):
        source = TemplateSource("page.html", "Hi @Model")
        assert generate(source, context).source_text == CodeGenerator(context).generate(source).source_text


class TestImports:
    """Import statements at the top of the module."""

    def test_namespaces_sorted(self):
        context = TypeContext(
            class_name="_T",
            template_base_type=TemplateBase,
            namespaces=frozenset({"os.path as osp", "math import pi"}),
        )
        text = gen("@using json\n", context).source_text
        lines = text.splitlines()
        imports = [line for line in lines if line.startswith(("import ", "from "))]
        assert imports == ["import json", "import os.path as osp", "from math import pi"]

    def test_duplicate_namespaces_emitted_once(self):
        context = TypeContext(class_name="_T", template_base_type=TemplateBase, namespaces=frozenset({"json"}))
        text = gen("@using json\n@using   json\n", context).source_text
        assert text.count("import json") == 1

    def test_model_directive(self, context):
        text = gen("@model myapp.models.Person\n", context).source_text
        assert "import myapp.models" in text
        assert "    declared_model = myapp.models.Person" in text

    def test_base_type_required_namespaces(self):
        class PageBase(TemplateBase):
            required_namespaces = frozenset({"html import escape"})

        context = TypeContext(class_name="_T", template_base_type=PageBase)
        assert "from html import escape" in gen("x", context).source_text

    def test_import_position_maps_to_using(self, context):
        unit = gen("line one\n@using missing.module\n", context)
        number = line_of(unit.source_text, "import missing.module")
        assert unit.source_map.lookup(number) == SourcePosition(2, 7)


class TestImportsFiles:
    """Directives inherited from hierarchical imports files."""

    def test_layout_from_imports(self, context):
        text = gen("Body", context, imports=("@layout '_a.html'\n",)).source_text
        assert "self.layout = '_a.html'" in text

    def test_template_layout_wins(self, context):
        text = gen("@layout '_b.html'\nBody", context, imports=("@layout '_a.html'\n",)).source_text
        assert "self.layout = '_b.html'" in text
        assert "'_a.html'" not in text

    def test_inherits_from_imports(self, context):
        text = gen("Body", context, imports=("@inherits myapp.pages.Base\n",)).source_text
        assert "class _Template_test(myapp.pages.Base):" in text
        assert "import myapp.pages" in text

    def test_innermost_inherits_wins(self, context):
        imports = ("@inherits outer.Base\n", "@inherits inner.Base\n")
        text = gen("Body", context, key="sub/page.html", imports=imports).source_text
        assert "class _Template_test(inner.Base):" in text

    def test_functions_order(self, context):
        imports = ("@functions {\n    SHARED = 1\n}\n",)
        text = gen("@functions {\n    OWN = 2\n}\n", context, imports=imports).source_text
        assert text.index("SHARED = 1") < text.index("OWN = 2") < text.index("def execute(self):")

    def test_functions_from_imports_unmapped(self, context):
        imports = ("@functions {\n    SHARED = 1\n}\n",)
        unit = gen("@functions {\n    OWN = 2\n}\n", context, imports=imports)
        mapped = {m.generated_line: m.position for m in unit.source_map.lines}
        assert line_of(unit.source_text, "SHARED = 1") not in mapped
        assert mapped[line_of(unit.source_text, "OWN = 2")] == SourcePosition(2, 4)

    def test_usings_from_imports(self, context):
        text = gen("Body", context, imports=("@using decimal import Decimal\n",)).source_text
        assert "from decimal import Decimal" in text

    def test_parse_error_names_imports_file(self, context):
        with pytest.raises(ParseError) as exc_info:
            gen("Body", context, imports=("Hello",))
        assert exc_info.value.template_key == "_imports.html"


class TestStatements:
    """Node-specific code shapes."""

    def test_section(self, context):
        text = gen("@section Foot {bye}", context).source_text
        assert "def _section_Foot_1():" in text
        assert "define_section('Foot', _section_Foot_1)" in text

    def test_sections_get_unique_names(self, context):
        text = gen("@if a {@section S {1}} else {@section S {2}}", context).source_text
        assert "def _section_S_1():" in text
        assert "def _section_S_2():" in text

    def test_for_empty_flag(self, context):
        text = gen("@for x in xs {@x} empty {none}", context).source_text
        assert "_empty_1 = True" in text
        assert "_empty_1 = False" in text
        assert "if _empty_1:" in text

    def test_empty_block_gets_pass(self, context):
        text = gen("@if x {}", context).source_text
        lines = text.splitlines()
        index = lines.index("        if x:")
        assert lines[index + 1] == "            pass"

    def test_else_clause(self, context):
        text = gen("@if x {a} elif y {b} else {c}", context).source_text
        assert "        elif y:" in text
        assert "        else:" in text

    def test_code_block_indented_in_place(self, context):
        text = gen("@for x in xs {@{ y = x * 2 }@y}", context).source_text
        assert "            y = x * 2" in text

    def test_multiline_expression_wrapped(self, context):
        text = gen("@(a +\n  b)", context).source_text
        assert "write((" in text
        assert "\n  b\n" in text
        assert "))" in text
        compile(text, "<generated>", "exec")

    def test_expression_with_comment_wrapped(self, context):
        text = gen("@(x  # note\n)", context).source_text
        assert "write((" in text
        compile(text, "<generated>", "exec")


class TestSourceMap:
    """Generated positions translate back to template positions."""

    def test_expression_position(self, context):
        unit = gen("Hello @Model.Name!", context)
        number = line_of(unit.source_text, "write(Model.Name)")
        assert unit.source_map.lookup(number) == SourcePosition(1, 7)
        column = unit.source_text.splitlines()[number - 1].index("Name")
        assert unit.source_map.lookup(number, column) == SourcePosition(1, 13)

    def test_code_line_position(self, context):
        unit = gen("a\nb\n@{\n    value = compute()\n}", context)
        number = line_of(unit.source_text, "value = compute()")
        assert unit.source_map.lookup(number) == SourcePosition(4, 4)

    def test_header_position(self, context):
        unit = gen("\n\n  @for item in items {x}", context)
        number = line_of(unit.source_text, "for item in items:")
        assert unit.source_map.lookup(number) == SourcePosition(3, 7)

    def test_layout_position(self, context):
        unit = gen("@layout pick()\n", context)
        number = line_of(unit.source_text, "self.layout = pick()")
        assert unit.source_map.lookup(number) == SourcePosition(1, 8)

    def test_unmapped_line_uses_previous_mapping(self, context):
        unit = gen("Hi", context)
        number = line_of(unit.source_text, "ViewBag = self.view_bag")
        assert unit.source_map.lookup(number) == SourcePosition(1, 0)


class TestSourceWriter:
    def test_indentation_and_map(self):
        w = SourceWriter()
        w.add_line("def f():")
        with w.indented():
            w.add_line("return x", SourcePosition(3, 2), offset=len("return "))
        assert w.getvalue() == "def f():\n    return x\n"
        assert w.source_map().lookup(2, 11) == SourcePosition(3, 2)
        assert w.next_line == 3

    def test_verbatim_lines_not_indented(self):
        w = SourceWriter()
        with w.indented():
            w.add_verbatim("  tail", SourcePosition(5, 0))
        assert w.getvalue() == "  tail\n"


class TestTypeContext:
    def test_rejects_invalid_class_name(self):
        with pytest.raises(ValueError, match="Invalid generated class name"):
            TypeContext(class_name="1bad", template_base_type=TemplateBase)

    def test_model_type_id(self):
        assert TypeContext("_T", TemplateBase).model_type_id == "dynamic"
        assert TypeContext("_T", TemplateBase, model_type=dict).model_type_id == "builtins.dict"
