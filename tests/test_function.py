"""
Unit tests for the function registry.
"""

import math
import textwrap

import pytest
from xmlfunc import (
    XmlFunc, ParseOptions, Number, NumberKind,
    StructuralError, DeclarationError, ShapeError, CallError, EvaluationError,
    ArgRef, Unary, UnaryKind,
)
from xmlfunc.function import FunctionEntry


SINGLE = textwrap.dedent("""
    <?xml version="1.0"?>
    <!-- area of a rectangle -->
    <arglist>
        <arg type="double" name="width"/>
        <arg type="double" name="height"/>
    </arglist>
    <mult arg1="width" arg2="height"/>
""")

REGISTRY = textwrap.dedent("""
    <arglist>
        <arg type="int" name="n"/>
    </arglist>
    <func name="square">
        <mult arg1="n" arg2="n"/>
    </func>
    <func name="scaled">
        <arglist>
            <arg type="double" name="x"/>
            <arg type="int" name="n"/>
        </arglist>
        <mult arg1="x" arg2="n"/>
    </func>
    <func>
        <neg arg="n"/>
    </func>
""")


class TestSingleFunction:
    """Test documents holding one function."""

    def test_eval(self):
        f = XmlFunc(SINGLE)
        result = f.eval([2.0, 3.5])
        assert result.kind is NumberKind.FLOAT
        assert result.float_value == 7.0

    def test_integer_arguments_promoted(self):
        assert XmlFunc(SINGLE).eval([2, 3]) == Number.real(6.0)

    def test_callable(self):
        assert XmlFunc(SINGLE)([1.0, 1.0]).value == 1.0

    def test_len_and_iteration(self):
        f = XmlFunc(SINGLE)
        assert len(f) == 1
        assert [entry.index for entry in f] == [0]
        assert f.names == []

    def test_index_selector(self):
        assert XmlFunc(SINGLE).eval(0, [2.0, 2.0]).float_value == 4.0

    def test_case_insensitive_document(self):
        source = '<ARGLIST><ARG TYPE="INT" NAME="N"/></ARGLIST><NEG ARG="n"/>'
        assert XmlFunc(source).eval([4]) == Number.integer(-4)

    def test_case_sensitive_when_normalization_disabled(self):
        source = '<ARGLIST><ARG/></ARGLIST>'
        with pytest.raises(DeclarationError):
            XmlFunc(source, ParseOptions(normalize_case=False))

    def test_unquoted_values_option(self):
        source = "<arglist><arg type=int/></arglist><add arg1=1 arg2=2.5/>"
        f = XmlFunc(source, ParseOptions(allow_unquoted_values=True))
        assert f.eval([0]).float_value == 3.5

    def test_from_file(self, tmp_path):
        path = tmp_path / "area.xml"
        path.write_text(SINGLE)
        f = XmlFunc.from_file(path)
        assert f.filename == str(path)
        assert f.eval([3.0, 3.0]).float_value == 9.0

    def test_from_string(self):
        assert XmlFunc.from_string(SINGLE).filename is None

    def test_insufficient_arguments(self):
        with pytest.raises(CallError) as exc:
            XmlFunc(SINGLE).eval([1.0])
        assert exc.value.code == "E301"

    def test_type_mismatch(self):
        """An integer slot called with 1.5 is a call error."""
        f = XmlFunc('<arglist><arg type="int"/></arglist><abs><arg index="0"/></abs>')
        with pytest.raises(CallError) as exc:
            f.eval([1.5])
        assert exc.value.code == "E302"

    def test_repeated_evaluation(self):
        """Evaluation does not change the compiled function."""
        f = XmlFunc('<arglist><arg type="int"/></arglist><neg><int value="3"/></neg>')
        assert f.eval([0]) == Number.integer(-3)
        assert f.eval([0]) == Number.integer(-3)


class TestRegistry:
    """Test documents holding several <func> elements."""

    def test_functions_in_order(self):
        f = XmlFunc(REGISTRY)
        assert len(f) == 3
        assert f.names == ["square", "scaled"]
        assert [entry.index for entry in f] == [0, 1, 2]

    def test_eval_by_name(self):
        f = XmlFunc(REGISTRY)
        assert f.eval("square", [7]) == Number.integer(49)
        assert f.eval("scaled", [1.5, 2]).float_value == 3.0

    def test_eval_by_index(self):
        f = XmlFunc(REGISTRY)
        assert f.eval(2, [5]) == Number.integer(-5)

    def test_name_lookup_is_case_insensitive(self):
        assert XmlFunc(REGISTRY).eval("SQUARE", [3]) == Number.integer(9)

    def test_private_arglists_resolve_independently(self):
        """Each function resolves names against its own table."""
        f = XmlFunc(REGISTRY)
        assert f.function("square").argdefs.lookup("n") == 0
        assert f.function("scaled").argdefs.lookup("n") == 1

    def test_private_names_not_visible_to_other_functions(self):
        """A name declared in one function's private arglist is unknown in another."""
        source = textwrap.dedent("""
            <func name="a"><arglist><arg name="x"/></arglist><sin arg="x"/></func>
            <func name="b"><arglist><arg name="y"/></arglist><sin arg="x"/></func>
        """)
        with pytest.raises(ShapeError) as exc:
            XmlFunc(source)
        assert exc.value.code == "E206"
        assert exc.value.span.start.line == 3

    def test_shared_arglist_is_optional(self):
        source = textwrap.dedent("""
            <func name="one"><arglist><arg/></arglist><sin arg="0"/></func>
            <func name="two"><arglist><arg/><arg/></arglist><add arg1="1" arg2="2"/></func>
        """)
        f = XmlFunc(source)
        assert f.eval("two", [0.0, 0.0]) == Number.integer(3)

    def test_ambiguous_call(self):
        with pytest.raises(CallError) as exc:
            XmlFunc(REGISTRY).eval([1])
        assert exc.value.code == "E306"

    def test_index_out_of_range(self):
        with pytest.raises(CallError) as exc:
            XmlFunc(REGISTRY).eval(3, [1])
        assert exc.value.code == "E304"

    def test_negative_index(self):
        with pytest.raises(CallError) as exc:
            XmlFunc(REGISTRY).function(-1)
        assert exc.value.code == "E304"

    def test_unknown_name(self):
        with pytest.raises(CallError) as exc:
            XmlFunc(REGISTRY).eval("cube", [1])
        assert exc.value.code == "E305"

    def test_signatures(self):
        f = XmlFunc(REGISTRY)
        assert [entry.signature for entry in f] == [
            "square(int n)",
            "scaled(float x, int n)",
            "#2(int n)",
        ]

    def test_describe(self):
        description = XmlFunc(REGISTRY).describe()
        assert description[0]["name"] == "square"
        assert description[0]["arguments"] == [{"type": "integer", "name": "n"}]
        assert description[0]["expression"]["op"] == "mult"
        assert description[2]["name"] is None


class TestDocumentErrors:
    """Test errors raised while compiling documents."""

    def test_empty_document(self):
        with pytest.raises(ShapeError) as exc:
            XmlFunc("   ")
        assert exc.value.code == "E213"

    def test_missing_arglist(self):
        with pytest.raises(DeclarationError) as exc:
            XmlFunc('<sin arg="1"/>')
        assert exc.value.code == "E101"

    def test_missing_root(self):
        with pytest.raises(ShapeError) as exc:
            XmlFunc("<arglist><arg/></arglist>")
        assert exc.value.code == "E213"

    def test_multiple_roots(self):
        with pytest.raises(ShapeError) as exc:
            XmlFunc('<arglist><arg/></arglist><sin arg="1"/><cos arg="1"/>')
        assert exc.value.code == "E214"

    def test_func_without_arglist(self):
        with pytest.raises(DeclarationError) as exc:
            XmlFunc('<func name="f"><sin arg="1"/></func>')
        assert exc.value.code == "E108"

    def test_duplicate_function_name(self):
        source = '<arglist><arg/></arglist><func name="f"><sin arg="1"/></func><func name="f"><cos arg="1"/></func>'
        with pytest.raises(DeclarationError) as exc:
            XmlFunc(source)
        assert exc.value.code == "E107"

    def test_invalid_function_name(self):
        with pytest.raises(DeclarationError) as exc:
            XmlFunc('<arglist><arg/></arglist><func name="2f"><sin arg="1"/></func>')
        assert exc.value.code == "E109"

    def test_func_with_two_operators(self):
        with pytest.raises(ShapeError) as exc:
            XmlFunc('<arglist><arg/></arglist><func><sin arg="1"/><cos arg="1"/></func>')
        assert exc.value.code == "E214"

    def test_empty_func(self):
        with pytest.raises(ShapeError) as exc:
            XmlFunc('<arglist><arg/></arglist><func name="f"></func>')
        assert exc.value.code == "E213"

    def test_mixed_func_and_operator(self):
        with pytest.raises(ShapeError) as exc:
            XmlFunc('<arglist><arg/></arglist><sin arg="1"/><func><cos arg="1"/></func>')
        assert exc.value.code == "E214"

    def test_func_attribute(self):
        with pytest.raises(ShapeError) as exc:
            XmlFunc('<arglist><arg/></arglist><func id="f"><sin arg="1"/></func>')
        assert exc.value.code == "E208"

    def test_structural_error_during_compile(self):
        with pytest.raises(StructuralError) as exc:
            XmlFunc('<arglist><arg/></arglist><sin><arg index="0"/></cos>')
        assert exc.value.code == "E006"

    def test_diagnostic_shows_original_line(self):
        """Diagnostics quote the source as written, before case normalization."""
        source = '<arglist><arg/></arglist>\n<Bogus arg="1"/>'
        with pytest.raises(ShapeError) as exc:
            XmlFunc(source)
        assert exc.value.diagnostic.source_line == '<Bogus arg="1"/>'
        assert exc.value.span.start.line == 2

    def test_uppercase_declaration(self):
        f = XmlFunc('<?XML VERSION="1.0"?>\n<arglist><arg/></arglist><neg><arg index="0"/></neg>')
        assert f.eval([2.0]) == Number.real(-2.0)

    def test_deep_nesting(self):
        """Nesting past the recursion limit is a shape error, not a crash."""
        depth = 5000
        source = "<arglist><arg/></arglist>" + "<neg>" * depth + '<int value="1"/>' + "</neg>" * depth
        with pytest.raises(ShapeError) as exc:
            XmlFunc(source)
        assert exc.value.code == "E215"

    def test_comment_positions_preserved(self):
        """Line numbers after stripped comments match the original text."""
        source = "<!--\nmulti\nline\n-->\n<arglist><arg/></arglist>\n<foo/>"
        with pytest.raises(ShapeError) as exc:
            XmlFunc(source)
        assert exc.value.span.start.line == 6


class TestEvaluationErrors:
    """Test errors raised while evaluating a compiled function."""

    def test_division_by_zero(self):
        f = XmlFunc('<arglist><arg type="int"/></arglist><mod arg1="7" arg2="0"/>')
        with pytest.raises(EvaluationError) as exc:
            f.eval([0])
        assert exc.value.code == "E401"

    def test_deep_expression(self):
        """An expression tree deeper than the recursion limit fails cleanly."""
        f = XmlFunc('<arglist><arg/></arglist><neg arg="0"/>')
        root = ArgRef(0)
        for _ in range(5000):
            root = Unary(UnaryKind.NEG, root)
        entry = FunctionEntry(root, f.function().argdefs)
        with pytest.raises(EvaluationError) as exc:
            entry.eval([1.0])
        assert exc.value.code == "E402"

    def test_scalar_arguments(self):
        with pytest.raises(CallError) as exc:
            XmlFunc(SINGLE).eval(5)
        assert exc.value.code == "E307"


class TestIeeeResults:
    """Test float results through the full pipeline."""

    def test_sqrt_of_negative(self):
        f = XmlFunc('<arglist><arg/></arglist><sqrt><arg index="0"/></sqrt>')
        assert math.isnan(f.eval([-1.0]).float_value)
