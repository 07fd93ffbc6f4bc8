"""
xmlfunc: numeric functions written in a small XML-like tag dialect.

This package provides:
- Structural parser: tokenizes tags and builds generic attributed trees
- Argument tables: typed, optionally named argument slots
- Expression builder: checks operators and operands, builds typed trees
- Evaluator: walks trees with integer/float promotion
- Function registry: compiles documents holding one or more functions

Usage:
    from xmlfunc import XmlFunc

    f = XmlFunc.from_string('''
    <arglist>
        <arg type="double" name="r"/>
    </arglist>
    <mult arg1="3.141592653589793">
        <pow arg1="r" arg2="2"/>
    </mult>
    ''')
    area = f.eval([2.0])
    print(area.value)        # 12.566...

    # Lower-level pieces
    from xmlfunc import parse_document, build_argdefs, build, evaluate
    arglist, root = parse_document('<arglist><arg type="int"/></arglist><neg><arg index="0"/></neg>')
    argdefs = build_argdefs(arglist)
    expr = build(root, argdefs)
    evaluate(expr, argdefs.bind([5])).value   # -5
"""

from .tokens import (
    Token,
    TokenType,
    SourceLocation,
    SourceSpan,
)

from .errors import (
    ErrorSeverity,
    Diagnostic,
    XmlFuncError,
    StructuralError,
    DeclarationError,
    ShapeError,
    CallError,
    EvaluationError,
)

from .lexer import (
    Lexer,
    tokenize,
)

from .parser import (
    GenericNode,
    TagTree,
    parse_document,
)

from .number import (
    Number,
    NumberKind,
)

from .argdefs import (
    ArgDefs,
    build_argdefs,
)

from .ast import (
    Expression,
    Const,
    ArgRef,
    Unary,
    Binary,
    Variadic,
    UnaryKind,
    BinaryKind,
    VariadicKind,
    to_dict,
    format_ast,
)

from .builder import (
    ExpressionBuilder,
    build,
)

from .evaluator import (
    evaluate,
)

from .options import (
    ParseOptions,
    OptionsError,
)

from .source import (
    load_source,
    strip_markup,
    prepare_source,
)

from .function import (
    FunctionEntry,
    XmlFunc,
)

__version__ = "0.1.0"

__all__ = [
    # Tokens
    "Token",
    "TokenType",
    "SourceLocation",
    "SourceSpan",
    # Errors
    "ErrorSeverity",
    "Diagnostic",
    "XmlFuncError",
    "StructuralError",
    "DeclarationError",
    "ShapeError",
    "CallError",
    "EvaluationError",
    # Structural parser
    "Lexer",
    "tokenize",
    "GenericNode",
    "TagTree",
    "parse_document",
    # Values and declarations
    "Number",
    "NumberKind",
    "ArgDefs",
    "build_argdefs",
    # Expressions
    "Expression",
    "Const",
    "ArgRef",
    "Unary",
    "Binary",
    "Variadic",
    "UnaryKind",
    "BinaryKind",
    "VariadicKind",
    "to_dict",
    "format_ast",
    "ExpressionBuilder",
    "build",
    "evaluate",
    # Documents
    "ParseOptions",
    "OptionsError",
    "load_source",
    "strip_markup",
    "prepare_source",
    "FunctionEntry",
    "XmlFunc",
]
