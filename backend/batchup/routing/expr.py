"""Routing expression compiler and evaluator.

A routing program is a single Python expression evaluated once per file.
The current file is available as ``File`` (``File.path``, ``File.thumb``)
and the result decides the destination:

    "@alice"                                       # chat only
    {"peer": "@group", "thread": 42}               # chat + topic / reply-to
    "@photos" if ext(File.path) == ".jpg" else ""  # "" is yourself

Programs are parsed with the stdlib ``ast`` module and checked against a
node whitelist before compiling, so only plain expressions over ``File``
and the helper functions below can run. Statements, lambdas,
comprehensions and private (``_``-prefixed) attribute access are rejected.
"""
import ast
import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from types import CodeType
from typing import Any, Dict

from batchup.errors import RoutingEvaluationError

from .schemas import RoutingEnvironment

logger = logging.getLogger(__name__)


class RoutingCompileError(ValueError):
    """Raised when a routing expression cannot be compiled."""


def _ext(path: str) -> str:
    return os.path.splitext(path)[1].lower()


def _match(pattern: str, text: str) -> bool:
    return re.search(pattern, text) is not None


HELPERS: Dict[str, Any] = {
    "len": len,
    "str": str,
    "int": int,
    "basename": os.path.basename,
    "dirname": os.path.dirname,
    "ext": _ext,
    "match": _match,
}

_ENV_NAMES = frozenset(RoutingEnvironment().names())

_ALLOWED_NODES = (
    ast.Expression,
    ast.BoolOp, ast.And, ast.Or,
    ast.BinOp, ast.Add, ast.Sub, ast.Mult, ast.Div, ast.FloorDiv, ast.Mod,
    ast.UnaryOp, ast.Not, ast.USub, ast.UAdd,
    ast.Compare, ast.Eq, ast.NotEq, ast.Lt, ast.LtE, ast.Gt, ast.GtE,
    ast.In, ast.NotIn, ast.Is, ast.IsNot,
    ast.IfExp, ast.Call, ast.keyword,
    ast.Attribute, ast.Name, ast.Load,
    ast.Constant, ast.Dict, ast.List, ast.Tuple,
    ast.Subscript, ast.Slice,
    ast.JoinedStr, ast.FormattedValue,
)

_FORBIDDEN_ATTRS = frozenset({"format", "format_map"})


@dataclass(frozen=True)
class RoutingProgram:
    """A validated, compiled routing expression."""
    source: str
    code: CodeType


def load_program_source(value: str) -> str:
    """Return routing source from *value*, reading it from disk if it names a file."""
    candidate = Path(value)
    try:
        if candidate.is_file():
            logger.info("Loading routing expression from %s", candidate)
            return candidate.read_text(encoding="utf-8")
    except OSError:
        # Long inline expressions can exceed path limits; treat them as source.
        pass
    return value


def compile_program(source: str) -> RoutingProgram:
    """Parse, validate and compile a routing expression.

    Raises:
        RoutingCompileError: On syntax errors or disallowed constructs.
    """
    text = source.strip()
    if not text:
        raise RoutingCompileError("routing expression is empty")

    try:
        tree = ast.parse(text, mode="eval")
    except SyntaxError as e:
        raise RoutingCompileError(f"invalid routing expression: {e.msg}") from e

    for node in ast.walk(tree):
        if not isinstance(node, _ALLOWED_NODES):
            raise RoutingCompileError(
                f"unsupported syntax in routing expression: {type(node).__name__}"
            )
        if isinstance(node, ast.Attribute) and node.attr.startswith("_"):
            raise RoutingCompileError(f"private attribute not allowed: {node.attr}")
        if isinstance(node, ast.Attribute) and node.attr in _FORBIDDEN_ATTRS:
            # Format field names walk attributes at runtime, past the "_" check.
            raise RoutingCompileError(f"attribute not allowed: {node.attr}")
        if isinstance(node, ast.Name) and node.id not in _ENV_NAMES and node.id not in HELPERS:
            raise RoutingCompileError(f"unknown name in routing expression: {node.id}")

    return RoutingProgram(source=text, code=compile(tree, "<routing>", "eval"))


def run_program(program: RoutingProgram, env: RoutingEnvironment) -> Any:
    """Evaluate *program* against *env* and return its raw result.

    Raises:
        RoutingEvaluationError: If evaluation raises.
    """
    namespace = dict(HELPERS)
    namespace.update(env.names())
    try:
        return eval(program.code, {"__builtins__": {}}, namespace)
    except Exception as e:
        raise RoutingEvaluationError(f"{type(e).__name__}: {e}") from e
