"""Tests for routing expressions and the routing policy."""
import pytest
from pydantic import ValidationError

from batchup.errors import (
    DestinationDecodeError,
    PeerResolutionError,
    RoutingEvaluationError,
    RoutingResultTypeError,
)
from batchup.routing.expr import (
    RoutingCompileError,
    compile_program,
    load_program_source,
    run_program,
)
from batchup.routing.policy import RoutingPolicy, classify_result, route_to_destination
from batchup.routing.schemas import (
    Destination,
    DestinationRoute,
    PeerRoute,
    RoutingEnvironment,
    UnrecognizedRoute,
)
from batchup.upload.schemas import FileSpec

from conftest import ALICE, GROUP, ME


def _env(path: str = "/data/photos/cat.JPG", thumb: str = "") -> RoutingEnvironment:
    return RoutingEnvironment.for_file(FileSpec(path=path, thumb=thumb))


class TestCompileProgram:
    """Parsing and validation of routing expressions."""

    def test_simple_string(self):
        """A string literal compiles and evaluates to itself."""
        program = compile_program('"@alice"')
        assert run_program(program, _env()) == "@alice"

    def test_source_is_stripped(self):
        """Surrounding whitespace is ignored."""
        program = compile_program('  "x"\n')
        assert program.source == '"x"'

    @pytest.mark.parametrize("source", ["", "   "])
    def test_empty_source_rejected(self, source):
        """Empty expressions are rejected."""
        with pytest.raises(RoutingCompileError):
            compile_program(source)

    def test_syntax_error_rejected(self):
        """Unparseable expressions are rejected with a compile error."""
        with pytest.raises(RoutingCompileError, match="invalid routing expression"):
            compile_program('"unterminated')

    @pytest.mark.parametrize(
        "source",
        [
            "File.__class__",
            "File._private",
            "(lambda: 1)()",
            "[x for x in 'ab']",
            "open('/etc/passwd')",
            "__import__('os')",
            "'{0.__class__}'.format(File)",
            "'{0.__init__.__globals__}'.format(File)",
            "'{x}'.format_map({})",
        ],
    )
    def test_disallowed_constructs(self, source):
        """Private attributes, lambdas, comprehensions and unknown names are refused."""
        with pytest.raises(RoutingCompileError):
            compile_program(source)

    def test_format_field_traversal_rejected(self):
        """str.format would reach dunders through its field names at run time."""
        with pytest.raises(RoutingCompileError, match="attribute not allowed: format"):
            compile_program("'{0.__class__.__mro__}'.format(File)")

    def test_statements_rejected(self):
        """Only expressions are accepted."""
        with pytest.raises(RoutingCompileError):
            compile_program("x = 1")


class TestRunProgram:
    """Evaluation against a RoutingEnvironment."""

    def test_file_binding(self):
        """File.path and File.thumb expose the current FileSpec."""
        program = compile_program("File.path + '|' + File.thumb")
        assert run_program(program, _env("/a/b.png", "/a/t.jpg")) == "/a/b.png|/a/t.jpg"

    def test_helpers(self):
        """Path helpers are available by name."""
        program = compile_program("[basename(File.path), dirname(File.path), ext(File.path)]")
        assert run_program(program, _env()) == ["cat.JPG", "/data/photos", ".jpg"]

    def test_match_helper(self):
        """match() searches with a regular expression."""
        program = compile_program("'photos' if match(r'/photos/', File.path) else 'other'")
        assert run_program(program, _env()) == "photos"
        assert run_program(program, _env("/data/docs/a.pdf")) == "other"

    def test_method_calls_on_strings(self):
        """Public str methods can be called."""
        program = compile_program("File.path.lower().endswith('.jpg')")
        assert run_program(program, _env()) is True

    def test_mapping_with_fstring(self):
        """Mappings and f-strings build full destinations."""
        program = compile_program("{'peer': f'@{basename(dirname(File.path))}', 'thread': 3}")
        assert run_program(program, _env()) == {"peer": "@photos", "thread": 3}

    def test_missing_file_gives_empty_spec(self):
        """Without a current file the environment exposes an empty FileSpec."""
        env = RoutingEnvironment.for_file(None)
        program = compile_program("File.path")
        assert run_program(program, env) == ""

    def test_runtime_error_wrapped(self):
        """Exceptions raised during evaluation become RoutingEvaluationError."""
        program = compile_program("{'a': 1}['b']")
        with pytest.raises(RoutingEvaluationError, match="KeyError"):
            run_program(program, _env())

    def test_len_helper(self):
        """len() is available as a helper."""
        program = compile_program("len(File.path)")
        assert run_program(program, _env("abc")) == 3

    def test_other_builtins_unknown(self):
        """Builtins outside the helper set are unknown names."""
        with pytest.raises(RoutingCompileError, match="unknown name"):
            compile_program("abs(-1)")


class TestLoadProgramSource:
    """Routing source given inline or as a file."""

    def test_inline_source(self):
        """Values that are not files are returned unchanged."""
        assert load_program_source('"@alice"') == '"@alice"'

    def test_file_source(self, tmp_path):
        """Values naming a file are replaced by its contents."""
        path = tmp_path / "route.expr"
        path.write_text('{"peer": "group", "thread": 1}', encoding="utf-8")
        assert load_program_source(str(path)) == '{"peer": "group", "thread": 1}'


class TestDestinationDecoding:
    """Tolerant decoding of mapping results."""

    def test_exact_fields(self):
        dest = Destination.model_validate({"peer": "@group", "thread": 42})
        assert dest == Destination(peer="@group", thread=42)

    def test_numeric_string_thread(self):
        """A numeric-looking thread string is coerced."""
        assert Destination.model_validate({"peer": "g", "thread": "42"}).thread == 42

    def test_numeric_peer(self):
        """A numeric peer becomes its string form."""
        assert Destination.model_validate({"peer": -100200}).peer == "-100200"

    def test_keys_are_case_insensitive(self):
        """Peer/Thread keys match regardless of case."""
        dest = Destination.model_validate({"Peer": "alice", "THREAD": 5})
        assert dest == Destination(peer="alice", thread=5)

    def test_missing_keys_default(self):
        """Missing keys keep zero values."""
        assert Destination.model_validate({}) == Destination(peer="", thread=0)

    def test_none_values_default(self):
        """Explicit None values fall back to zero values like missing keys."""
        assert Destination.model_validate({"peer": None}) == Destination(peer="", thread=0)
        assert Destination.model_validate({"peer": "g", "thread": None}).thread == 0

    def test_fractional_thread_truncates(self):
        """A non-integral float thread is truncated toward zero."""
        assert Destination.model_validate({"peer": "g", "thread": 42.7}).thread == 42
        assert Destination.model_validate({"peer": "g", "thread": -3.9}).thread == -3

    def test_non_finite_thread_fails(self):
        with pytest.raises(ValidationError):
            Destination.model_validate({"peer": "g", "thread": float("nan")})


class TestClassifyResult:
    """Tagging raw results by runtime shape."""

    def test_string(self):
        assert classify_result("@alice") == PeerRoute(peer="@alice")

    def test_mapping(self):
        route = classify_result({"peer": "@group", "thread": 42})
        assert isinstance(route, DestinationRoute)
        assert route.destination == Destination(peer="@group", thread=42)

    @pytest.mark.parametrize("value", [123, 1.5, None, ["a"], True])
    def test_other_types_unrecognized(self, value):
        assert classify_result(value) == UnrecognizedRoute(result=value)

    def test_undecodable_mapping(self):
        """A mapping whose thread cannot be coerced reports the raw result."""
        raw = {"peer": "@group", "thread": "not-a-number"}
        with pytest.raises(DestinationDecodeError) as exc_info:
            classify_result(raw)
        assert exc_info.value.result is raw
        assert "not-a-number" in str(exc_info.value)

    def test_route_to_destination(self):
        assert route_to_destination(PeerRoute(peer="x")) == Destination(peer="x", thread=0)

    def test_unrecognized_route_raises(self):
        with pytest.raises(RoutingResultTypeError, match="float"):
            route_to_destination(UnrecognizedRoute(result=2.5))


class TestRoutingPolicy:
    """Static and expression modes."""

    def test_static_mode(self, manager):
        """Static mode ignores the file and never evaluates a program."""
        policy = RoutingPolicy(manager, chat="@alice", topic=9)
        assert policy.is_static
        assert policy.resolve(FileSpec(path="x")) == (ALICE, 9)

    def test_expression_mode(self, manager):
        policy = RoutingPolicy(
            manager, program=compile_program("{'peer': 'group', 'thread': len(File.path)}"),
        )
        assert not policy.is_static
        assert policy.resolve(FileSpec(path="abcd")) == (GROUP, 4)

    def test_self_when_nothing_configured(self, manager):
        policy = RoutingPolicy(manager)
        assert policy.resolve(FileSpec(path="x")) == (ME, 0)

    def test_resolution_failure(self, manager):
        policy = RoutingPolicy(manager, program=compile_program("'ghost'"))
        with pytest.raises(PeerResolutionError) as exc_info:
            policy.resolve(FileSpec(path="x"))
        assert exc_info.value.identifier == "ghost"
