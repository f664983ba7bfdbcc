"""Per-file destination routing: static targets or routing expressions."""
from .expr import RoutingCompileError, RoutingProgram, compile_program, load_program_source, run_program
from .policy import RoutingPolicy, classify_result, route_to_destination
from .schemas import Destination, RoutingEnvironment

__all__ = [
    "Destination",
    "RoutingEnvironment",
    "RoutingCompileError",
    "RoutingProgram",
    "RoutingPolicy",
    "classify_result",
    "compile_program",
    "load_program_source",
    "route_to_destination",
    "run_program",
]
