# Globals
from .__version__ import __version__
from .options import set_default_options

# Pipeline
from .pipeline import (
    ScenarioResult,
    allocate_buffers,
    bind_invocation,
    build_program,
    compare,
    execute,
    initialize,
    retrieve_outputs,
    run_scenario,
    stage_inputs,
    verify,
)
from .scenarios import SCENARIOS, MatrixMultiply, VectorAdd, get_scenario
from .timing import PHASES, PhaseTimer, PhaseTimingRecord
from .backends import KernelSource, get_backend, register_backend
from . import errors


def run(name, **options):
    """
    Run the scenario registered as `name` and print its timing report.

    Scenario parameters (``length`` for vector-add, ``n`` for
    matrix-multiply) are taken out of `options`; everything else is passed
    on to `run_scenario`.
    """
    from .report import print_outcome, print_report

    set_default_options(options)
    scenario_cls = SCENARIOS.get(name)
    if scenario_cls is None:
        raise ValueError(f"Unknown scenario: {name}")
    params = {k: options.pop(k) for k in ("length", "n") if k in options}
    scenario = scenario_cls(**params)
    backend = get_backend(options.pop("backend"))

    try:
        result, record = run_scenario(scenario, backend=backend, **options)
    except errors.VerificationFailure as e:
        print_report(e.record, backend.display_name)
        print_outcome(scenario.title, e.result)
        raise
    print_report(record, backend.display_name)
    print_outcome(scenario.title, result)
    return result, record
