"""
The compute pipeline: take host data to an accelerator, run one kernel
over a grid, bring the result back and check it.

A run goes strictly in order::

    initialize -> allocate_buffers -> stage_inputs -> bind_invocation
               -> execute -> retrieve_outputs -> verify

Every step either completes or raises one of the errors in kbench.errors.
There is no retry and no partial result.
"""
from dataclasses import dataclass
from typing import List

import numpy as np

from .backends import ComputeBuffer, get_backend
from .errors import (
    AllocationFailure,
    BindingFailure,
    SetupFailure,
    TransferFailure,
    VerificationFailure,
)
from .options import set_default_options
from .timing import PhaseTimer
from .utils import pretty_dump


@dataclass
class ScenarioResult:
    scenario: str
    outputs: List[np.ndarray]
    passed: bool
    max_error: float
    mismatches: int

    @property
    def output(self):
        return self.outputs[0]


def _check_grid_shape(grid_shape):
    grid_shape = tuple(grid_shape)
    if len(grid_shape) not in (1, 2):
        raise SetupFailure(f"Grid shape must have 1 or 2 dimensions, got {grid_shape}")
    for n in grid_shape:
        if not isinstance(n, (int, np.integer)) or n <= 0:
            raise SetupFailure(f"Grid shape entries must be positive integers, got {grid_shape}")
    return tuple(int(n) for n in grid_shape)


def build_program(context, kernel_source, grid_shape):
    """Compile `kernel_source` on `context`, reusing an earlier build of the same source."""
    key = (kernel_source.text, kernel_source.entry_point, grid_shape)
    if key not in context.program_cache:
        context.program_cache[key] = context.backend.build(context, kernel_source, grid_shape)
    return context.program_cache[key]


def initialize(kernel_source, grid_shape, backend=None, **options):
    """
    Open an accelerator and compile `kernel_source` for `grid_shape`.

    Parameters
    ----------
    kernel_source : KernelSource
        Program text and the name of its entry point.
    grid_shape : tuple of int
        One or two positive extents. It is NOT checked against the indexing
        the kernel does; see `execute`.
    backend : str or Backend, optional
        Defaults to the "backend" option.

    Returns
    -------
    (DeviceContext, KernelProgram)
        The caller owns the context and must close it, preferably with
        ``with context:``.
    """
    set_default_options(options)
    grid_shape = _check_grid_shape(grid_shape)
    default_backend = options.pop("backend")
    backend = get_backend(backend or default_backend)

    if options["dump_code"]:
        pretty_dump(kernel_source.text, kernel_source.entry_point)

    context = backend.open_context(**options)
    try:
        program = build_program(context, kernel_source, grid_shape)
    except BaseException:
        context.close()
        raise
    return context, program


def allocate_buffers(context, specs):
    """Allocate one device buffer per (count, dtype) in `specs`."""
    buffers = []
    for count, dtype in specs:
        if count <= 0:
            raise AllocationFailure(f"Buffer element count must be positive, got {count}")
        buf = context.backend.alloc(context, int(count), np.dtype(dtype))
        context.buffers.append(buf)
        buffers.append(buf)
    return buffers


def stage_inputs(buffers, host_arrays):
    """Copy each host array into the buffer at the same position, one after the other."""
    if len(buffers) != len(host_arrays):
        raise TransferFailure(
            f"{len(host_arrays)} host arrays given for {len(buffers)} buffers")
    for buf, host in zip(buffers, host_arrays):
        host = np.ascontiguousarray(host).reshape(-1)
        if host.size != buf.count:
            raise TransferFailure(
                f"Host array has {host.size} elements, buffer holds {buf.count}")
        if host.dtype != buf.dtype:
            raise TransferFailure(
                f"Host array is {host.dtype}, buffer holds {buf.dtype}")
        buf.write(host)


def bind_invocation(program, ordered_args):
    """
    Bind buffers and scalars to the program's parameters by position.

    Scalars have to be numpy scalars (``np.int32(n)``) so their width on the
    device is unambiguous. When the program's parameter declarations are
    known, pointer parameters take buffers of the pointee type and scalar
    parameters take numpy scalars of exactly the declared type.
    """
    ordered_args = list(ordered_args)
    if program.num_args is not None and len(ordered_args) != program.num_args:
        raise BindingFailure(
            f"Kernel {program.name} takes {program.num_args} arguments, got {len(ordered_args)}")
    for i, arg in enumerate(ordered_args):
        if isinstance(arg, ComputeBuffer):
            if arg.context is not program.context:
                raise BindingFailure(f"Argument {i} belongs to a different device context")
        elif not isinstance(arg, np.generic):
            raise BindingFailure(
                f"Argument {i} of kernel {program.name} must be a buffer or a numpy scalar, "
                f"got {type(arg).__name__}")
        if program.params is not None:
            _check_arg(program, i, program.params[i], arg)
    return program.context.backend.bind(program, ordered_args)


def _check_arg(program, i, param, arg):
    where = f"Argument {i} ({param.name}) of kernel {program.name}"
    if param.pointer:
        if not isinstance(arg, ComputeBuffer):
            raise BindingFailure(f"{where} is a {param.ctype} pointer, got a scalar")
        if param.dtype is not None and arg.dtype != param.dtype:
            raise BindingFailure(f"{where} points to {param.ctype}, buffer holds {arg.dtype}")
    else:
        if isinstance(arg, ComputeBuffer):
            raise BindingFailure(f"{where} is a {param.ctype} scalar, got a buffer")
        if param.dtype is not None and arg.dtype != param.dtype:
            raise BindingFailure(f"{where} is {param.ctype} ({param.dtype}), got {arg.dtype}")


def execute(invocation):
    """
    Run `invocation` over its program's whole grid and block until the
    device reports completion.

    PRECONDITION: the grid shape, the indexing inside the kernel and the
    element count of every bound buffer agree. Nothing here checks it. An
    out-of-bounds access can only be caught by the device runtime, which
    then raises ExecutionFailure; a runtime that does not catch it gives a
    wrong answer that `verify` has to reject.

    There is no timeout: a hung device blocks forever.
    """
    if invocation.enqueued:
        raise BindingFailure(f"Invocation of {invocation.program.name} was already enqueued")
    invocation.enqueued = True
    invocation.program.context.backend.launch(invocation)


def retrieve_outputs(buffers):
    """Blocking device to host copies, one per buffer."""
    return [buf.read() for buf in buffers]


def compare(result, expected, atol=0.0):
    """Return (max absolute error, number of mismatching elements)."""
    result = np.asarray(result).reshape(-1)
    expected = np.asarray(expected).reshape(-1)
    if result.shape != expected.shape:
        return float("inf"), max(result.size, expected.size)
    diff = np.abs(result.astype(np.float64) - expected.astype(np.float64))
    if atol == 0.0:
        bad = result != expected
    else:
        bad = ~(diff < atol)
    max_error = float(diff.max()) if diff.size else 0.0
    return max_error, int(np.count_nonzero(bad))


def verify(results, expected_fn, atol=0.0):
    """
    Compare `results` against ``expected_fn()``.

    Exact equality when `atol` is 0, otherwise every element must be within
    `atol` of the reference.
    """
    _, mismatches = compare(results, expected_fn(), atol)
    return mismatches == 0


def run_scenario(scenario, backend=None, **options):
    """
    Run `scenario` end to end.

    Returns (ScenarioResult, PhaseTimingRecord). Raises a PipelineFailure
    subclass if any phase fails and VerificationFailure if the output is
    wrong (unless check=False, in which case the failed result is returned).
    """
    set_default_options(options)
    default_backend = options.pop("backend")
    backend = get_backend(backend or default_backend)
    kernel_source = scenario.kernel_source(backend.dialect)
    timer = PhaseTimer()

    with timer.phase("total"):
        with timer.phase("setup"):
            context, program = initialize(
                kernel_source, scenario.grid_shape(), backend=backend, **options)

        with context:
            inputs = scenario.generate_inputs()
            buffers = allocate_buffers(context, scenario.buffer_specs())
            in_bufs, out_bufs = buffers[:scenario.num_inputs], buffers[scenario.num_inputs:]

            with timer.phase("write"):
                stage_inputs(in_bufs, inputs)

            with timer.phase("kernel-build"):
                invocation = bind_invocation(program, scenario.kernel_args(buffers))

            with timer.phase("execute"):
                execute(invocation)

            with timer.phase("read"):
                outputs = retrieve_outputs(out_bufs)

        with timer.phase("verify"):
            expected = scenario.expected(inputs)
            max_error, mismatches = compare(outputs[0], expected, scenario.atol)

    result = ScenarioResult(scenario.name, outputs, mismatches == 0, max_error, mismatches)
    if not result.passed and options["check"]:
        raise VerificationFailure(
            f"{scenario.name}: {mismatches} of {outputs[0].size} elements differ "
            f"from the host reference (max error {max_error})",
            result=result, record=timer.record)
    return result, timer.record
