import numpy as np
import pytest

cl = pytest.importorskip("pyopencl")

import kbench
from kbench import (
    KernelSource,
    MatrixMultiply,
    VectorAdd,
    allocate_buffers,
    bind_invocation,
    initialize,
    retrieve_outputs,
    run_scenario,
    stage_inputs,
)
from kbench.errors import BindingFailure, SetupFailure


def _has_device():
    try:
        return any(p.get_devices() for p in cl.get_platforms())
    except cl.Error:
        return False


pytestmark = pytest.mark.skipif(not _has_device(), reason="no OpenCL device")

ADD = VectorAdd().kernel_source("opencl")


def test_round_trip_transfer():
    for count in [1, 3, 1024, 100_000]:
        host = np.random.default_rng(count).standard_normal(count).astype(np.float32)
        context, _ = initialize(ADD, (count,), backend="opencl")
        with context:
            buf, = allocate_buffers(context, [(count, np.float32)])
            stage_inputs([buf], [host])
            out, = retrieve_outputs([buf])
        assert np.array_equal(out, host)


def test_vec_add():
    for length in [1024, 1]:
        result, record = run_scenario(VectorAdd(length), backend="opencl")
        assert result.passed
        assert np.all(result.output == 3.0)
        assert record.is_complete()


def test_matmul():
    result, record = run_scenario(MatrixMultiply(32), backend="opencl")
    assert result.passed
    assert result.max_error < 1e-3
    assert record["total"] >= record.phase_sum()


def test_run_twice():
    outcomes = [run_scenario(MatrixMultiply(16), backend="opencl")[0].passed for _ in range(2)]
    assert outcomes == [True, True]


def test_argument_mismatch():
    context, program = initialize(ADD, (16,), backend="opencl")
    with context:
        a, b = allocate_buffers(context, [(16, np.float32)] * 2)
        with pytest.raises(BindingFailure):
            bind_invocation(program, [a, b])


def test_argument_type_mismatch():
    source = KernelSource(MatrixMultiply.sources["opencl"], "matmul")
    context, program = initialize(source, (4, 4), backend="opencl")
    with context:
        a, b, c = allocate_buffers(context, [(16, np.float32)] * 3)
        with pytest.raises(BindingFailure):
            bind_invocation(program, [a, b, c, np.float32(4)])
        with pytest.raises(BindingFailure):
            bind_invocation(program, [a, b, np.int32(4), c])
        bind_invocation(program, [a, b, c, np.int32(4)])


def test_build_failure():
    broken = KernelSource("__kernel void add(__global float *a) { a[0] = ; }", "add")
    with pytest.raises(SetupFailure):
        initialize(broken, (1,), backend="opencl")
    with pytest.raises(SetupFailure):
        initialize(KernelSource(ADD.text, "sub"), (1,), backend="opencl")


def test_report(capsys):
    kbench.run("vector-add", backend="opencl", length=64)
    out = capsys.readouterr().out
    assert "OpenCL setup time:" in out
    assert "Vector add done. All results correct." in out
