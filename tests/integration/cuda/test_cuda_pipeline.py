import shutil

import numpy as np
import pytest

pytest.importorskip("pycuda")

from kbench import (
    MatrixMultiply,
    VectorAdd,
    allocate_buffers,
    initialize,
    retrieve_outputs,
    run_scenario,
    stage_inputs,
)

pytestmark = pytest.mark.skipif(shutil.which("nvidia-smi") is None, reason="NVIDIA GPU not found")


def test_round_trip_transfer():
    source = VectorAdd().kernel_source("cuda")
    for count in [1, 1024, 4097]:
        host = np.arange(count, dtype=np.float32)
        context, _ = initialize(source, (count,), backend="cuda")
        with context:
            buf, = allocate_buffers(context, [(count, np.float32)])
            stage_inputs([buf], [host])
            out, = retrieve_outputs([buf])
        assert np.array_equal(out, host)


def test_vec_add():
    for length in [1024, 1, 1000]:
        result, _ = run_scenario(VectorAdd(length), backend="cuda")
        assert result.passed


def test_matmul():
    result, record = run_scenario(MatrixMultiply(32), backend="cuda")
    assert result.passed
    assert record.is_complete()
