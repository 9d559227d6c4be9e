import numpy as np

from kbench.scenarios import MatrixMultiply
from kbench.utils import largest_divisor, launch_dims, parse_params


def test_parse_params():
    for dialect in ("opencl", "cuda"):
        params = parse_params(MatrixMultiply.sources[dialect], "matmul")
        assert [p.name for p in params] == ["a", "b", "c", "N"]
        assert [p.pointer for p in params] == [True, True, True, False]
        assert [p.dtype for p in params] == [np.float32] * 3 + [np.int32]
        assert params[3].ctype == "int"
    unknown, = parse_params("__kernel void f(__global half *h) { }", "f")
    assert unknown.pointer and unknown.dtype is None
    assert parse_params("__kernel void f(unsigned int n) { }", "f")[0].dtype == np.uint32
    assert parse_params("", "f") is None
    assert parse_params("__global__ void noop() {}", "noop") == []
    src = "__kernel void scale(__global float *a, const float s) { }"
    assert [p.dtype for p in parse_params(src, "scale")] == [np.float32, np.float32]


def test_largest_divisor():
    assert largest_divisor(1024, 256) == 256
    assert largest_divisor(1, 256) == 1
    assert largest_divisor(1000, 256) == 250
    assert largest_divisor(7, 4) == 1


def test_launch_dims_cover_the_grid_exactly():
    for shape in [(1,), (1024,), (1000,), (1021,), (32, 32), (3, 48), (100, 7)]:
        block, grid = launch_dims(shape)
        assert len(block) == 3 and len(grid) == 2
        for i, n in enumerate(shape):
            assert block[i] * grid[i] == n
        assert block[0] * block[1] * block[2] <= 256
