"""
The benchmark scenarios.

A scenario bundles everything the pipeline needs to know about one kernel:
its source per backend dialect, the grid shape it is written for, how to
generate its inputs, which arguments it takes and what the host expects it
to compute. The pipeline itself knows nothing about vector addition or
matrix multiplication, so adding a scenario means adding a class here and
registering it in SCENARIOS.
"""
import numpy as np

from .backends.base import KernelSource
from .errors import SetupFailure

VEC_ADD_OPENCL = """
__kernel void add(
    __global const float* a,
    __global const float* b,
    __global float* c
) {
    int i = get_global_id(0);
    c[i] = a[i] + b[i];
}
"""

VEC_ADD_CUDA = """
__global__ void add(const float *a, const float *b, float *c)
{
    int i = blockIdx.x * blockDim.x + threadIdx.x;
    c[i] = a[i] + b[i];
}
"""

MATMUL_OPENCL = """
__kernel void matmul(
    __global const float *a,
    __global const float *b,
    __global float *c,
    const int N
) {
    int row = get_global_id(0);
    int col = get_global_id(1);
    float sum = 0.0f;
    for (int k = 0; k < N; ++k) {
        sum += a[row * N + k] * b[k * N + col];
    }
    c[row * N + col] = sum;
}
"""

MATMUL_CUDA = """
__global__ void matmul(const float *a, const float *b, float *c, const int N)
{
    int row = blockIdx.x * blockDim.x + threadIdx.x;
    int col = blockIdx.y * blockDim.y + threadIdx.y;
    float sum = 0.0f;
    for (int k = 0; k < N; ++k) {
        sum += a[row * N + k] * b[k * N + col];
    }
    c[row * N + col] = sum;
}
"""


class Scenario:
    name = None
    title = None
    entry_point = None
    sources = {}
    dtype = np.float32
    # 0.0 means exact equality
    atol = 0.0
    num_inputs = 2

    def kernel_source(self, dialect):
        if dialect not in self.sources:
            raise SetupFailure(f"Scenario {self.name} has no {dialect} kernel")
        return KernelSource(self.sources[dialect], self.entry_point)

    def grid_shape(self):
        raise NotImplementedError()

    def generate_inputs(self):
        raise NotImplementedError()

    def buffer_specs(self):
        """(count, dtype) for every buffer: the inputs first, then the outputs."""
        raise NotImplementedError()

    def kernel_args(self, buffers):
        return list(buffers)

    def expected(self, inputs):
        raise NotImplementedError()

    def __repr__(self):
        return f"{type(self).__name__}(grid={self.grid_shape()})"


class VectorAdd(Scenario):
    name = "vector-add"
    title = "Vector add"
    entry_point = "add"
    sources = {"opencl": VEC_ADD_OPENCL, "cuda": VEC_ADD_CUDA}

    def __init__(self, length=1024):
        self.length = length

    def grid_shape(self):
        return (self.length,)

    def generate_inputs(self):
        a = np.full(self.length, 1.0, dtype=self.dtype)
        b = np.full(self.length, 2.0, dtype=self.dtype)
        return [a, b]

    def buffer_specs(self):
        return [(self.length, self.dtype)] * 3

    def expected(self, inputs):
        a, b = inputs
        return a + b


class MatrixMultiply(Scenario):
    name = "matrix-multiply"
    title = "Matmul"
    entry_point = "matmul"
    sources = {"opencl": MATMUL_OPENCL, "cuda": MATMUL_CUDA}
    atol = 1e-3

    def __init__(self, n=32):
        self.n = n

    def grid_shape(self):
        return (self.n, self.n)

    def generate_inputs(self):
        size = self.n * self.n
        a = np.arange(size).astype(self.dtype)
        b = np.arange(size).astype(self.dtype)
        return [a, b]

    def buffer_specs(self):
        return [(self.n * self.n, self.dtype)] * 3

    def kernel_args(self, buffers):
        return list(buffers) + [np.int32(self.n)]

    def expected(self, inputs):
        # Accumulate in single precision in the same k order as the kernel
        a, b = inputs
        N = self.n
        c = np.empty(N * N, dtype=self.dtype)
        for row in range(N):
            for col in range(N):
                acc = self.dtype(0.0)
                for k in range(N):
                    acc += a[row * N + k] * b[k * N + col]
                c[row * N + col] = acc
        return c


SCENARIOS = {
    VectorAdd.name: VectorAdd,
    MatrixMultiply.name: MatrixMultiply,
}


def get_scenario(name, **params):
    if name not in SCENARIOS:
        raise ValueError(f"Unknown scenario: {name}")
    return SCENARIOS[name](**params)
