# A new scenario only needs a subclass; the pipeline is untouched.
import numpy as np
import kbench
from kbench.report import print_report
from kbench.scenarios import Scenario

SAXPY_OPENCL = """
__kernel void saxpy(
    __global const float *x,
    __global const float *y,
    __global float *out,
    const float alpha
) {
    int i = get_global_id(0);
    out[i] = alpha * x[i] + y[i];
}
"""


class Saxpy(Scenario):
    name = "saxpy"
    title = "SAXPY"
    entry_point = "saxpy"
    sources = {"opencl": SAXPY_OPENCL}
    atol = 1e-5

    def __init__(self, length=1 << 20, alpha=2.0):
        self.length = length
        self.alpha = np.float32(alpha)

    def grid_shape(self):
        return (self.length,)

    def generate_inputs(self):
        rng = np.random.default_rng(0)
        x = rng.standard_normal(self.length, dtype=np.float32)
        y = rng.standard_normal(self.length, dtype=np.float32)
        return [x, y]

    def buffer_specs(self):
        return [(self.length, self.dtype)] * 3

    def kernel_args(self, buffers):
        return list(buffers) + [self.alpha]

    def expected(self, inputs):
        x, y = inputs
        return self.alpha * x + y


if __name__ == "__main__":
    result, record = kbench.run_scenario(Saxpy(), backend="opencl", dump_code=True)
    print(f"passed: {result.passed}, max error: {result.max_error}")
    print_report(record)
