import numpy as np
import pytest

from kbench.backends import (
    Backend,
    ComputeBuffer,
    DeviceContext,
    KernelInvocation,
    KernelProgram,
    register_backend,
)
from kbench.errors import ExecutionFailure, SetupFailure
from kbench.utils import parse_params


def _add(gid, a, b, c):
    i, = gid
    c[i] = a[i] + b[i]


def _matmul(gid, a, b, c, N):
    row, col = gid
    acc = np.float32(0.0)
    for k in range(N):
        acc += a[row * N + k] * b[k * N + col]
    c[row * N + col] = acc


class EmulatorBackend(Backend):
    """
    Runs OpenCL scenarios on the host, one Python call per grid index.

    Kernels are looked up by entry point name; the source text is only
    checked for a matching declaration. Out-of-bounds indexing surfaces as
    ExecutionFailure, like a runtime with bounds checking would report it.
    """
    name = "emulator"
    display_name = "Emulator"
    dialect = "opencl"

    kernels = {
        "add": _add,
        "matmul": _matmul,
    }

    def __init__(self):
        self.contexts = []
        self.launches = 0

    def open_context(self, **options):
        context = DeviceContext(self, "host")
        self.contexts.append(context)
        return context

    def build(self, context, source, grid_shape):
        params = parse_params(source.text, source.entry_point)
        if params is None or source.entry_point not in self.kernels:
            raise SetupFailure(f"no kernel named {source.entry_point}")
        return KernelProgram(context, source, grid_shape, self.kernels[source.entry_point],
                             len(params), params)

    def alloc(self, context, count, dtype):
        return ComputeBuffer(context, count, dtype, handle=np.zeros(count, dtype=dtype))

    def write(self, buffer, host):
        buffer.handle[:] = host

    def read(self, buffer):
        return buffer.handle.copy()

    def bind(self, program, args):
        handles = [a.handle if isinstance(a, ComputeBuffer) else a for a in args]
        return KernelInvocation(program, tuple(args), handle=handles)

    def launch(self, invocation):
        self.launches += 1
        fn = invocation.program.kernel
        for gid in np.ndindex(*invocation.program.grid_shape):
            try:
                fn(gid, *invocation.handle)
            except (IndexError, ValueError) as e:
                raise ExecutionFailure(f"out-of-bounds access at {gid}: {e}") from e

    def close(self, context):
        pass


@pytest.fixture
def emulator():
    backend = EmulatorBackend()
    register_backend("emulator", lambda: backend)
    return backend
