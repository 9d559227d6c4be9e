import numpy as np
import pycuda.driver as drv
from pycuda.compiler import SourceModule

from ...errors import (
    AllocationFailure,
    ExecutionFailure,
    SetupFailure,
    TransferFailure,
)
from ...utils import launch_dims, parse_params
from ..base import Backend, ComputeBuffer, DeviceContext, KernelInvocation, KernelProgram


class CUDABackend(Backend):
    name = "cuda"
    display_name = "CUDA"
    dialect = "cuda"

    def open_context(self, device_ordinal=0, **options):
        try:
            drv.init()
            if drv.Device.count() == 0:
                raise SetupFailure("No CUDA device available")
            device = drv.Device(device_ordinal)
            ctx = device.make_context()
        except drv.Error as e:
            raise SetupFailure(f"No CUDA device available: {e}") from e
        return DeviceContext(self, device, handle=ctx)

    def build(self, context, source, grid_shape):
        try:
            mod = SourceModule(source.text)
            fn = mod.get_function(source.entry_point)
        except OSError as e:
            # nvcc missing from PATH
            raise SetupFailure(f"CUDA compiler not available: {e}") from e
        except drv.Error as e:
            raise SetupFailure(f"Failed to build kernel {source.entry_point}: {e}") from e
        # The driver API does not report parameter counts, read them off the source
        params = parse_params(source.text, source.entry_point)
        num_args = len(params) if params is not None else None
        return KernelProgram(context, source, tuple(grid_shape), fn, num_args, params)

    def alloc(self, context, count, dtype):
        dtype = np.dtype(dtype)
        try:
            ptr = drv.mem_alloc(count * dtype.itemsize)
        except drv.Error as e:
            raise AllocationFailure(f"Could not allocate {count} x {dtype}: {e}") from e
        return ComputeBuffer(context, count, dtype, handle=ptr)

    def write(self, buffer, host):
        try:
            drv.memcpy_htod(buffer.handle, host)
        except drv.Error as e:
            raise TransferFailure(f"Host to device copy failed: {e}") from e

    def read(self, buffer):
        out = np.empty(buffer.count, dtype=buffer.dtype)
        try:
            drv.memcpy_dtoh(out, buffer.handle)
        except drv.Error as e:
            raise TransferFailure(f"Device to host copy failed: {e}") from e
        return out

    def bind(self, program, args):
        # Arguments are passed at launch time, nothing to set on the device yet
        handles = [a.handle if isinstance(a, ComputeBuffer) else a for a in args]
        return KernelInvocation(program, tuple(args), handle=handles)

    def launch(self, invocation):
        block, grid = launch_dims(invocation.program.grid_shape)
        try:
            invocation.program.kernel(*invocation.handle, block=block, grid=grid)
            drv.Context.synchronize()
        except drv.Error as e:
            raise ExecutionFailure(f"Kernel {invocation.program.name} failed: {e}") from e

    def close(self, context):
        try:
            for buf in context.buffers:
                buf.handle.free()
        finally:
            context.handle.pop()
            context.handle.detach()
