import numpy as np
import pyopencl as cl

from ...errors import (
    AllocationFailure,
    BindingFailure,
    ExecutionFailure,
    SetupFailure,
    TransferFailure,
)
from ...utils import parse_params
from ..base import Backend, ComputeBuffer, DeviceContext, KernelInvocation, KernelProgram

DEVICE_TYPES = {
    "gpu": cl.device_type.GPU,
    "cpu": cl.device_type.CPU,
    "accelerator": cl.device_type.ACCELERATOR,
    "all": cl.device_type.ALL,
}


def _pick_device(device_type):
    if device_type not in DEVICE_TYPES:
        raise SetupFailure(f"Unknown OpenCL device type: {device_type}")
    for platform in cl.get_platforms():
        try:
            devices = platform.get_devices(device_type=DEVICE_TYPES[device_type])
        except cl.Error:
            # DEVICE_NOT_FOUND on this platform
            continue
        if devices:
            return devices[0]
    raise SetupFailure(f"No OpenCL device of type {device_type} found")


class OpenCLBackend(Backend):
    name = "opencl"
    display_name = "OpenCL"
    dialect = "opencl"

    def open_context(self, device_type=None, **options):
        try:
            if device_type is None:
                # Honours PYOPENCL_CTX when it is set
                ctx = cl.create_some_context(interactive=False)
            else:
                ctx = cl.Context([_pick_device(device_type)])
            queue = cl.CommandQueue(ctx)
        except (cl.Error, RuntimeError) as e:
            raise SetupFailure(f"No OpenCL device available: {e}") from e
        return DeviceContext(self, ctx.devices[0], queue=queue, handle=ctx)

    def build(self, context, source, grid_shape):
        try:
            program = cl.Program(context.handle, source.text).build()
        except cl.Error as e:
            raise SetupFailure(f"Failed to build kernel {source.entry_point}: {e}") from e
        try:
            kernel = cl.Kernel(program, source.entry_point)
        except cl.Error as e:
            raise SetupFailure(f"Kernel {source.entry_point} not found in program: {e}") from e
        num_args = kernel.get_info(cl.kernel_info.NUM_ARGS)
        params = parse_params(source.text, source.entry_point)
        if params is not None and len(params) != num_args:
            params = None
        return KernelProgram(context, source, tuple(grid_shape), kernel, num_args, params)

    def alloc(self, context, count, dtype):
        dtype = np.dtype(dtype)
        try:
            buf = cl.Buffer(context.handle, cl.mem_flags.READ_WRITE, size=count * dtype.itemsize)
        except cl.Error as e:
            raise AllocationFailure(f"Could not allocate {count} x {dtype}: {e}") from e
        return ComputeBuffer(context, count, dtype, handle=buf)

    def write(self, buffer, host):
        queue = buffer.context.queue
        try:
            cl.enqueue_copy(queue, buffer.handle, host, is_blocking=True)
        except cl.Error as e:
            raise TransferFailure(f"Host to device copy failed: {e}") from e

    def read(self, buffer):
        out = np.empty(buffer.count, dtype=buffer.dtype)
        try:
            cl.enqueue_copy(buffer.context.queue, out, buffer.handle, is_blocking=True)
        except cl.Error as e:
            raise TransferFailure(f"Device to host copy failed: {e}") from e
        return out

    def bind(self, program, args):
        handles = [a.handle if isinstance(a, ComputeBuffer) else a for a in args]
        try:
            program.kernel.set_args(*handles)
        except (cl.Error, TypeError, ValueError) as e:
            raise BindingFailure(f"Cannot bind arguments to {program.name}: {e}") from e
        return KernelInvocation(program, tuple(args), handle=program.kernel)

    def launch(self, invocation):
        queue = invocation.program.context.queue
        try:
            event = cl.enqueue_nd_range_kernel(
                queue, invocation.handle, invocation.program.grid_shape, None)
            event.wait()
            queue.finish()
        except cl.Error as e:
            raise ExecutionFailure(f"Kernel {invocation.program.name} failed: {e}") from e

    def close(self, context):
        try:
            context.queue.finish()
        finally:
            for buf in context.buffers:
                buf.handle.release()
