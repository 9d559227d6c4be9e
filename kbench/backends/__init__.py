from .base import (
    Backend,
    ComputeBuffer,
    DeviceContext,
    KernelInvocation,
    KernelProgram,
    KernelSource,
)
from .backend import get_backend, register_backend
