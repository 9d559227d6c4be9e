from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import numpy as np

from ..errors import SetupFailure


@dataclass(frozen=True)
class KernelSource:
    text: str
    entry_point: str


@dataclass
class DeviceContext:
    """
    An opened accelerator: the device, its command queue and the programs
    compiled for it so far.

    A context is owned by exactly one scenario run. Use it as a context
    manager so the device resources are released on every exit path.
    """
    backend: "Backend"
    device: Any
    queue: Any = None
    handle: Any = None
    program_cache: Dict = field(default_factory=dict)
    buffers: list = field(default_factory=list)
    closed: bool = False
    _entered: bool = field(default=False, repr=False)

    def __enter__(self):
        if self._entered:
            raise SetupFailure("device context is already owned by another run")
        self._entered = True
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def close(self):
        if self.closed:
            return
        self.closed = True
        self.backend.close(self)
        self.buffers.clear()
        self.program_cache.clear()


@dataclass
class KernelProgram:
    context: DeviceContext
    source: KernelSource
    grid_shape: Tuple[int, ...]
    kernel: Any
    num_args: int
    # One KernelParam per parameter, None when the declaration could not be read
    params: Optional[List] = None

    @property
    def name(self):
        return self.source.entry_point


@dataclass
class ComputeBuffer:
    context: DeviceContext
    count: int
    dtype: np.dtype
    handle: Any = None

    def write(self, host):
        self.context.backend.write(self, host)

    def read(self):
        return self.context.backend.read(self)


@dataclass
class KernelInvocation:
    program: KernelProgram
    args: Tuple
    handle: Any = None
    enqueued: bool = False


class Backend(ABC):
    # Name used to look the backend up in the registry
    name = None
    # Human readable runtime name for reports
    display_name = None
    # Which kernel source a scenario has to provide for this backend
    dialect = None

    @abstractmethod
    def open_context(self, **options) -> DeviceContext:
        """Select a device and create a queue on it."""

    @abstractmethod
    def build(self, context, source: KernelSource, grid_shape) -> KernelProgram:
        """Compile `source` and look up its entry point."""

    @abstractmethod
    def alloc(self, context, count: int, dtype) -> ComputeBuffer:
        pass

    @abstractmethod
    def write(self, buffer: ComputeBuffer, host: np.ndarray):
        """Blocking host to device copy."""

    @abstractmethod
    def read(self, buffer: ComputeBuffer) -> np.ndarray:
        """Blocking device to host copy."""

    @abstractmethod
    def bind(self, program: KernelProgram, args) -> KernelInvocation:
        pass

    @abstractmethod
    def launch(self, invocation: KernelInvocation):
        """Run the invocation over the program's grid and wait for it."""

    @abstractmethod
    def close(self, context):
        pass
