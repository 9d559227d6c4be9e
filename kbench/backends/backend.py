from ..errors import SetupFailure
from .base import Backend

_factories = {}
_instances = {}


def register_backend(name: str, factory):
    """Make `factory()` available as backend `name`, replacing any previous one."""
    _factories[name] = factory
    _instances.pop(name, None)


def get_backend(backend_name):
    if isinstance(backend_name, Backend):
        return backend_name
    if backend_name in _instances:
        return _instances[backend_name]

    try:
        if backend_name in _factories:
            backend = _factories[backend_name]()
        elif backend_name == "opencl":
            from .opencl.backend import OpenCLBackend
            backend = OpenCLBackend()
        elif backend_name == "cuda":
            from .cuda.backend import CUDABackend
            backend = CUDABackend()
        else:
            raise SetupFailure(f"Unknown backend: {backend_name}")
    except ImportError as e:
        raise SetupFailure(f"Backend {backend_name} is not installed: {e}") from e

    _instances[backend_name] = backend
    return backend
