import pytest

pytest.importorskip("pycuda.driver")

from kbench.backends.cuda import backend as cuda_backend
from kbench.errors import SetupFailure
from kbench.scenarios import VectorAdd


def test_missing_compiler_is_setup_failure(monkeypatch):
    def no_nvcc(*args, **kwargs):
        raise FileNotFoundError(2, "No such file or directory", "nvcc")

    monkeypatch.setattr(cuda_backend, "SourceModule", no_nvcc)
    source = VectorAdd().kernel_source("cuda")
    with pytest.raises(SetupFailure, match="compiler"):
        cuda_backend.CUDABackend().build(None, source, (16,))
