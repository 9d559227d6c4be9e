class BenchmarkError(Exception):
    """Base class for everything a benchmark run can raise."""


class PipelineFailure(BenchmarkError):
    """An infrastructure fault in one of the pipeline phases."""


class SetupFailure(PipelineFailure):
    """No usable accelerator, missing runtime library, or the kernel failed to compile."""


class AllocationFailure(PipelineFailure):
    """Device memory could not be allocated."""


class TransferFailure(PipelineFailure):
    """A host/device copy failed or its sizes did not match."""


class BindingFailure(PipelineFailure):
    """Kernel arguments do not match the entry point's parameter list."""


class ExecutionFailure(PipelineFailure):
    """The device reported a fault while running the kernel."""


class VerificationFailure(BenchmarkError):
    """
    The kernel ran but its output diverges from the host reference.

    This is a logic bug, not an infrastructure fault, so it does not derive
    from PipelineFailure. The failed result and the timing record are kept
    so the caller can still report them.
    """

    def __init__(self, message, result=None, record=None):
        super().__init__(message)
        self.result = result
        self.record = record
