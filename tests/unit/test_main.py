from kbench.__main__ import OK, PIPELINE_FAILURE, WRONG_RESULT, main
from kbench.scenarios import VectorAdd


def test_main_success(emulator, monkeypatch, capsys):
    monkeypatch.setenv("KBENCH_BACKEND", "emulator")
    assert main() == OK
    out = capsys.readouterr().out
    assert "Vector add done. All results correct." in out
    assert "Matmul done. All results correct." in out
    assert out.count("Total execution time:") == 2
    assert emulator.launches == 2


def test_main_pipeline_failure(monkeypatch, capsys):
    monkeypatch.setenv("KBENCH_BACKEND", "no-such-backend")
    assert main() == PIPELINE_FAILURE
    assert "SetupFailure" in capsys.readouterr().err


def test_main_wrong_result(emulator, monkeypatch, capsys):
    monkeypatch.setenv("KBENCH_BACKEND", "emulator")
    monkeypatch.setattr(VectorAdd, "expected", lambda self, inputs: inputs[0] + inputs[1] + 1)
    assert main() == WRONG_RESULT
    captured = capsys.readouterr()
    assert "Verification failed" in captured.err
    assert "Vector add done with 1024 errors." in captured.out
    # Stops before the matrix scenario
    assert emulator.launches == 1


def test_main_unexpected_error(emulator, monkeypatch, capsys):
    def no_compiler(*args, **kwargs):
        raise OSError("nvcc not found")

    monkeypatch.setenv("KBENCH_BACKEND", "emulator")
    monkeypatch.setattr(emulator, "open_context", no_compiler)
    assert main() == PIPELINE_FAILURE
    assert "OSError: nvcc not found" in capsys.readouterr().err
