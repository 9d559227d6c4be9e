import os


def set_default_options(options):
    options.setdefault("backend", os.environ.get("KBENCH_BACKEND", "opencl"))
    options.setdefault("device_type", None)
    options.setdefault("dump_code", False)
    options.setdefault("check", True)
    return options
