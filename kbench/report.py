import sys

LABELS = {
    "setup": "{runtime} setup time",
    "write": "Buffer write time",
    "kernel-build": "Kernel build time",
    "execute": "Kernel execution time",
    "read": "Buffer read time",
    "verify": "Host verify time",
    "total": "Total execution time",
}


def format_duration(seconds):
    return f"{seconds * 1000:.3f} ms"


def format_report(record, runtime="OpenCL"):
    lines = []
    for phase, seconds in record.ordered():
        if phase == "total":
            continue
        label = LABELS.get(phase, phase).format(runtime=runtime)
        lines.append(f"{label}: {format_duration(seconds)}")
    if "total" in record:
        lines.append(f"{LABELS['total']}: {format_duration(record['total'])}")
    return lines


def print_report(record, runtime="OpenCL", file=None):
    file = file or sys.stdout
    for line in format_report(record, runtime):
        print(line, file=file)


def print_outcome(title, result, file=None):
    file = file or sys.stdout
    if result.passed:
        print(f"{title} done. All results correct.", file=file)
    else:
        print(f"{title} done with {result.mismatches} errors.", file=file)
