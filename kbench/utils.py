import re
from dataclasses import dataclass
from typing import Optional

import numpy as np

# C scalar types that kernels in either dialect declare, and their numpy dtype
C_TYPES = {
    "char": np.int8,
    "uchar": np.uint8,
    "unsigned char": np.uint8,
    "short": np.int16,
    "ushort": np.uint16,
    "unsigned short": np.uint16,
    "int": np.int32,
    "uint": np.uint32,
    "unsigned int": np.uint32,
    "unsigned": np.uint32,
    "long": np.int64,
    "ulong": np.uint64,
    "unsigned long": np.uint64,
    "float": np.float32,
    "double": np.float64,
}

QUALIFIERS = {
    "__global", "global", "__constant", "constant", "__local", "local",
    "__private", "private", "const", "volatile", "restrict", "__restrict__",
}


@dataclass(frozen=True)
class KernelParam:
    name: str
    ctype: str
    pointer: bool
    # None when the C type has no entry in C_TYPES
    dtype: Optional[np.dtype]


def _param_list(source_text, entry_point):
    pattern = rf"(?:__kernel|kernel|__global__)\s+void\s+{re.escape(entry_point)}\s*\(([^)]*)\)"
    match = re.search(pattern, source_text)
    if match is None:
        return None
    return [p.strip() for p in match.group(1).split(",") if p.strip()]


def _parse_param(decl):
    pointer = "*" in decl
    words = decl.replace("*", " ").split()
    name = words[-1] if len(words) > 1 else ""
    ctype = " ".join(w for w in words[:-1] if w not in QUALIFIERS)
    dtype = np.dtype(C_TYPES[ctype]) if ctype in C_TYPES else None
    return KernelParam(name, ctype, pointer, dtype)


def parse_params(source_text, entry_point):
    """
    Describe each parameter of kernel `entry_point` in OpenCL C or CUDA C
    source: whether it is a pointer and which numpy dtype its (pointee)
    type maps to.

    Returns None if no kernel with that name is declared.
    """
    decls = _param_list(source_text, entry_point)
    if decls is None:
        return None
    return [_parse_param(d) for d in decls]


def largest_divisor(n, limit):
    for d in range(min(n, limit), 0, -1):
        if n % d == 0:
            return d
    return 1


# Per-dimension block limits for 1-D and 2-D grids
BLOCK_LIMITS = {
    1: (256,),
    2: (16, 16),
}


def launch_dims(grid_shape):
    """
    Split a grid shape into a CUDA (block, grid) pair whose product is
    exactly the grid shape, so kernels need no bounds guard.

    >>> launch_dims((1024,))
    ((256, 1, 1), (4, 1))
    >>> launch_dims((32, 32))
    ((16, 16, 1), (2, 2))
    """
    limits = BLOCK_LIMITS[len(grid_shape)]
    block = [largest_divisor(n, lim) for n, lim in zip(grid_shape, limits)]
    grid = [n // b for n, b in zip(grid_shape, block)]
    block += [1] * (3 - len(block))
    grid += [1] * (2 - len(grid))
    return tuple(block), tuple(grid)


def pretty_dump(src, kernel_name):
    print(f"--- Dumped code for kernel {kernel_name} ---")
    print(src.strip("\n"))
    print(f"--- End of dumped code for kernel {kernel_name} ---")
