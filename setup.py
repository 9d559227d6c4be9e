import os
import re
from setuptools import setup, find_packages

def read_version():
    with open(os.path.join("kbench", "__version__.py")) as f:
        match = re.search(r'__version__\s*=\s*["\'](.+?)["\']', f.read())
        if match:
            return match.group(1)
        raise RuntimeError("Version not found.")

setup(
    name="kbench",
    version=read_version(),
    author="kbench developers",
    description="Phase-by-phase timing of vector add and matrix multiply kernels on OpenCL and CUDA devices.",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    packages=find_packages(include=["kbench", "kbench.*"]),
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    python_requires='>=3.9',
    install_requires=[
        'numpy',
        'pyopencl',
    ],
    extras_require={
        "cuda": [
            "pycuda",
        ],
        "dev": [
            "pytest",
            # CPU OpenCL driver so the OpenCL tests run without a GPU
            "pocl-binary-distribution",
        ],
    },
    entry_points={
        "console_scripts": [
            "kbench=kbench.__main__:main",
        ],
    },
)
