[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "xv6sim"
version = "0.1.0"
description = "In-memory models of a small x86 teaching kernel: paging, descriptors, traps, locks, allocator, shell parser and word count"
requires-python = ">=3.10"
dependencies = []
keywords = ["operating-system", "kernel", "x86", "paging", "simulation", "teaching"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Education",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Operating System Kernels",
    "Topic :: Education",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
xv6-wc = "xv6sim.wc:main"

[tool.hatch.build.targets.wheel]
packages = ["xv6sim"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 88
target-version = "py310"
