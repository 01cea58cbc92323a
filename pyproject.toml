[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "airvm"
version = "0.1.0"
description = "Execution core of a register-based bytecode VM: moves, casts, three-operand math, returns, object instructions and a native function interface"
requires-python = ">=3.10"
dependencies = []
keywords = ["virtual machine", "bytecode", "interpreter", "registers"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Software Development :: Interpreters",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["airvm"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
