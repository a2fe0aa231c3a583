[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "layertree"
version = "0.1.0"
description = "In-memory file trees for container image layers: symlink resolution, globbing, whiteout-aware merging and a metadata index."
requires-python = ">=3.10"
dependencies = []
keywords = ["filesystem", "filetree", "symlink", "glob", "container", "layer", "whiteout"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Filesystems",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["layertree"]

[tool.pytest.ini_options]
addopts = "-ra"
