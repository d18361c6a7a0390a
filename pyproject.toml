[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "wwkit"
version = "0.1.0"
description = "An in-memory ext2-like block filesystem, with an AVL tree, a free-list allocator and counting semaphores"
requires-python = ">=3.10"
dependencies = []
keywords = ["filesystem", "disk-image", "inode", "avl-tree", "allocator", "semaphore", "ring-buffer"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Filesystems",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["wwkit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
