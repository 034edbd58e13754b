[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "vcxbuild"
version = "0.1.1"
description = "Load sources, include directories and flags from .vcxproj files for build scripts"
requires-python = ">=3.10"
dependencies = []
keywords = ["build", "msvc", "vcxproj", "vcpkg", "c++"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Programming Language :: C++",
    "Operating System :: OS Independent",
    "Topic :: Software Development :: Build Tools",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["vcxbuild"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
