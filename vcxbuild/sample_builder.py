"""A small C++ static-library builder for build scripts."""

from __future__ import annotations

import glob
import hashlib
import os
import subprocess
import sys
from collections.abc import Callable, Iterable
from pathlib import Path


def _is_windows() -> bool:
    return sys.platform.startswith("win")


def find_files(patterns: Iterable[str]) -> list[str]:
    """Expand glob patterns; a pattern starting with '-' removes its matches."""
    found: set[Path] = set()
    for pattern in patterns:
        if pattern.startswith("-"):
            found.difference_update(Path(p) for p in glob.glob(pattern[1:], recursive=True))
        else:
            found.update(Path(p) for p in glob.glob(pattern, recursive=True))
    return sorted(str(path) for path in found)


def _run(command: list[str]) -> None:
    try:
        result = subprocess.run(command)
    except OSError as exc:
        raise RuntimeError(f"failed to run {command[0]}: {exc}") from exc
    if result.returncode != 0:
        raise RuntimeError(f"command failed with status {result.returncode}: {' '.join(command)}")


class CxxBuild:
    """Compiles source files and archives them into a static library."""

    def __init__(self) -> None:
        self.cpp = False
        self.std: str | None = None
        self.flags: list[str] = []
        self.sources: list[str] = []

    def flag(self, flag: str) -> CxxBuild:
        self.flags.append(flag)
        return self

    def files(self, paths: Iterable[str | os.PathLike]) -> CxxBuild:
        self.sources.extend(str(path) for path in paths)
        return self

    def _object_path(self, out_dir: Path, source: str, windows: bool) -> Path:
        digest = hashlib.sha1(source.encode()).hexdigest()[:16]
        suffix = ".obj" if windows else ".o"
        return out_dir / f"{digest}-{Path(source).stem}{suffix}"

    def compile(self, name: str) -> Path:
        """Build lib<name>.a (or <name>.lib) in OUT_DIR and emit cargo link lines."""
        out_dir_value = os.environ.get("OUT_DIR")
        if not out_dir_value:
            raise RuntimeError("OUT_DIR is not set")
        out_dir = Path(out_dir_value)
        windows = _is_windows()
        compiler_var = "CXX" if self.cpp else "CC"
        if windows:
            compiler = os.environ.get(compiler_var) or "cl.exe"
            std_flags = [f"/std:{self.std}"] if self.std else []
        else:
            compiler = os.environ.get(compiler_var) or ("c++" if self.cpp else "cc")
            std_flags = [f"-std={self.std}"] if self.std else []

        objects = []
        for source in self.sources:
            obj = self._object_path(out_dir, source, windows)
            if windows:
                command = [compiler, "/nologo", *std_flags, *self.flags, "/c", f"/Fo{obj}", source]
            else:
                command = [compiler, *std_flags, *self.flags, "-c", "-o", str(obj), source]
            _run(command)
            objects.append(str(obj))

        if windows:
            library = out_dir / f"{name}.lib"
            archive = [os.environ.get("AR") or "lib.exe", "/nologo", f"/OUT:{library}", *objects]
        else:
            library = out_dir / f"lib{name}.a"
            archive = [os.environ.get("AR") or "ar", "crs", str(library), *objects]
        library.unlink(missing_ok=True)
        _run(archive)

        print(f"cargo:rustc-link-lib=static={name}")
        print(f"cargo:rustc-link-search=native={out_dir}")
        if self.cpp and not windows:
            runtime = "c++" if sys.platform == "darwin" else "stdc++"
            print(f"cargo:rustc-link-lib={runtime}")
        return library


def init_builder() -> CxxBuild:
    """Return a C++20 builder with the default warning and debug flags."""
    builder = CxxBuild()
    builder.cpp = True
    builder.std = "c++20"
    if _is_windows():
        os.environ["VSLANG"] = "1033"
        flags = ["/EHsc", "/utf-8", "/D_CRT_SECURE_NO_WARNINGS",
                 "/D_CRT_NONSTDC_NO_WARNINGS", "/DUNICODE", "/D_UNICODE"]
    else:
        flags = ["-Wall", "-Wextra", "-Wno-unused-parameter", "-Wno-unused-result",
                 "-Wno-multichar", "-Wno-missing-field-initializers",
                 "-Wno-unknown-pragmas", "-g"]
    for flag in flags:
        builder.flag(flag)
    return builder


def build(
    projname: str,
    headers: Iterable[str],
    sources: Iterable[str],
    modify: Callable[[CxxBuild], None] | None = None,
) -> Path | None:
    """Build the project's sources, or link the Visual Studio output when run from it.

    Returns the built library path, or None when the Visual Studio library is used.
    """
    source_files = find_files(sources)
    for entry in source_files:
        print(f"cargo:rerun-if-changed={entry}")
    for entry in find_files(headers):
        print(f"cargo:rerun-if-changed={entry}")

    from_vs = bool(os.environ.get("VisualStudioDir"))
    is_debug = os.environ.get("PROFILE") == "debug"
    if from_vs:
        config = "Debug" if is_debug else "Release"
        print(f"cargo:rustc-link-arg-bins=/WHOLEARCHIVE:x64/{config}/{projname}.lib")
        print(f"cargo:rerun-if-changed=x64/{config}/{projname}.lib")
        return None

    builder = init_builder()
    builder.files(source_files)
    if modify is not None:
        modify(builder)
    return builder.compile(f"{projname}1")