# vcxbuild

Helpers for build scripts that compile C and C++ code described by a
Visual Studio `.vcxproj` project, or collected with glob patterns. The
helpers that report build inputs and link settings print `cargo:` directive
lines on standard output.

## Installation

```
pip install vcxbuild
```

## Reading a project

`vcxbuild.vcxproj.Vcxproj` reads the `ClCompile` source files and the
`AdditionalIncludeDirectories` of the chosen configuration (`Debug|x64` or
`Release|x64`) from a project file. Relative paths in the project are
resolved against the project file's directory; absolute paths are left out.

```python
from vcxbuild.vcxproj import Vcxproj

proj = Vcxproj("native/vs.proj/engine.vcxproj", is_debug=True)
ok = proj.load_config()

print(proj.target)        # "engine"
print(proj.sources)       # e.g. ["native/src/engine.cpp", ...]
print(proj.include_dirs)  # include directories for Debug|x64
print(proj.flags)         # default compiler flags for the platform
print(proj.find_lib("zlib"))
```

Before loading, `load_config` drops any entries of `include_dirs` and
`lib_dirs` that are not existing directories, so callers may seed both
lists with extra directories. It returns `False` if the project file could
not be read or parsed; the flags, target name and library directories are
filled in either way.

- Flags: MSVC-style flags (`/EHsc`, `/utf-8`, `/Zi`, `/W3`, ... plus `/Od` or
  `/O2`) on Windows; `-Wno-...` warning flags, `-g` and `-O0` or `-O3`
  elsewhere.
- On Windows, `target_fn` is set to `<project dir>/x64/<Debug|Release>/<target>.lib`
  and that directory is added to `lib_dirs`.
- On Windows, include and library directories from a vcpkg installation
  (found through `%LOCALAPPDATA%\vcpkg\vcpkg.path.txt`) are added as well.
  The same lookups are available directly as `vcxbuild.vcpkg.base_path()`,
  `lib_paths(is_debug)` and `include_paths()`; off Windows they find nothing.

`find_lib(name)` looks for `<name>.lib` (Windows) or `lib<name>.a` in each
of `lib_dirs`.

## Rebuilding only when needed

```python
from vcxbuild.vcxproj import need_build, system

if need_build("out/engine.lib", ["src/a.cpp", "src/b.cpp"]):
    system("make engine")
```

`need_build` is true when the target is missing or any dependency is
newer than it; a missing dependency prints a warning to standard error and
is otherwise ignored. `system` runs a command line through the platform
shell (`cmd /C` or `sh -c`) and returns its exit status.

## Resource scripts

`vcxbuild.vcxproj.compile_rc(src)` compiles a Windows resource script with
`rc.exe` found on `PATH`, writing `<stem>.res` into `OUT_DIR`, and prints the
directives that link it into binaries. It returns `False` when `rc.exe` or
`OUT_DIR` is not available and raises `RuntimeError` if `rc.exe` fails. On
other platforms it does nothing and returns `True`.

## Building from glob patterns

`vcxbuild.sample_builder.build` collects sources and headers from glob
patterns (a pattern starting with `-` removes its matches), prints them as
`cargo:rerun-if-changed` lines, and compiles the sources into a static
library named `<projname>1` with `CxxBuild`. A `modify` callable may add
flags or files before compiling.

```python
from vcxbuild.sample_builder import build

library = build(
    "engine",
    headers=["src/*.h"],
    sources=["src/*.cpp", "-src/test_*.cpp"],
    modify=lambda b: b.flag("-DNDEBUG"),
)
```

When the `VisualStudioDir` environment variable is set, nothing is
compiled: `build` instead prints a directive to link
`x64/<Debug|Release>/<projname>.lib` (chosen by `PROFILE`) as a whole archive
and returns `None`.

`CxxBuild.compile(name)` needs `OUT_DIR` to be set. It compiles each source
with `$CXX`/`$CC` (default `c++`/`cc`, or `cl.exe` on Windows), archives the
objects with `$AR` (default `ar`, or `lib.exe` on Windows) into
`lib<name>.a` or `<name>.lib`, prints the link directives and returns the
library path. A failing compiler or archiver raises `RuntimeError`.

`find_files(patterns)` and `init_builder()` (a C++20 `CxxBuild` with the
default warning and debug flags) are available on their own for custom
builds.

## What this package does not do

It has no command-line program; everything is used by importing it from a
build script. It reads only source files and include directories from a
project file, not preprocessor definitions, library dependencies or other
compiler settings, and it only supports the `x64` platform configurations.