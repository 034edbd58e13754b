"""Read sources and include directories from a Visual Studio .vcxproj file."""

from __future__ import annotations

import os
import re
import subprocess
import sys
import xml.sax
import xml.sax.handler
from collections.abc import Iterable
from pathlib import Path, PureWindowsPath

from vcxbuild import vcpkg

_SEPARATORS = re.compile(r"[/\\]")
_SOURCES_PATH = "Project/ItemGroup/ClCompile"
_DEFINITION_GROUP_PATH = "Project/ItemDefinitionGroup"
_INCLUDE_DIRS_PATH = "Project/ItemDefinitionGroup/ClCompile/AdditionalIncludeDirectories"

_WINDOWS_FLAGS = (
    "/EHsc", "/utf-8", "/D_CRT_SECURE_NO_WARNINGS", "/D_CRT_NONSTDC_NO_WARNINGS",
    "/DUNICODE", "/D_UNICODE", "/Zi", "/FS", "/W3",
)
_POSIX_FLAGS = (
    "-Wno-unused-parameter", "-Wno-unused-result", "-Wno-multichar",
    "-Wno-missing-field-initializers", "-g",
)


def _is_windows() -> bool:
    return sys.platform.startswith("win")


def system(command_line: str) -> int:
    """Run a command line through the platform shell and return its exit code."""
    shell, flag = ("cmd", "/C") if _is_windows() else ("sh", "-c")
    return subprocess.run([shell, flag, command_line]).returncode


def need_build(target: str | os.PathLike, deps: Iterable[str | os.PathLike]) -> bool:
    """Tell whether target is missing or older than any existing dependency."""
    try:
        target_time = os.stat(target).st_mtime_ns
    except OSError:
        return True
    for dep in deps:
        try:
            dep_time = os.stat(dep).st_mtime_ns
        except OSError:
            print(f"Warning: Dependency file not found: {str(dep)!r}", file=sys.stderr)
            continue
        if dep_time > target_time:
            return True
    return False


def _attribute(attrs, local_name: str) -> str | None:
    for (_, name), value in attrs.items():
        if name == local_name:
            return value
    return None


class _ProjectHandler(xml.sax.handler.ContentHandler):
    def __init__(self, project: Vcxproj) -> None:
        super().__init__()
        self._project = project
        self._path: list[str] = []
        self._skip: list[bool] = []
        self._current = ""
        self._text: list[str] = []

    def _flush_text(self) -> None:
        if not self._text:
            return
        text = "".join(self._text)
        self._text.clear()
        if not text.strip():
            return
        if not any(self._skip) and self._current == _INCLUDE_DIRS_PATH:
            for part in text.split(";"):
                resolved = self._project._rela_path(part)
                if resolved is not None:
                    self._project.include_dirs.append(resolved)

    def startElementNS(self, name, qname, attrs) -> None:
        self._flush_text()
        self._path.append(name[1])
        self._skip.append(False)
        self._current = "/".join(self._path)
        if self._current == _SOURCES_PATH:
            include = _attribute(attrs, "Include")
            if include is not None:
                resolved = self._project._rela_path(include)
                if resolved is not None:
                    self._project.sources.append(resolved)
        elif self._current == _DEFINITION_GROUP_PATH:
            condition = _attribute(attrs, "Condition")
            if condition is not None and self._project.condition not in condition:
                self._skip[-1] = True

    def endElementNS(self, name, qname) -> None:
        self._flush_text()
        self._path.pop()
        self._skip.pop()

    def characters(self, content: str) -> None:
        self._text.append(content)


class Vcxproj:
    """Build settings gathered from a .vcxproj file and the local toolchain."""

    def __init__(self, lib_proj: str, is_debug: bool) -> None:
        self.lib_proj = lib_proj
        self.condition = "Debug|x64" if is_debug else "Release|x64"
        self.include_dirs: list[str] = []
        self.lib_dirs: list[str] = []
        self.sources: list[str] = []
        self.flags: list[str] = []
        self.target = ""
        self.target_fn = ""

    def __repr__(self) -> str:
        fields = ", ".join(f"{key}={value!r}" for key, value in vars(self).items())
        return f"Vcxproj({fields})"

    def _rela_path(self, path: str) -> str | None:
        if not path or Path(path).is_absolute():
            return None
        items = _SEPARATORS.split(self.lib_proj)[:-1] + _SEPARATORS.split(path)
        stack: list[str] = []
        for item in items:
            if item in ("", "."):
                continue
            if item == "..":
                if not stack or stack[-1] == ".." or Path("/".join(stack)).is_symlink():
                    stack.append(item)
                else:
                    stack.pop()
            else:
                stack.append(item)
        return "/".join(stack) if stack else None

    def _load_vcxproj(self) -> None:
        parser = xml.sax.make_parser()
        parser.setFeature(xml.sax.handler.feature_namespaces, True)
        parser.setFeature(xml.sax.handler.feature_external_ges, False)
        parser.setContentHandler(_ProjectHandler(self))
        with open(self.lib_proj, "rb") as stream:
            parser.parse(stream)

    def basename(self) -> str:
        """Return the project file name without its extension."""
        return Path(self.lib_proj).stem

    def find_lib(self, name: str) -> bool:
        """Tell whether a static library of this name lies in one of lib_dirs."""
        file_name = f"{name}.lib" if _is_windows() else f"lib{name}.a"
        return any(Path(f"{directory}/{file_name}").is_file() for directory in self.lib_dirs)

    def load_config(self) -> bool:
        """Load the project file and fill in paths, target and flags.

        Returns False when the project file could not be read or parsed; the
        remaining settings are filled in either way.
        """
        self.include_dirs = [d for d in self.include_dirs if Path(d).is_dir()]
        self.lib_dirs = [d for d in self.lib_dirs if Path(d).is_dir()]
        try:
            self._load_vcxproj()
            loaded = True
        except (OSError, xml.sax.SAXException):
            loaded = False
        is_debug = "Debug" in self.condition
        self.lib_dirs.extend(vcpkg.lib_paths(is_debug))
        self.include_dirs.extend(vcpkg.include_paths())
        self.target = self.basename()
        if _is_windows():
            flags = list(_WINDOWS_FLAGS)
            config = "Debug" if is_debug else "Release"
            target_dir = self._rela_path(f"x64/{config}") or ""
            self.target_fn = f"{target_dir}/{self.target}.lib"
            self.lib_dirs.append(target_dir)
            flags.append("/Od" if is_debug else "/O2")
        else:
            flags = list(_POSIX_FLAGS)
            flags.append("-O0" if is_debug else "-O3")
        self.flags.extend(flags)
        return loaded


def _find_rc() -> str | None:
    for entry in os.environ.get("PATH", "").split(";"):
        candidate = Path(entry) / "rc.exe"
        if candidate.is_file():
            return str(candidate)
    return None


def compile_rc(src: str) -> bool:
    """Compile a Windows resource script and emit the cargo link directives.

    Off Windows nothing is done and True is returned. On Windows, False is
    returned when rc.exe or OUT_DIR is unavailable; a failing rc.exe raises
    RuntimeError.
    """
    if not _is_windows():
        return True
    rc = _find_rc()
    if rc is None:
        return False
    out_dir = os.environ.get("OUT_DIR")
    stem = PureWindowsPath(src).stem
    if out_dir is None or not stem:
        return False
    out_name = f"{out_dir}\\{stem}.res"
    try:
        result = subprocess.run([rc, "/fo", out_name, src], capture_output=True)
    except OSError as exc:
        raise RuntimeError(f"Failed to run rc.exe: {exc}") from exc
    if result.returncode != 0:
        output = result.stdout.decode(errors="replace")
        raise RuntimeError(f"rc.exe failed with status: {result.returncode} {output}")
    print(f"cargo:rerun-if-changed={src}")
    print(f"cargo:rustc-link-arg-bins={out_name}")
    return True