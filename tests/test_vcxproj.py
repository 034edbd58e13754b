import os
import subprocess
import sys
from unittest import mock

import pytest

from vcxbuild.vcxproj import Vcxproj, compile_rc, need_build, system

PROJECT_XML = """<?xml version="1.0" encoding="utf-8"?>
<Project DefaultTargets="Build" xmlns="urn:example:build">
  <ItemDefinitionGroup Condition="'$(Configuration)|$(Platform)'=='Debug|x64'">
    <ClCompile>
      <AdditionalIncludeDirectories>..\\include;..\\third</AdditionalIncludeDirectories>
    </ClCompile>
  </ItemDefinitionGroup>
  <ItemDefinitionGroup Condition="'$(Configuration)|$(Platform)'=='Release|x64'">
    <ClCompile>
      <AdditionalIncludeDirectories>..\\release_only</AdditionalIncludeDirectories>
    </ClCompile>
  </ItemDefinitionGroup>
  <ItemGroup>
    <ClCompile Include="..\\src\\a.cpp" />
    <ClCompile Include="b.cpp" />
    <ClInclude Include="a.h" />
  </ItemGroup>
</Project>
"""


@pytest.fixture
def project(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(sys, "platform", "linux")
    (tmp_path / "proj").mkdir()
    (tmp_path / "proj" / "p.vcxproj").write_text(PROJECT_XML, encoding="utf-8")
    return "proj/p.vcxproj"


def test_it_works(monkeypatch):
    monkeypatch.setattr(sys, "platform", "linux")
    vcx = Vcxproj("../cpp_py/ctp_server/vs.proj/ctp_server_cpp.vcxproj", True)
    assert vcx.load_config() is False
    assert vcx.condition == "Debug|x64"
    assert vcx.target == "ctp_server_cpp"
    assert vcx.flags[-1] == "-O0"
    assert "ctp_server_cpp" in repr(vcx)


def test_load_debug_config(project):
    vcx = Vcxproj(project, True)
    assert vcx.load_config() is True
    assert vcx.sources == ["src/a.cpp", "proj/b.cpp"]
    assert vcx.include_dirs == ["include", "third"]
    assert vcx.target == "p"
    assert vcx.flags == [
        "-Wno-unused-parameter", "-Wno-unused-result", "-Wno-multichar",
        "-Wno-missing-field-initializers", "-g", "-O0",
    ]


def test_load_release_config(project):
    vcx = Vcxproj(project, False)
    assert vcx.load_config() is True
    assert vcx.include_dirs == ["release_only"]
    assert vcx.flags[-1] == "-O3"


def test_existing_dirs_are_kept(project, tmp_path):
    vcx = Vcxproj(project, True)
    vcx.include_dirs = ["no_such_dir", str(tmp_path)]
    vcx.lib_dirs = ["no_such_lib_dir"]
    vcx.load_config()
    assert vcx.include_dirs == [str(tmp_path), "include", "third"]
    assert vcx.lib_dirs == []


def test_symlinked_parent_keeps_dotdot(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(sys, "platform", "linux")
    (tmp_path / "real").mkdir()
    (tmp_path / "real" / "p.vcxproj").write_text(PROJECT_XML, encoding="utf-8")
    os.symlink(tmp_path / "real", tmp_path / "link")
    vcx = Vcxproj("link/p.vcxproj", True)
    assert vcx.load_config() is True
    assert vcx.sources == ["link/../src/a.cpp", "link/b.cpp"]


def test_malformed_project(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(sys, "platform", "linux")
    (tmp_path / "bad.vcxproj").write_text("<Project><ItemGroup></Project>", encoding="utf-8")
    vcx = Vcxproj("bad.vcxproj", True)
    assert vcx.load_config() is False
    assert vcx.target == "bad"


def test_windows_config(project, monkeypatch):
    monkeypatch.setattr(sys, "platform", "win32")
    monkeypatch.delenv("LOCALAPPDATA", raising=False)
    vcx = Vcxproj(project, False)
    assert vcx.load_config() is True
    assert vcx.target_fn == "proj/x64/Release/p.lib"
    assert vcx.lib_dirs == ["proj/x64/Release"]
    assert vcx.flags[0] == "/EHsc"
    assert vcx.flags[-1] == "/O2"


def test_find_lib(tmp_path, monkeypatch):
    monkeypatch.setattr(sys, "platform", "linux")
    (tmp_path / "libfoo.a").write_bytes(b"")
    vcx = Vcxproj("x.vcxproj", True)
    vcx.lib_dirs = [str(tmp_path)]
    assert vcx.find_lib("foo") is True
    assert vcx.find_lib("bar") is False
    monkeypatch.setattr(sys, "platform", "win32")
    (tmp_path / "bar.lib").write_bytes(b"")
    assert vcx.find_lib("bar") is True


def test_basename():
    assert Vcxproj("dir/sub/name.vcxproj", True).basename() == "name"
    assert Vcxproj("", True).basename() == ""


def test_need_build_missing_target(tmp_path):
    dep = tmp_path / "dep.c"
    dep.write_text("x")
    assert need_build(str(tmp_path / "out.o"), [str(dep)]) is True


def test_need_build_newer_dependency(tmp_path):
    target = tmp_path / "out.o"
    dep = tmp_path / "dep.c"
    target.write_text("x")
    dep.write_text("x")
    os.utime(target, (1000, 1000))
    os.utime(dep, (2000, 2000))
    assert need_build(target, [dep]) is True


def test_need_build_up_to_date(tmp_path, capsys):
    target = tmp_path / "out.o"
    dep = tmp_path / "dep.c"
    target.write_text("x")
    dep.write_text("x")
    os.utime(target, (2000, 2000))
    os.utime(dep, (1000, 1000))
    assert need_build(target, [dep, tmp_path / "missing.h"]) is False
    assert "Dependency file not found" in capsys.readouterr().err


def test_system_exit_code():
    assert system("exit 3") == 3
    assert system("exit 0") == 0


def test_compile_rc_off_windows(monkeypatch):
    monkeypatch.setattr(sys, "platform", "linux")
    assert compile_rc("app.rc") is True


def test_compile_rc_without_tool(tmp_path, monkeypatch):
    monkeypatch.setattr(sys, "platform", "win32")
    monkeypatch.setenv("PATH", str(tmp_path))
    assert compile_rc("app.rc") is False


def test_compile_rc_success(tmp_path, monkeypatch, capsys):
    monkeypatch.setattr(sys, "platform", "win32")
    (tmp_path / "rc.exe").write_bytes(b"")
    monkeypatch.setenv("PATH", str(tmp_path))
    monkeypatch.setenv("OUT_DIR", str(tmp_path))
    done = subprocess.CompletedProcess([], 0, b"", b"")
    with mock.patch("subprocess.run", return_value=done) as run:
        assert compile_rc("res/app.rc") is True
    out_name = f"{tmp_path}\\app.res"
    assert run.call_args.args[0] == [str(tmp_path / "rc.exe"), "/fo", out_name, "res/app.rc"]
    lines = capsys.readouterr().out.splitlines()
    assert lines == ["cargo:rerun-if-changed=res/app.rc", f"cargo:rustc-link-arg-bins={out_name}"]


def test_compile_rc_failure(tmp_path, monkeypatch):
    monkeypatch.setattr(sys, "platform", "win32")
    (tmp_path / "rc.exe").write_bytes(b"")
    monkeypatch.setenv("PATH", str(tmp_path))
    monkeypatch.setenv("OUT_DIR", str(tmp_path))
    failed = subprocess.CompletedProcess([], 1, b"bad resource", b"")
    with mock.patch("subprocess.run", return_value=failed):
        with pytest.raises(RuntimeError, match="rc.exe failed"):
            compile_rc("app.rc")