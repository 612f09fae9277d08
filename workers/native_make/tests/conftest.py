"""
Shared pytest fixtures for native_make tests.

The toolchain is replaced by small /bin/sh scripts:
  - fake compiler: appends "<compile|link> <output>" to a log, creates the
    -o output, and exits 7 when handed any source ending in bad.c
  - fake pkg-config: echoes deterministic flags, exits 5 for "missing"
  - Latin-1 compiler: prints a non-UTF-8 warning, exits with a chosen code

A real-gcc end-to-end fixture is skipped when gcc is not installed.

Tests are automatically skipped on Windows (no /bin/sh).
"""
import os
import platform
import shutil
import textwrap
import time
from dataclasses import dataclass
from pathlib import Path
from typing import List, Tuple

import pytest

from native_make.config import Settings

FAKE_CC = textwrap.dedent("""\
    #!/bin/sh
    log="{log}"
    mode=link
    fail=0
    out=""
    for arg in "$@"; do
        case "$arg" in
            -c) mode=compile ;;
            *bad.c) fail=1 ;;
        esac
    done
    while [ $# -gt 0 ]; do
        if [ "$1" = "-o" ]; then out="$2"; fi
        shift
    done
    echo "$mode $out" >> "$log"
    if [ $fail -eq 1 ]; then
        echo "bad.c:1:1: error: expected declaration" >&2
        exit 7
    fi
    : > "$out"
""")

FAKE_PKG_CONFIG = textwrap.dedent("""\
    #!/bin/sh
    if [ "$2" = "missing" ]; then
        echo "Package missing was not found" >&2
        exit 5
    fi
    case "$1" in
        --cflags) echo "-I/opt/$2/include  -DWITH_$2" ;;
        --libs) echo "-L/opt/$2/lib -l$2" ;;
    esac
""")

# Writes one Latin-1 byte (0xe9) to stderr, as a compiler quoting a
# Latin-1 source line would, then exits {code}
LATIN1_CC = textwrap.dedent("""\
    #!/bin/sh
    out=""
    while [ $# -gt 0 ]; do
        if [ "$1" = "-o" ]; then out="$2"; fi
        shift
    done
    printf 'a.c:1:1: warning: caf\\351\\n' >&2
    if [ {code} -ne 0 ]; then exit {code}; fi
    : > "$out"
""")

# Sources are dated well before any object a test build produces
PAST = time.time() - 3600


@dataclass
class FakeTool:
    path: Path
    log: Path

    def invocations(self) -> List[Tuple[str, str]]:
        """(mode, output) per call, in the order they were logged."""
        if not self.log.exists():
            return []
        rows = []
        for line in self.log.read_text().splitlines():
            mode, _, out = line.partition(" ")
            rows.append((mode, out))
        return rows

    def compiles(self) -> List[str]:
        return [out for mode, out in self.invocations() if mode == "compile"]

    def links(self) -> List[str]:
        return [out for mode, out in self.invocations() if mode == "link"]


def _write_script(path: Path, body: str) -> Path:
    path.write_text(body)
    path.chmod(0o755)
    return path


@pytest.fixture(scope="session")
def sh_ok():
    """Skip tests that need /bin/sh scripts."""
    if platform.system() == "Windows" or shutil.which("sh") is None:
        pytest.skip("fake toolchain scripts need /bin/sh")


@pytest.fixture
def fake_cc(tmp_path_factory, sh_ok) -> FakeTool:
    d = tmp_path_factory.mktemp("fake_cc")
    log = d / "cc.log"
    script = _write_script(d / "fake-cc", FAKE_CC.format(log=log))
    return FakeTool(path=script, log=log)


@pytest.fixture
def latin1_cc(tmp_path_factory, sh_ok):
    """Factory: a compiler with non-UTF-8 diagnostics that exits *code*."""
    def _make(code: int = 0) -> Path:
        d = tmp_path_factory.mktemp("latin1_cc")
        return _write_script(d / "latin1-cc", LATIN1_CC.format(code=code))
    return _make


@pytest.fixture
def fake_pkg_config(tmp_path_factory, sh_ok) -> Path:
    d = tmp_path_factory.mktemp("fake_pkg_config")
    return _write_script(d / "fake-pkg-config", FAKE_PKG_CONFIG)


@pytest.fixture
def settings(fake_cc, fake_pkg_config) -> Settings:
    """Settings pointing at the fake toolchain."""
    return Settings(
        CC=str(fake_cc.path),
        CXX=None,
        PKG_CONFIG=str(fake_pkg_config),
        NATIVE_MAKE_JOBS=4,
    )


def _touch(path: Path, content: str = "", mtime: float = PAST) -> Path:
    """Create *path* with *content* and set both timestamps to *mtime*."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    os.utime(path, (mtime, mtime))
    return path


@pytest.fixture
def touch():
    """Factory: create a file with a fixed (default: past) mtime."""
    return _touch


@pytest.fixture
def workspace(tmp_path, monkeypatch) -> Path:
    """
    A project directory used as cwd:
        a.c              foreign object source
        main.zz          emitter input
        helper.zz        emitter input
        gen/main.c       generated translation unit
    """
    monkeypatch.chdir(tmp_path)
    _touch(tmp_path / "a.c", "int helper_value(void) { return 42; }\n")
    _touch(tmp_path / "main.zz", "fn main() -> int { return helper_value() == 42 ? 0 : 1; }\n")
    _touch(tmp_path / "helper.zz", "extern fn helper_value() -> int;\n")
    _touch(
        tmp_path / "gen" / "main.c",
        "int helper_value(void);\n"
        "int main(void) { return helper_value() == 42 ? 0 : 1; }\n",
    )
    return tmp_path


@pytest.fixture(scope="session")
def gcc_ok():
    """Skip tests if gcc is not available."""
    if shutil.which("gcc") is None:
        pytest.skip("gcc not available - install gcc to run these tests")
    if platform.system() == "Windows":
        pytest.skip("end-to-end build expects a POSIX toolchain")
