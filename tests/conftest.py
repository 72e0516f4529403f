import json
import sys
import textwrap
from dataclasses import dataclass
from pathlib import Path

import pytest


_CONVERTER = """
import json
import sys
from pathlib import Path

argv = sys.argv[1:]
with open(CALLS, "a", encoding="utf-8") as f:
    f.write(json.dumps({"tool": "converter", "argv": argv}) + "\\n")

def opt(name):
    return argv[argv.index(name) + 1] if name in argv else None

overrides = opt("--quantization_overrides")
if overrides:
    Path(SEEN).write_text(Path(overrides).read_text(encoding="utf-8"), encoding="utf-8")

out = Path(opt("--output_path"))
if RC == 0:
    if WRITE_CPP:
        out.write_text("// generated model\\n", encoding="utf-8")
    for name in BINS:
        (out.parent / name).write_bytes(b"\\0" * 64)
sys.exit(RC)
"""

_GENERATOR = """
import json
import sys
from pathlib import Path

argv = sys.argv[1:]
with open(CALLS, "a", encoding="utf-8") as f:
    f.write(json.dumps({"tool": "generator", "argv": argv}) + "\\n")

def opt(name):
    return argv[argv.index(name) + 1] if name in argv else None

if RC == 0 and LIB is not None:
    lib = Path(opt("-o")) / LIB.format(target=opt("-t"))
    lib.parent.mkdir(parents=True, exist_ok=True)
    lib.write_bytes(b"\\0" * 4096)
sys.exit(RC)
"""


def write_tool(path: Path, body: str, **consts) -> Path:
    header = "".join(f"{k} = {v!r}\n" for k, v in consts.items())
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(f"#!{sys.executable}\n" + header + textwrap.dedent(body), encoding="utf-8")
    path.chmod(0o755)
    return path


@dataclass
class FakeSdk:
    root: Path
    calls_file: Path
    seen_overrides: Path

    @property
    def bin_dir(self) -> Path:
        return self.root / "bin" / "x86_64-linux-clang"

    @property
    def converter(self) -> Path:
        return self.bin_dir / "qnn-onnx-converter"

    @property
    def generator(self) -> Path:
        return self.bin_dir / "qnn-model-lib-generator"

    def calls(self) -> list[dict]:
        if not self.calls_file.is_file():
            return []
        return [json.loads(line) for line in self.calls_file.read_text(encoding="utf-8").splitlines() if line]

    def tools_called(self) -> list[str]:
        return [c["tool"] for c in self.calls()]

    def argv_of(self, tool: str) -> list[str]:
        for c in self.calls():
            if c["tool"] == tool:
                return c["argv"]
        raise AssertionError(f"{tool} was not invoked")

    def overrides_seen(self) -> dict:
        return json.loads(self.seen_overrides.read_text(encoding="utf-8"))


@pytest.fixture
def make_sdk(tmp_path):
    def _make(
        *,
        converter_rc: int = 0,
        write_cpp: bool = True,
        bins: tuple[str, ...] = ("qnn_model.bin",),
        generator_rc: int = 0,
        lib: str | None = "{target}/libqnn_model.so",
    ) -> FakeSdk:
        sdk = FakeSdk(
            root=tmp_path / "sdk",
            calls_file=tmp_path / "calls.jsonl",
            seen_overrides=tmp_path / "overrides_seen.json",
        )
        write_tool(
            sdk.converter,
            _CONVERTER,
            CALLS=str(sdk.calls_file),
            SEEN=str(sdk.seen_overrides),
            RC=converter_rc,
            WRITE_CPP=write_cpp,
            BINS=list(bins),
        )
        write_tool(sdk.generator, _GENERATOR, CALLS=str(sdk.calls_file), RC=generator_rc, LIB=lib)
        return sdk

    return _make


@pytest.fixture
def model(tmp_path) -> Path:
    p = tmp_path / "model.onnx"
    p.write_bytes(b"onnx")
    return p


@pytest.fixture
def overrides_tmp(tmp_path) -> Path:
    d = tmp_path / "tmp"
    d.mkdir()
    return d
