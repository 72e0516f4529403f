import pytest

from qnnconv.util.fs import find_files, find_first, human_size
from qnnconv.util.processes import render_argv, tool_argv


def test_find_first_is_lexicographic(tmp_path):
    (tmp_path / "z").mkdir()
    (tmp_path / "z" / "a.bin").write_bytes(b"1")
    (tmp_path / "b.bin").write_bytes(b"1")
    (tmp_path / "a.bin").write_bytes(b"1")
    (tmp_path / "c.cpp").write_text("x")
    assert find_first(tmp_path, "*.bin") == tmp_path / "a.bin"
    assert [p.name for p in find_files(tmp_path, "*.bin")] == ["a.bin", "b.bin", "a.bin"]


def test_find_first_ignores_directories_and_missing_roots(tmp_path):
    (tmp_path / "dir.so").mkdir()
    assert find_first(tmp_path, "*.so") is None
    assert find_first(tmp_path / "missing", "*.so") is None


@pytest.mark.parametrize(
    "n, expected",
    [
        (0, "0B"),
        (512, "512B"),
        (1536, "1.5K"),
        (4096, "4.0K"),
        (10 * 1024 * 1024, "10M"),
        (3 * 1024 ** 3, "3.0G"),
        (2048 * 1024 ** 5, "2048P"),
    ],
)
def test_human_size(n, expected):
    assert human_size(n) == expected


def test_render_argv_quotes_spaces():
    assert render_argv(["tool", "--input_network", "my model.onnx"]) == "tool --input_network 'my model.onnx'"


def test_tool_argv_falls_back_to_shebang(tmp_path):
    script = tmp_path / "tool"
    script.write_text("#!/usr/bin/env python3\nprint('hi')\n")
    script.chmod(0o644)
    assert tool_argv(script) == ["/usr/bin/env", "python3", str(script)]
    script.chmod(0o755)
    assert tool_argv(script) == [str(script)]
