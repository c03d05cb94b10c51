import io
import sys

from xv6sim.wc import WordCount, count, main


def test_count_simple():
    assert count(io.BytesIO(b"hello world\n")) == WordCount(1, 2, 12)


def test_count_empty():
    assert count(io.BytesIO(b"")) == WordCount(0, 0, 0)


def test_count_invariants():
    data = b"one  two\nthree\tfour\r\n\vfive six\n" * 50
    result = count(io.BytesIO(data))
    assert result.chars == len(data)
    assert result.lines == data.count(b"\n")
    assert result.words == len(data.split())


def test_word_across_chunk_boundary():
    data = b"a" * 1000
    result = count(io.BytesIO(data))
    assert result.words == 1
    assert result.chars == len(data)
    assert result.lines == 0


def test_nul_is_part_of_word():
    result = count(io.BytesIO(b"a\0b c"))
    assert result.words == 2


def test_format():
    assert WordCount(3, 4, 5).format("f") == "3 4 5 f"


def test_main_files(tmp_path, capsys):
    first = tmp_path / "a.txt"
    second = tmp_path / "b.txt"
    first.write_bytes(b"x y\nz\n")
    second.write_bytes(b"")
    assert main([str(first), str(second)]) == 0
    out = capsys.readouterr().out.splitlines()
    assert out == [
        count(io.BytesIO(b"x y\nz\n")).format(str(first)),
        count(io.BytesIO(b"")).format(str(second)),
    ]


def test_main_missing_file(tmp_path, capsys):
    missing = tmp_path / "nope"
    assert main([str(missing)]) == 1
    assert capsys.readouterr().out == f"wc: cannot open {missing}\n"


def test_main_stdin(monkeypatch, capsys):
    data = b"alpha beta\ngamma\n"
    monkeypatch.setattr(sys, "stdin", io.TextIOWrapper(io.BytesIO(data)))
    assert main([]) == 0
    assert capsys.readouterr().out == count(io.BytesIO(data)).format("") + "\n"