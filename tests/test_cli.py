"""End-to-end tests for the protocol-compiler command line.

WHY: The CLI is how editors and build scripts drive the compiler. Its
exit status and its per-unit error lines are the contract they rely
on, and a failing unit must not stop the others.

HOW: Calls cli.main() with an explicit argv and catches SystemExit.
Standard input is replaced with a binary-backed TextIOWrapper so
sys.stdin.buffer works. Status output is read from stderr via capsys.

RULES:
- Every run passes --outdir or writes beside inputs under tmp_path
"""

import hashlib
import io
import json
import sys

import pytest

from protocol_compiler import cli
from protocol_compiler.config import SOURCE_SUFFIX


def run_cli(argv):
    with pytest.raises(SystemExit) as exc:
        cli.main(argv)
    return exc.value.code


def write_protocol(directory, stem, name):
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / f"{stem}{SOURCE_SUFFIX}"
    path.write_bytes(f"protocol {name}\n\nSteps {{\n\tmix()\n}}\n".encode())
    return path


@pytest.fixture
def stdin(monkeypatch):
    """Replace standard input with the given bytes."""
    def feed(data):
        monkeypatch.setattr(sys, "stdin", io.TextIOWrapper(io.BytesIO(data)))
    return feed


class TestFiles:
    """Compiling files and directories."""

    def test_single_file(self, sample_protocol_file, sample_protocol_go, tmp_path, capsys):
        out = tmp_path / "out"
        assert run_cli([str(sample_protocol_file), "--outdir", str(out)]) == 0
        assert (out / "Aliquot_.go").read_bytes() == sample_protocol_go
        err = capsys.readouterr().err
        assert "Compiled: " in err
        assert "Done! 1 compiled, 0 failed." in err

    def test_default_outdir_is_input_directory(self, sample_protocol_file):
        assert run_cli([str(sample_protocol_file)]) == 0
        assert (sample_protocol_file.parent / "Aliquot_.go").is_file()

    def test_directory_walk(self, tmp_path):
        elements = tmp_path / "elements"
        write_protocol(elements / "a", "one", "One")
        write_protocol(elements / "b" / "deep", "two", "Two")
        (elements / "notes.txt").write_text("protocol Ignored\n")
        out = tmp_path / "out"
        assert run_cli([str(elements), "--outdir", str(out)]) == 0
        assert sorted(p.name for p in out.iterdir()) == ["One_.go", "Two_.go"]

    def test_empty_directory(self, tmp_path, capsys):
        assert run_cli([str(tmp_path)]) == 0
        assert f"No {SOURCE_SUFFIX} files found." in capsys.readouterr().err

    def test_missing_path(self, tmp_path, capsys):
        assert run_cli([str(tmp_path / "nope.an")]) == 1
        assert "Error: No such file or directory" in capsys.readouterr().err

    def test_output_package(self, sample_protocol_file, tmp_path):
        out = tmp_path / "out"
        assert run_cli([str(sample_protocol_file), "--outdir", str(out), "--output-package", "elements"]) == 0
        assert (out / "Aliquot_.go").read_bytes().startswith(b"package elements\n")

    def test_parallel_jobs(self, tmp_path):
        src = tmp_path / "src"
        names = ["Mix", "Dilute", "Transfer", "Aliquot", "Incubate"]
        for name in names:
            write_protocol(src, name.lower(), name)
        out = tmp_path / "out"
        assert run_cli([str(src), "--outdir", str(out), "--jobs", "3"]) == 0
        assert sorted(p.name for p in out.iterdir()) == sorted(f"{n}_.go" for n in names)


class TestFailures:
    """One failing unit is reported and the run continues."""

    def test_failure_does_not_stop_others(self, tmp_path, capsys):
        src = tmp_path / "src"
        src.mkdir()
        bad = src / f"bad{SOURCE_SUFFIX}"
        bad.write_bytes(b"x := 1\n")
        write_protocol(src, "good", "Good")
        out = tmp_path / "out"
        assert run_cli([str(src), "--outdir", str(out)]) == 1
        assert (out / "Good_.go").is_file()
        err = capsys.readouterr().err
        assert f"error processing file: {bad}: {bad}:1:1: expected 'protocol', found 'x'" in err
        assert "Done! 1 compiled, 1 failed." in err

    def test_package_unit(self, tmp_path, sample_package, capsys):
        path = tmp_path / f"util{SOURCE_SUFFIX}"
        path.write_bytes(sample_package)
        assert run_cli([str(path)]) == 1
        assert "not a protocol file" in capsys.readouterr().err
        assert list(tmp_path.iterdir()) == [path]

    def test_existing_destination(self, sample_protocol_file, tmp_path, capsys):
        out = tmp_path / "out"
        out.mkdir()
        (out / "Aliquot_.go").write_bytes(b"keep")
        assert run_cli([str(sample_protocol_file), "--outdir", str(out)]) == 1
        assert (out / "Aliquot_.go").read_bytes() == b"keep"
        assert "destination already exists" in capsys.readouterr().err

    def test_invalid_jobs_argument(self, sample_protocol_file):
        assert run_cli([str(sample_protocol_file), "--jobs", "0"]) == 2

    def test_invalid_tab_width_environment(self, sample_protocol_file, monkeypatch, capsys):
        monkeypatch.setenv("PROTOCOL_TAB_WIDTH", "wide")
        assert run_cli([str(sample_protocol_file)]) == 1
        assert "PROTOCOL_TAB_WIDTH must be an integer" in capsys.readouterr().err
        assert not (sample_protocol_file.parent / "Aliquot_.go").exists()


class TestStandardInput:
    """Standard input is one interactive unit; fragments are accepted."""

    def test_statement_fragment(self, stdin, tmp_path):
        stdin(b"x := 1\ny := 2")
        assert run_cli(["--outdir", str(tmp_path)]) == 0
        assert (tmp_path / "p_.go").read_bytes() == b"x := 1\ny := 2"

    def test_dash(self, stdin, tmp_path):
        stdin(b"\n\tvar n = 3\n")
        assert run_cli(["-", "--outdir", str(tmp_path)]) == 0
        assert (tmp_path / "p_.go").read_bytes() == b"\n\tvar n = 3\n"

    def test_full_unit(self, stdin, sample_protocol, sample_protocol_go, tmp_path):
        stdin(sample_protocol)
        assert run_cli(["--outdir", str(tmp_path)]) == 0
        assert (tmp_path / "Aliquot_.go").read_bytes() == sample_protocol_go

    def test_syntax_error(self, stdin, tmp_path, capsys):
        stdin(b"x := 1\ny := )\n")
        assert run_cli(["--outdir", str(tmp_path)]) == 1
        err = capsys.readouterr().err
        assert "error processing file: <standard input>: <standard input>:2:6: " in err
        assert list(tmp_path.iterdir()) == []


class TestManifest:
    """--manifest writes a report of every generated file."""

    def test_manifest(self, sample_protocol_file, tmp_path):
        out = tmp_path / "out"
        manifest = tmp_path / "manifest.json"
        args = [str(sample_protocol_file), "--outdir", str(out), "--manifest", str(manifest)]
        assert run_cli(args) == 0
        data = json.loads(manifest.read_text(encoding="utf-8"))
        assert data["version"] == 1
        (entry,) = data["results"]
        assert entry["protocol"] == "Aliquot"
        assert entry["grammar_level"] == "full_unit"
        assert entry["destination"] == (out / "Aliquot_.go").as_posix()
        assert entry["source_sha256"] == hashlib.sha256(sample_protocol_file.read_bytes()).hexdigest()

    def test_manifest_lists_only_successes(self, tmp_path):
        src = tmp_path / "src"
        write_protocol(src, "good", "Good")
        (src / f"bad{SOURCE_SUFFIX}").write_bytes(b"protocol\n")
        manifest = tmp_path / "manifest.json"
        assert run_cli([str(src), "--outdir", str(tmp_path / "out"), "--manifest", str(manifest)]) == 1
        data = json.loads(manifest.read_text(encoding="utf-8"))
        assert [r["protocol"] for r in data["results"]] == ["Good"]
