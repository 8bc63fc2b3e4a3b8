"""Tests for the seqlen command line"""

import json

import pytest

from conftest import fastq_text, write_text
from seqlen import __version__
from seqlen.cli import build_parser, main


def run_cli(argv, capsys):
    assert main([str(a) for a in argv]) == 0
    return capsys.readouterr()


# =============================================================================
# Argument parsing
# =============================================================================

def test_parser_defaults():
    args = build_parser().parse_args(["reads.fq"])
    assert args.format is None
    assert args.percentiles is None
    assert args.output is None
    assert args.save_lengths is None
    assert args.sort_lengths is None
    assert not args.verbose


def test_parser_repeated_n_score():
    args = build_parser().parse_args(["reads.fq", "-n", "10", "--n-score", "90"])
    assert args.percentiles == [10, 90]


def test_parser_rejects_unknown_format():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["reads.fq", "--format", "genbank"])


def test_version(capsys):
    with pytest.raises(SystemExit) as exc_info:
        main(["--version"])
    assert exc_info.value.code == 0
    assert __version__ in capsys.readouterr().out


# =============================================================================
# Runs
# =============================================================================

def test_stats_to_stdout(fastq_file, capsys):
    captured = run_cli([fastq_file], capsys)
    data = json.loads(captured.out)
    assert data == {
        "total_bases": 15,
        "total_sequences": 5,
        "mean_length": 3.0,
        "median_length": 3.0,
        "n50": 4,
        "n75": 3,
        "n90": 2,
    }


def test_stats_to_file(fastq_gz_file, tmp_path, capsys):
    out = tmp_path / "stats.json"
    captured = run_cli([fastq_gz_file, "-o", out], capsys)
    assert captured.out == ""
    assert json.loads(out.read_text())["n50"] == 4


def test_custom_n_scores(fasta_file, capsys):
    data = json.loads(run_cli([fasta_file, "-n", "90", "-n", "10"], capsys).out)
    assert [k for k in data if k.startswith("n")] == ["n10", "n90"]
    assert data["n10"] == 1000


def test_save_lengths(tmp_path, capsys):
    path = write_text(tmp_path / "reads.fq", fastq_text([30, 10, 20]))
    lengths = tmp_path / "lengths.json"
    run_cli([path, "--save-lengths", lengths], capsys)
    assert json.loads(lengths.read_text()) == [30, 10, 20]


def test_save_sorted_lengths(tmp_path, capsys):
    path = write_text(tmp_path / "reads.fq", fastq_text([30, 10, 20]))
    lengths = tmp_path / "lengths.json"
    run_cli([path, "-l", lengths, "--sort-lengths"], capsys)
    assert json.loads(lengths.read_text()) == [10, 20, 30]


def test_explicit_format(tmp_path, capsys):
    path = write_text(tmp_path / "reads.txt", fastq_text([4, 4]))
    data = json.loads(run_cli([path, "--format", "fastq"], capsys).out)
    assert data["total_bases"] == 8


def test_unaligned_bam(unaligned_bam, capsys):
    data = json.loads(run_cli([unaligned_bam, "-n", "50"], capsys).out)
    assert data["total_sequences"] == 8
    assert data["n50"] == 3


def test_verbose_logs_to_stderr(fastq_file, capsys):
    captured = run_cli([fastq_file, "-v"], capsys)
    assert "Loading file" in captured.err
    assert json.loads(captured.out)["total_sequences"] == 5


def test_log_file(fastq_file, tmp_path, capsys):
    log_file = tmp_path / "logs" / "run.log"
    run_cli([fastq_file, "--log-file", log_file], capsys)
    assert "Finished loading 5 sequences" in log_file.read_text()


# =============================================================================
# Configuration
# =============================================================================

def test_config_file(fastq_file, tmp_path, capsys):
    config = tmp_path / "seqlen.yaml"
    config.write_text("stats:\n  percentiles: [10]\noutput:\n  indent: 4\n")
    captured = run_cli([fastq_file, "--config", config], capsys)
    assert '\n    "total_bases": 15' in captured.out
    assert [k for k in json.loads(captured.out) if k.startswith("n")] == ["n10"]


def test_flags_beat_environment(fastq_file, monkeypatch, capsys):
    monkeypatch.setenv("SEQLEN_STATS_PERCENTILES", "10,20")
    data = json.loads(run_cli([fastq_file], capsys).out)
    assert "n10" in data and "n20" in data

    data = json.loads(run_cli([fastq_file, "-n", "90"], capsys).out)
    assert [k for k in data if k.startswith("n")] == ["n90"]


def test_user_config_file(fastq_file, tmp_path, capsys):
    user_dir = tmp_path / "xdg" / "seqlen"
    user_dir.mkdir(parents=True)
    (user_dir / "config.yaml").write_text("stats:\n  percentiles: [75]\n")
    data = json.loads(run_cli([fastq_file], capsys).out)
    assert [k for k in data if k.startswith("n")] == ["n75"]


# =============================================================================
# Failures
# =============================================================================

def expect_failure(argv, capsys):
    with pytest.raises(SystemExit) as exc_info:
        main([str(a) for a in argv])
    assert exc_info.value.code == 1
    captured = capsys.readouterr()
    assert captured.out == ""
    return captured.err


def test_missing_input(tmp_path, capsys):
    err = expect_failure([tmp_path / "missing.fq"], capsys)
    assert "IO_FAILURE" in err


def test_malformed_input(tmp_path, capsys):
    path = write_text(tmp_path / "bad.fastq", "@r1\nACGT\n+\nII\n")
    err = expect_failure([path], capsys)
    assert "MALFORMED_RECORD" in err


def test_empty_input(tmp_path, capsys):
    path = write_text(tmp_path / "empty.fa", "")
    err = expect_failure([path], capsys)
    assert "EMPTY_INPUT" in err


def test_invalid_percentile(fastq_file, capsys):
    err = expect_failure([fastq_file, "-n", "0"], capsys)
    assert "VALIDATION_ERROR" in err


def test_missing_config_file(fastq_file, tmp_path, capsys):
    err = expect_failure([fastq_file, "--config", tmp_path / "nope.yaml"], capsys)
    assert "CONFIG_ERROR" in err


def test_failure_leaves_no_output_file(tmp_path, capsys):
    path = write_text(tmp_path / "bad.fastq", "@r1\nACGT\n")
    out = tmp_path / "stats.json"
    expect_failure([path, "-o", out], capsys)
    assert not out.exists()


@pytest.mark.parametrize("variable, value", [
    ("SEQLEN_COLLECTOR_PROGRESS_INTERVAL", "often"),
    ("SEQLEN_COLLECTOR_PROGRESS_INTERVAL", "-5"),
    ("SEQLEN_OUTPUT_INDENT", "wide"),
])
def test_bad_environment_setting(fastq_file, monkeypatch, capsys, variable, value):
    """A malformed setting is a clean error, not a traceback or broken JSON"""
    monkeypatch.setenv(variable, value)
    err = expect_failure([fastq_file], capsys)
    assert "[VALIDATION_ERROR]" in err


def test_bad_config_file_setting(fastq_file, tmp_path, capsys):
    config = tmp_path / "seqlen.yaml"
    config.write_text("output:\n  indent: 1.5\n")
    err = expect_failure([fastq_file, "--config", config], capsys)
    assert "[VALIDATION_ERROR]" in err
    assert "output.indent" in err
