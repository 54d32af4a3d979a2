# tests/test_run_analysis.py

"""
Tests for the analysis CLI entrypoint. The pipeline factory is
monkeypatched so no provider key or real PDF is needed.
"""

import json
from pathlib import Path

import pytest

import src.run_analysis as run_analysis
from src.classroom_ai.errors import MalformedResponseError
from src.classroom_ai.models import ChunkAnalysisResult
from src.classroom_ai.pipeline import AnalysisPipeline


class FakeAnalyzer:
    def __init__(self, fail=False):
        self.fail = fail

    async def analyze_chunk(self, chunk, retries_remaining=None):
        if self.fail:
            raise MalformedResponseError("bad json")
        return ChunkAnalysisResult(summary="Summary", key_points=["Point"], quiz=[])


@pytest.fixture
def cli_env(tmp_path: Path, monkeypatch):
    monkeypatch.setenv("LOG_DIR", str(tmp_path / "logs"))
    input_pdf = tmp_path / "lesson.pdf"
    input_pdf.write_bytes(b"%PDF-1.4 fake")
    return tmp_path, input_pdf


def install_fake_pipeline(monkeypatch, fail=False):
    captured = {}

    def fake_build_pipeline(provider_config=None, settings=None):
        captured["settings"] = settings

        def extractor(path):
            captured["document"] = Path(path)
            return "Mitochondria produce most of the chemical energy needed by the cell."

        return AnalysisPipeline(FakeAnalyzer(fail=fail), settings, extractor=extractor)

    monkeypatch.setattr(run_analysis, "build_pipeline", fake_build_pipeline)
    return captured


def test_cli_writes_analysis_json(cli_env, monkeypatch):
    tmp_path, input_pdf = cli_env
    captured = install_fake_pipeline(monkeypatch)
    output_dir = tmp_path / "output"

    exit_code = run_analysis.main([
        "--input", str(input_pdf),
        "--output-dir", str(output_dir),
        "--no-history",
        "--max-chunks", "2",
        "--json-retries", "0",
    ])

    assert exit_code == 0
    data = json.loads((output_dir / "analysis.json").read_text(encoding="utf-8"))
    assert data == {"summary": "Summary", "key_points": ["Point"], "quiz": [], "is_partial": False}

    assert captured["settings"].max_chunks == 2
    assert captured["settings"].json_retries == 0
    # the pipeline works on (and deletes) a copy, never the user's file
    assert captured["document"] != input_pdf
    assert not captured["document"].exists()
    assert input_pdf.exists()


def test_cli_keeps_history_with_timestamped_files(cli_env, monkeypatch):
    tmp_path, input_pdf = cli_env
    install_fake_pipeline(monkeypatch)
    output_dir = tmp_path / "output"

    exit_code = run_analysis.main(["--input", str(input_pdf), "--output-dir", str(output_dir)])

    assert exit_code == 0
    assert len(list(output_dir.glob("analysis_*.json"))) == 1


def test_cli_missing_input_exits_nonzero(cli_env, monkeypatch):
    tmp_path, _ = cli_env
    install_fake_pipeline(monkeypatch)
    output_dir = tmp_path / "output"

    exit_code = run_analysis.main([
        "--input", str(tmp_path / "does_not_exist.pdf"),
        "--output-dir", str(output_dir),
    ])

    assert exit_code != 0
    assert not output_dir.exists()


def test_cli_analysis_failure_exits_nonzero_without_output(cli_env, monkeypatch):
    tmp_path, input_pdf = cli_env
    install_fake_pipeline(monkeypatch, fail=True)
    output_dir = tmp_path / "output"

    exit_code = run_analysis.main(["--input", str(input_pdf), "--output-dir", str(output_dir)])

    assert exit_code == 1
    assert not output_dir.exists()


@pytest.mark.parametrize("max_chunks", ["-1", "0"])
def test_cli_rejects_non_positive_chunk_cap(cli_env, monkeypatch, max_chunks):
    tmp_path, input_pdf = cli_env
    captured = install_fake_pipeline(monkeypatch)
    output_dir = tmp_path / "output"

    exit_code = run_analysis.main([
        "--input", str(input_pdf),
        "--output-dir", str(output_dir),
        "--max-chunks", max_chunks,
    ])

    assert exit_code == 1
    assert not output_dir.exists()
    # rejected before a pipeline is built or the input is staged
    assert captured == {}
    assert input_pdf.exists()


def test_cli_rejects_zero_chunk_size(cli_env, monkeypatch):
    tmp_path, input_pdf = cli_env
    install_fake_pipeline(monkeypatch)

    exit_code = run_analysis.main([
        "--input", str(input_pdf),
        "--output-dir", str(tmp_path / "output"),
        "--chunk-size", "0",
    ])

    assert exit_code == 1


def test_cli_max_chunks_analyzes_every_chunk_up_to_the_cap(cli_env, monkeypatch):
    tmp_path, input_pdf = cli_env
    analyzed = []

    class CountingAnalyzer:
        async def analyze_chunk(self, chunk, retries_remaining=None):
            analyzed.append(chunk.index)
            return ChunkAnalysisResult(summary=f"Summary {chunk.index}", key_points=[], quiz=[])

    def fake_build_pipeline(provider_config=None, settings=None):
        # three 90-character paragraphs, one chunk each at chunk_size=100
        text = "\n\n".join((f"Section {i:02d} " + "word " * 20)[:89] + "." for i in range(3))
        return AnalysisPipeline(CountingAnalyzer(), settings, extractor=lambda p: text)

    monkeypatch.setattr(run_analysis, "build_pipeline", fake_build_pipeline)
    output_dir = tmp_path / "output"

    exit_code = run_analysis.main([
        "--input", str(input_pdf),
        "--output-dir", str(output_dir),
        "--no-history",
        "--chunk-size", "100",
        "--max-chunks", "3",
    ])

    assert exit_code == 0
    assert analyzed == [0, 1, 2]
