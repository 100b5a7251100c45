import io
import json

from structuremapper.core.complexity import Metrics
from structuremapper.core.config import AppConfig
from structuremapper.core.console import ConsoleLogger
from structuremapper.core.inferencer import StructureInferencer
from structuremapper.core.report import (
    build_summary,
    compression_ratio,
    count_top_level_fields,
    format_file_size,
    render_summary,
    write_output,
)
from structuremapper.core.shape import EMPTY_ARRAY, ArrayShape, Primitive


def test_format_file_size():
    assert format_file_size(0) == "0.00 B"
    assert format_file_size(1023) == "1023.00 B"
    assert format_file_size(1536) == "1.50 KB"
    assert format_file_size(3 * 1024 ** 2) == "3.00 MB"
    assert format_file_size(1024 ** 4) == "1024.00 GB"


def test_compression_ratio():
    assert compression_ratio(50, 200) == "25.0"
    assert compression_ratio(10, 0) == "0"


def test_count_top_level_fields():
    inferencer = StructureInferencer()
    assert count_top_level_fields(inferencer.infer({"a": 1, "b": 2})) == 2
    assert count_top_level_fields(inferencer.infer([{"a": 1}, {"c": 2}])) == 2
    assert count_top_level_fields(Primitive("string")) == 0
    assert count_top_level_fields(EMPTY_ARRAY) == 0


def test_write_output_to_stream():
    shape = StructureInferencer().infer({"name": "é", "n": [1]})
    stream = io.StringIO()
    size = write_output(shape, AppConfig(print_output=True), stream=stream)
    text = stream.getvalue()
    assert json.loads(text) == {"name": "string", "n": ["number"]}
    assert text.endswith("\n")
    assert size == len(text[:-1].encode("utf-8"))


def test_write_output_creates_parent_directories(tmp_path):
    target = tmp_path / "nested" / "dir" / "structure.json"
    shape = StructureInferencer().infer([{"a": None}])
    size = write_output(shape, AppConfig(output_path=target))
    assert json.loads(target.read_text(encoding="utf-8")) == [{"a": "null"}]
    assert size == target.stat().st_size


def test_write_output_without_target():
    assert write_output(Primitive("string"), AppConfig()) == 0


def test_summary_rendering(tmp_path):
    shape = StructureInferencer().infer([{"a": {"b": 1}}])
    config = AppConfig(input_path=tmp_path / "in.json", output_path=tmp_path / "out.json")
    summary = build_summary(
        shape,
        Metrics(max_depth=1, unique_fields=2),
        config,
        input_size=2048,
        output_size=512,
        parse_seconds=0.01,
        analysis_seconds=1.5,
        source="FILE",
        memory_peak=1024 * 1024,
    )
    assert summary.compression == "25.0"
    assert summary.root_is_array is True
    assert summary.top_level_fields == 1
    assert summary.output_target == str(tmp_path / "out.json")

    stream = io.StringIO()
    render_summary(summary, ConsoleLogger(stream=stream))
    text = stream.getvalue()
    assert "\033[" not in text
    assert "Input Size: 2.00 KB" in text
    assert "Compression: 25.0%" in text
    assert "Max Depth: 1 levels" in text
    assert "Unique Fields: 2" in text
    assert "Source: FILE" in text
    assert "Processing Time: 1.50 seconds" in text
    assert "Memory Used: 1.00 MB" in text


def test_summary_targets_stdout_in_print_mode():
    summary = build_summary(
        Primitive("number"),
        Metrics(0, 0),
        AppConfig(stdin=True, print_output=True),
        input_size=0,
        output_size=8,
        parse_seconds=0.0,
        analysis_seconds=0.0,
        source="STDIN",
    )
    assert summary.output_target == "stdout"
    assert summary.source == "STDIN"
    assert summary.compression == "0"


def test_memory_row_omitted_when_not_measured():
    summary = build_summary(
        Primitive("number"),
        Metrics(0, 0),
        AppConfig(),
        input_size=1,
        output_size=1,
        parse_seconds=0.0,
        analysis_seconds=0.0,
    )
    stream = io.StringIO()
    render_summary(summary, ConsoleLogger(stream=stream))
    assert "Memory Used" not in stream.getvalue()
    assert summary.source == "FILE"


def test_write_output_handles_deep_shapes():
    depth = 3000
    shape = Primitive("string")
    for _ in range(depth):
        shape = ArrayShape(shape)
    stream = io.StringIO()
    write_output(shape, AppConfig(print_output=True), stream=stream)
    assert stream.getvalue().count("[") == depth
