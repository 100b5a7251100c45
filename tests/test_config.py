import json

import pytest

from structuremapper.__main__ import build_parser
from structuremapper.core.config import (
    DEFAULT_OUTPUT,
    build_config,
    has_input,
    load_settings,
    output_path_warning,
)
from structuremapper.core.errors import ConfigError


@pytest.fixture
def data_file(tmp_path):
    path = tmp_path / "data.json"
    path.write_text('{"a": 1}', encoding="utf-8")
    return path


def parse(*argv):
    return build_parser().parse_args(list(argv))


def test_positional_input_path(data_file, tmp_path):
    config = build_config(parse("data.json"), cwd=tmp_path)
    assert config.input_path == data_file.resolve()
    assert config.print_output is False
    assert config.output_path == (tmp_path / DEFAULT_OUTPUT).resolve()


def test_input_option_wins_over_positional(data_file, tmp_path):
    other = tmp_path / "other.json"
    other.write_text("[]", encoding="utf-8")
    config = build_config(parse("data.json", "-i", str(other)), cwd=tmp_path)
    assert config.input_path == other.resolve()


def test_print_mode_has_no_output_path(data_file, tmp_path):
    config = build_config(parse(str(data_file), "--print"), cwd=tmp_path)
    assert config.print_output is True
    assert config.output_path is None


def test_stdin_mode_requires_no_path(tmp_path):
    config = build_config(parse("--stdin", "-p"), cwd=tmp_path)
    assert config.stdin is True
    assert config.input_path is None


def test_missing_input_is_detected():
    assert has_input(parse()) is False
    assert has_input(parse(), {"stdin": True}) is True
    with pytest.raises(ConfigError):
        build_config(parse())


def test_unsupported_input_extension(tmp_path):
    bad = tmp_path / "bad.txt"
    bad.write_text("hello", encoding="utf-8")
    with pytest.raises(ConfigError, match="Unsupported file type"):
        build_config(parse(str(bad)), cwd=tmp_path)


def test_nonexistent_input(tmp_path):
    with pytest.raises(ConfigError, match="Input file not found"):
        build_config(parse("__nope__.json"), cwd=tmp_path)


def test_flags(data_file, tmp_path):
    config = build_config(parse(str(data_file), "-v", "-s", "--no-color", "-o", "out/x.json"), cwd=tmp_path)
    assert config.verbose and config.silent
    assert config.color is False
    assert config.output_path == (tmp_path / "out" / "x.json").resolve()


def test_output_extension_only_warns(tmp_path):
    assert output_path_warning(tmp_path / "schema.txt") is not None
    assert output_path_warning(tmp_path / "schema.json") is None


def test_settings_file_fills_defaults(data_file, tmp_path):
    settings_dir = tmp_path / "config"
    settings_dir.mkdir()
    settings_path = settings_dir / "settings.json"
    settings_path.write_text(
        json.dumps({"output": "result/structure.json", "verbose": True, "color": False, "indent": 4}),
        encoding="utf-8",
    )
    settings = load_settings(settings_path)
    assert settings["output"] == str((settings_dir / "result" / "structure.json").resolve())

    config = build_config(parse(str(data_file)), settings, cwd=tmp_path)
    assert config.output_path == (settings_dir / "result" / "structure.json").resolve()
    assert config.verbose is True
    assert config.color is False
    assert config.indent == 4

    config = build_config(parse(str(data_file), "-o", "cli.json"), settings, cwd=tmp_path)
    assert config.output_path == (tmp_path / "cli.json").resolve()


def test_settings_file_errors(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_settings(tmp_path / "missing.json")
    bad = tmp_path / "bad.json"
    bad.write_text("[1]", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_settings(bad)
    broken = tmp_path / "broken.json"
    broken.write_text("{", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_settings(broken)
