"""
Tests for the activity-image command-line interface.
"""

import json
from unittest.mock import patch

import pytest

from cli_app import ActivityImageCLI
from config import PipelineOptions
from conftest import ScriptedProvider
from services.activity_image_pipeline import ActivityImagePipeline


@pytest.fixture
def activity_file(tmp_path, run_activity):
    path = tmp_path / "activity.json"
    path.write_text(json.dumps(run_activity), encoding="utf-8")
    return path


def _cli(provider=None) -> ActivityImageCLI:
    return ActivityImageCLI(ActivityImagePipeline(provider or ScriptedProvider(), PipelineOptions()))


class TestParser:
    """Tests for argument parsing."""

    def test_subcommands(self):
        parser = ActivityImageCLI().build_parser()
        args = parser.parse_args(["--provider", "dial", "generate", "a.json", "-o", "out.png"])
        assert args.command == "generate"
        assert args.provider == "dial"
        assert str(args.activity) == "a.json"
        assert str(args.output) == "out.png"

    def test_command_required(self):
        with pytest.raises(SystemExit):
            ActivityImageCLI().build_parser().parse_args([])


class TestCommands:
    """Tests for the signals, prompt and generate commands."""

    def test_signals(self, activity_file, capsys):
        assert _cli().run(["signals", str(activity_file)]) == 0
        output = json.loads(capsys.readouterr().out)
        assert output["activity_type"] == "Run"
        assert output["intensity"] == "medium"
        assert output["time_of_day"] == "morning"

    def test_prompt(self, activity_file, capsys):
        assert _cli().run(["prompt", str(activity_file)]) == 0
        output = json.loads(capsys.readouterr().out)
        assert output["prompt"]["style"] == "cartoon"
        assert output["prompt"]["text"].startswith("cartoon style, runner, focused mood")

    def test_generate_writes_image(self, activity_file, tmp_path, capsys):
        provider = ScriptedProvider()
        output_path = tmp_path / "images" / "run.png"

        assert _cli(provider).run(["generate", str(activity_file), "-o", str(output_path)]) == 0

        assert output_path.read_bytes() == provider.result.data
        summary = json.loads(capsys.readouterr().out)
        assert summary["fallback"] is False
        assert summary["attempts"] == 0
        assert summary["output"] == str(output_path)

    def test_generate_without_output_prints_data_url(self, activity_file, capsys):
        assert _cli().run(["generate", str(activity_file)]) == 0
        summary = json.loads(capsys.readouterr().out)
        assert summary["image_data"].startswith("data:image/png;base64,")

    def test_generate_reports_fallback(self, activity_file, capsys):
        assert _cli(ScriptedProvider(fail_times=3)).run(["generate", str(activity_file)]) == 0
        captured = capsys.readouterr()
        assert json.loads(captured.out)["fallback"] is True
        assert "fallback prompt" in captured.err


class TestErrors:
    """Tests for exit codes on failure."""

    def test_missing_file(self, tmp_path, capsys):
        assert _cli().run(["signals", str(tmp_path / "missing.json")]) == 1
        assert "Could not read activity" in capsys.readouterr().err

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        assert _cli().run(["signals", str(path)]) == 1

    def test_json_array_rejected(self, tmp_path, capsys):
        path = tmp_path / "list.json"
        path.write_text("[]", encoding="utf-8")
        assert _cli().run(["signals", str(path)]) == 1
        assert "JSON object" in capsys.readouterr().err

    def test_invalid_activity(self, tmp_path, capsys):
        path = tmp_path / "activity.json"
        path.write_text(json.dumps({"name": "no type"}), encoding="utf-8")
        assert _cli().run(["prompt", str(path)]) == 1
        assert "type is required" in capsys.readouterr().err

    def test_provider_exhausted(self, activity_file, capsys):
        assert _cli(ScriptedProvider(fail_times=None)).run(["generate", str(activity_file)]) == 1
        assert "provider failure #4" in capsys.readouterr().err

    def test_unknown_provider(self, activity_file, capsys):
        with patch("cli_app.get_settings") as mock_settings:
            mock_settings.return_value.IMAGE_PROVIDER = "pollinations"
            code = ActivityImageCLI().run(["--provider", "midjourney", "signals", str(activity_file)])
        assert code == 1
        assert "Unknown image provider" in capsys.readouterr().err
