# tests/test_cli.py
"""
Tests for the CLI parser and execution logic.

These tests verify argument validators, parser wiring, config fallback
behavior, error reporting, and the main entry point.

Modules tested:
- build_arg_parser()
- run_from_args()
- main()
"""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any

import pytest
import tomlkit
from PIL import Image
from pytest_mock import MockerFixture

import nanobanana.cli as nb_cli
import nanobanana.main as nb_main
from nanobanana.config import NanobananaConfig
from nanobanana.imaging import Rectangle


def _parse(*argv: str) -> argparse.Namespace:
    return nb_cli.build_arg_parser().parse_args(list(argv))


def _write_config(path: Path, data: dict[str, Any]) -> str:
    doc = tomlkit.document()
    doc.update(data)
    path.write_text(tomlkit.dumps(doc), encoding="utf-8")
    return str(path)


class TestValidators:
    @pytest.mark.parametrize(
        ("func", "text"),
        [
            (nb_cli.positive_int, "0"),
            (nb_cli.positive_int, "x"),
            (nb_cli.non_negative_int, "-1"),
            (nb_cli.size_2d, "10"),
            (nb_cli.size_2d, "10x0"),
            (nb_cli.size_2d, "axb"),
            (nb_cli.resize_arg, "0%"),
            (nb_cli.resize_arg, "abc%"),
            (nb_cli.resize_arg, "inf%"),
            (nb_cli.resize_arg, "nan%"),
            (nb_cli.positive_float, "0"),
            (nb_cli.positive_float, "inf"),
            (nb_cli.positive_float, "soon"),
            (nb_cli.crop_arg, "1,2,3"),
            (nb_cli.crop_arg, "1,2,3,x"),
            (nb_cli.sizes_arg, " , "),
            (nb_cli.sizes_arg, "16,big"),
            (nb_cli.tolerance_arg, "101"),
            (nb_cli.tolerance_arg, "lots"),
            (nb_cli.color_arg, "notacolor"),
        ],
    )
    def test_invalid_values(self, func: Any, text: str) -> None:
        with pytest.raises(ValueError):  # noqa: PT011
            func(text)

    def test_valid_values(self) -> None:
        assert nb_cli.non_negative_int("0") == 0
        assert nb_cli.size_2d("800X600") == (800, 600)
        assert nb_cli.crop_arg("1, 2, 3, 4") == Rectangle(1, 2, 3, 4)
        assert nb_cli.sizes_arg("64, 0,128") == [64, 0, 128]
        assert nb_cli.tolerance_arg("12.5") == 12.5  # noqa: PLR2004
        assert nb_cli.color_arg("transparent") == (0, 0, 0, 0)

    def test_resize_arg_modes(self) -> None:
        percent = nb_cli.resize_arg("50%")
        assert (percent.mode, percent.percent) == ("percent", 50.0)
        absolute = nb_cli.resize_arg("10x20")
        assert (absolute.mode, absolute.width, absolute.height) == (
            "absolute", 10, 20,
        )
        assert nb_cli.fit_arg("5x5").mode == "fit"
        assert nb_cli.fill_arg("5x5").mode == "fill"

    def test_wrap_validator_converts_errors(self) -> None:
        wrapped = nb_cli._wrap_validator(nb_cli.positive_int)  # noqa: SLF001
        assert wrapped("3") == 3  # noqa: PLR2004
        with pytest.raises(argparse.ArgumentTypeError, match="positive"):
            wrapped("-3")


class TestParser:
    def test_transform_flags(self) -> None:
        args = _parse(
            "transform", "in.png", "-o", "out.png",
            "--fit", "10x10", "--crop", "0,0,5,5",
            "--rotate", "-90", "--flip",
        )
        assert args.command == "transform"
        assert args.resize.mode == "fit"
        assert args.crop == Rectangle(0, 0, 5, 5)
        assert args.rotate == -90.0  # noqa: PLR2004
        assert args.flip is True
        assert args.flop is False
        assert args.handler is nb_main.run_transform

    def test_resize_modes_are_exclusive(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            _parse("transform", "in.png", "-o", "o.png",
                   "--resize", "50%", "--fit", "5x5")
        assert exc_info.value.code == 2  # noqa: PLR2004

    def test_verbose_and_quiet_are_exclusive(self) -> None:
        with pytest.raises(SystemExit):
            _parse("-v", "-q", "transparent", "inspect", "a.png")

    def test_bad_flag_value_exits(self) -> None:
        with pytest.raises(SystemExit):
            _parse("combine", "a.png", "-o", "o.png", "--gap", "-2")

    def test_config_overridable_flags_are_suppressed(self) -> None:
        args = _parse("transparent", "make", "a.png", "-o", "b.png")
        assert not hasattr(args, "tolerance")
        assert args.transparent_command == "make"
        assert args.color is None

    def test_generate_flags(self) -> None:
        args = _parse(
            "--api-key", "k", "-m", "pro", "generate", "a", "cat",
            "-o", "cat.png", "-c", "2", "--resolution", "4k",
            "--aspect-ratio", "16:9",
        )
        assert args.prompt == ["a", "cat"]
        assert args.count == 2  # noqa: PLR2004
        assert args.resolution == "4K"
        assert args.model == "pro"
        assert args.api_key == "k"

    def test_timeout_and_jpeg_flags(self) -> None:
        args = _parse(
            "--timeout", "30", "--jpeg-quality", "70",
            "--jpeg-background", "black",
            "transform", "a.png", "-o", "b.jpg",
        )
        assert args.timeout == 30.0  # noqa: PLR2004
        assert args.jpeg_quality == 70  # noqa: PLR2004
        assert args.jpeg_background == "black"

    def test_icon_defaults(self) -> None:
        args = _parse("icon", "-i", "logo.png")
        assert args.output == "icons"
        assert args.prompt == []
        assert not hasattr(args, "sizes")

    def test_transparent_requires_action(self) -> None:
        with pytest.raises(SystemExit):
            _parse("transparent")

    def test_version_flag(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            _parse("--version")
        assert exc_info.value.code == 0
        assert capsys.readouterr().out.startswith("nanobanana ")


@pytest.mark.parametrize(
    ("argv", "expected"),
    [
        (["transform", "a.png", "-o", "b.png"], "transform"),
        (["transparent", "trim", "a.png", "-o", "b.png"], "transparent trim"),
        (["--validate-config-only"], "config"),
    ],
)
def test_command_name(argv: list[str], expected: str) -> None:
    assert nb_cli.command_name(_parse(*argv)) == expected


class TestRunFromArgs:
    def test_cli_values_override_config(
        self, tmp_path: Path, mocker: MockerFixture,
    ) -> None:
        handler = mocker.patch.object(
            nb_main, "run_transparent_make", return_value=0,
        )
        config = _write_config(
            tmp_path / "c.toml",
            {
                "transparency": {"tolerance": 50},
                "output": {"jpeg_quality": 60},
            },
        )
        args = _parse(
            "--config", config, "transparent", "make", "a.png",
            "-o", "b.png", "--tolerance", "5", "--no-overwrite",
        )
        assert nb_cli.run_from_args(args) == 0
        cfg: NanobananaConfig = handler.call_args.args[1]
        assert cfg.transparency.tolerance == 5.0  # noqa: PLR2004
        assert cfg.output.jpeg_quality == 60  # noqa: PLR2004
        assert cfg.output.overwrite is False

    def test_timeout_and_jpeg_flags_reach_config(
        self, mocker: MockerFixture,
    ) -> None:
        handler = mocker.patch.object(
            nb_main, "run_transform", return_value=0,
        )
        args = _parse(
            "--timeout", "12.5", "--jpeg-quality", "40",
            "--jpeg-background", "#000000",
            "transform", "a.png", "-o", "b.jpg",
        )
        assert nb_cli.run_from_args(args) == 0
        cfg: NanobananaConfig = handler.call_args.args[1]
        assert cfg.generation.timeout_seconds == 12.5  # noqa: PLR2004
        assert cfg.output.jpeg_quality == 40  # noqa: PLR2004
        assert cfg.output.jpeg_background == "#000000"

    def test_output_directory_is_reported(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str],
    ) -> None:
        source = tmp_path / "in.png"
        Image.new("RGBA", (4, 4), color="red").save(source)
        target = tmp_path / "taken.png"
        target.mkdir()
        args = _parse(
            "--json", "transform", str(source), "-o", str(target),
        )
        assert nb_cli.run_from_args(args) == nb_cli.EXIT_FAILURE
        error = json.loads(capsys.readouterr().out)["error"]
        assert error["code"] == "FILE_ERROR"

    def test_validate_config_only(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str],
    ) -> None:
        config = _write_config(tmp_path / "c.toml", {"combine": {"gap": 3}})
        args = _parse("--json", "--config", config, "--validate-config-only")
        assert nb_cli.run_from_args(args) == 0
        document = json.loads(capsys.readouterr().out)
        assert document["command"] == "config"
        assert document["data"] == {"config": config, "valid": True}

    def test_invalid_config_is_reported(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str],
    ) -> None:
        config = _write_config(
            tmp_path / "c.toml", {"transparency": {"tolerance": 500}},
        )
        args = _parse("--json", "--config", config, "--validate-config-only")
        assert nb_cli.run_from_args(args) == nb_cli.EXIT_FAILURE
        document = json.loads(capsys.readouterr().out)
        assert document["success"] is False
        assert document["error"]["code"] == "INVALID_CONFIG"

    def test_missing_config_file(
        self, capsys: pytest.CaptureFixture[str],
    ) -> None:
        args = _parse("--config", "missing.toml", "--validate-config-only")
        assert nb_cli.run_from_args(args) == nb_cli.EXIT_FAILURE
        assert "Error [FILE_NOT_FOUND]" in capsys.readouterr().err

    def test_validate_only_needs_config(
        self, capsys: pytest.CaptureFixture[str],
    ) -> None:
        args = _parse("--json", "--validate-config-only")
        assert nb_cli.run_from_args(args) == nb_cli.EXIT_FAILURE
        error = json.loads(capsys.readouterr().out)["error"]
        assert error["code"] == "INVALID_ARGUMENT"

    def test_verbose_sets_debug(self, mocker: MockerFixture) -> None:
        verbosity = mocker.patch.object(nb_cli, "set_verbosity")
        mocker.patch.object(nb_main, "run_transform", return_value=0)
        args = _parse("-v", "transform", "a.png", "-o", "b.png")
        nb_cli.run_from_args(args)
        verbosity.assert_called_once_with(verbose=True, quiet=False)


class TestMain:
    def test_main_exits_with_status(self, mocker: MockerFixture) -> None:
        run = mocker.patch.object(nb_cli, "run_from_args", return_value=1)
        with pytest.raises(SystemExit) as exc_info:
            nb_cli.main(["transparent", "inspect", "a.png"])
        assert exc_info.value.code == 1
        run.assert_called_once()

    def test_main_requires_command(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            nb_cli.main([])
        assert exc_info.value.code == 2  # noqa: PLR2004
