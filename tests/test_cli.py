import base64
import json
from unittest.mock import MagicMock, patch

import pytest
import requests

import ogg_coverart
from coverart.output import extract_ffmetadata_value
from coverart.picture import decode


@pytest.fixture(autouse=True)
def workdir(tmp_path, monkeypatch):
    # logs/ and config.json are looked up relative to the working directory
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def cover(workdir, png_bytes):
    path = workdir / "cover.png"
    path.write_bytes(png_bytes)
    return path


def test_parse_arguments_defaults():
    args = ogg_coverart.parse_arguments(["cover.png"])
    assert args.input == "cover.png"
    assert args.output is None
    assert args.format is None
    assert args.picture_type is None
    assert args.description is None


@pytest.mark.parametrize("flag, fmt", [("-f", "ffmetadata"), ("-b", "binary"), ("-B", "base64")])
def test_parse_arguments_formats(flag, fmt):
    assert ogg_coverart.parse_arguments([flag, "cover.png"]).format == fmt


def test_formats_are_exclusive():
    with pytest.raises(SystemExit):
        ogg_coverart.parse_arguments(["-b", "-B", "cover.png"])


@pytest.mark.parametrize("value", ["21", "-1", "front"])
def test_invalid_picture_type(value):
    with pytest.raises(SystemExit):
        ogg_coverart.parse_arguments(["-t", value, "cover.png"])


def test_default_output_is_ffmetadata(capsysbinary, cover, png_bytes):
    assert ogg_coverart.main([str(cover)]) == 0

    document = capsysbinary.readouterr().out.decode("utf-8")
    assert document.startswith(";FFMETADATA1\n[STREAM]\n")
    block = decode(base64.b64decode(extract_ffmetadata_value(document)))
    assert block.picture_data == png_bytes
    assert block.mime_type == "image/png"


def test_binary_output_to_file(workdir, cover, png_bytes):
    out = workdir / "cover.bin"
    assert ogg_coverart.main(["-b", "-t", "4", "-d", "Back", "-o", str(out), str(cover)]) == 0

    block = decode(out.read_bytes())
    assert block.picture_type == 4
    assert block.description == "Back"
    assert (block.width, block.height) == (4, 3)
    assert block.picture_data == png_bytes


def test_base64_output(capsysbinary, cover):
    assert ogg_coverart.main(["-B", str(cover)]) == 0
    out = capsysbinary.readouterr().out
    assert decode(base64.b64decode(out, validate=True)).picture_type == 3


def test_config_supplies_defaults(workdir, capsysbinary, cover):
    (workdir / "config.json").write_text(json.dumps({
        "format": "base64",
        "picture_type": 18,
        "description": "Artwork",
    }))

    assert ogg_coverart.main([str(cover)]) == 0
    block = decode(base64.b64decode(capsysbinary.readouterr().out))
    assert block.picture_type == 18
    assert block.description == "Artwork"


def test_arguments_override_config(workdir, capsysbinary, cover):
    (workdir / "config.json").write_text(json.dumps({"format": "ffmetadata", "picture_type": 18}))

    assert ogg_coverart.main(["-b", "-t", "0", str(cover)]) == 0
    assert decode(capsysbinary.readouterr().out).picture_type == 0


def test_unsupported_pixel_format_writes_nothing(workdir, make_image, capsys):
    path = workdir / "cover.jpg"
    path.write_bytes(make_image("CMYK", "JPEG", (4, 4)))
    out = workdir / "out.bin"

    assert ogg_coverart.main(["-b", "-o", str(out), str(path)]) == 1
    assert not out.exists()
    assert "Unsupported pixel format" in capsys.readouterr().err


def test_missing_input(workdir, capsys):
    assert ogg_coverart.main([str(workdir / "missing.png")]) == 1
    assert "Error:" in capsys.readouterr().err


def test_invalid_config(workdir, cover, capsys):
    (workdir / "config.json").write_text("{not json")
    assert ogg_coverart.main([str(cover)]) == 1
    assert "Error:" in capsys.readouterr().err


def test_errors_are_logged(workdir, cover):
    ogg_coverart.main([str(workdir / "missing.png")])
    log = (workdir / "logs" / "ogg_coverart.log").read_text()
    assert "missing.png" in log
    assert "ERROR" in log


def test_url_input(capsysbinary, png_bytes):
    response = MagicMock(content=png_bytes)
    with patch("coverart.vorbis.requests.get", return_value=response) as get:
        assert ogg_coverart.main(["-b", "https://example.com/cover.png"]) == 0

    get.assert_called_once()
    assert get.call_args.args[0] == "https://example.com/cover.png"
    assert decode(capsysbinary.readouterr().out).picture_data == png_bytes


def test_url_http_error(capsys):
    response = MagicMock()
    response.raise_for_status.side_effect = requests.HTTPError("404 Client Error")
    with patch("coverart.vorbis.requests.get", return_value=response):
        assert ogg_coverart.main(["https://example.com/missing.png"]) == 1
    assert "404" in capsys.readouterr().err


def test_oversized_image_writes_nothing(workdir, make_png, capsys):
    path = workdir / "huge.png"
    path.write_bytes(make_png(2, 8, size=(20000, 20000), pixels=False))
    out = workdir / "out.bin"

    assert ogg_coverart.main(["-b", "-o", str(out), str(path)]) == 1
    assert not out.exists()
    assert "too large" in capsys.readouterr().err


@pytest.mark.parametrize("config", [
    {"picture_type": "4"},
    {"picture_type": 4.0},
    {"picture_type": 42},
    {"description": 5},
    {"log_dir": ["logs"]},
])
def test_bad_config_values_exit_cleanly(workdir, cover, capsys, config):
    (workdir / "config.json").write_text(json.dumps(config))
    out = workdir / "out.bin"

    assert ogg_coverart.main(["-b", "-o", str(out), str(cover)]) == 1
    assert not out.exists()
    assert "Error:" in capsys.readouterr().err


def test_unknown_log_level_falls_back_to_info(workdir, cover):
    (workdir / "config.json").write_text(json.dumps({"log_level": "LOUD"}))

    assert ogg_coverart.main(["-b", "-o", str(workdir / "out.bin"), str(cover)]) == 0
    log = (workdir / "logs" / "ogg_coverart.log").read_text()
    assert "Unknown log level 'LOUD'" in log
