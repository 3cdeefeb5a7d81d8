"""Tests for the podtrack command line."""

from unittest import mock

import pytest

from podtrack import main as cli
from podtrack.audio.wav import encode_wav
from tests.conftest import SAMPLE_RATE, FakeStream, make_signal


@pytest.fixture(autouse=True)
def keep_signal_handlers():
    with mock.patch.object(cli.signal, "signal"):
        yield


def test_parser_requires_a_command():
    with pytest.raises(SystemExit):
        cli.build_parser().parse_args([])


def test_dead_air_command(tmp_path, capsys):
    for name, segments in (
        ("ep1_Host_local.wav", [(1.0, True), (4.0, False), (1.0, True)]),
        ("ep1_Guest_abc123.wav", [(2.0, True), (3.0, False), (1.0, True)]),
    ):
        (tmp_path / name).write_bytes(encode_wav(make_signal(segments), SAMPLE_RATE))

    assert cli.main(["dead-air", str(tmp_path), "ep1"]) == 0

    printed = capsys.readouterr().out
    assert "ep1_Host_local_edited.wav" in printed
    assert (tmp_path / "ep1_Guest_abc123_edited.wav").exists()


def test_export_without_inputs_fails(tmp_path):
    with mock.patch.object(cli.Exporter, "check_ffmpeg", return_value="ffmpeg version test"):
        assert cli.main(["export", str(tmp_path / "out.mp3")]) == 1
    assert not (tmp_path / "out.mp3").exists()


def test_record_command_saves_local_track(tmp_path):
    stream = FakeStream()
    with mock.patch.object(cli, "MicrophoneStream", return_value=stream):
        code = cli.main(
            ["record", "ep7", "--name", "Host", "--duration", "0", "--output", str(tmp_path)]
        )

    assert code == 0
    assert [p.name for p in tmp_path.iterdir()] == ["ep7_Host_local.wav"]


def test_export_checks_inputs_before_ffmpeg(tmp_path):
    args = cli.build_parser().parse_args(["export", str(tmp_path / "out.mp3")])

    with mock.patch.object(cli.Exporter, "check_ffmpeg") as check:
        with pytest.raises(cli.EmptyInputError):
            cli.run_export(args)

    check.assert_not_called()
