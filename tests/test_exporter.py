"""Tests for the FFmpeg mixdown exporter. FFmpeg itself is never run."""

from pathlib import Path
from unittest import mock

import ffmpeg
import pytest

from podtrack.batch.exporter import ExportFormat, Exporter, ExportJob
from podtrack.utils.exceptions import EmptyInputError, TranscodeFailure


def option_value(args, flag):
    return args[args.index(flag) + 1]


def test_two_inputs_are_merged_for_mp3():
    job = ExportJob([Path("a.wav"), Path("b.wav")], Path("out.mp3"), ExportFormat.MP3)

    args = Exporter("ffmpeg").build_command(job)

    assert args[0] == "ffmpeg"
    assert "a.wav" in args and "b.wav" in args
    assert any("amerge=inputs=2" in arg for arg in args)
    assert option_value(args, "-acodec") == "libmp3lame"
    assert option_value(args, "-b:a") == "192k"
    assert option_value(args, "-ac") == "2"
    assert option_value(args, "-ar") == "44100"
    assert option_value(args, "-f") == "mp3"
    assert "out.mp3" in args
    assert "-y" in args


def test_single_input_is_reencoded_without_merge():
    job = ExportJob([Path("solo.wav")], Path("out.m4a"), ExportFormat.M4A)

    args = Exporter("ffmpeg").build_command(job)

    assert not any("amerge" in arg for arg in args)
    assert option_value(args, "-acodec") == "aac"
    assert option_value(args, "-b:a") == "192k"
    assert option_value(args, "-f") == "ipod"


def test_wav_export_has_no_bitrate():
    job = ExportJob([Path("a.wav"), Path("b.wav")], Path("mix.wav"), ExportFormat.WAV)

    args = Exporter("ffmpeg").build_command(job)

    assert option_value(args, "-acodec") == "pcm_s16le"
    assert "-b:a" not in args


def test_format_from_output_extension():
    assert ExportJob.for_output(["a.wav"], "x.M4A").format is ExportFormat.M4A
    assert ExportJob.for_output(["a.wav"], "x.wav").format is ExportFormat.WAV
    assert ExportJob.for_output(["a.wav"], "x.ogg").format is ExportFormat.MP3


def test_empty_inputs_create_nothing(tmp_path):
    output = tmp_path / "out.mp3"
    job = ExportJob([], output)

    with mock.patch("podtrack.batch.exporter.ffmpeg.run") as run:
        with pytest.raises(EmptyInputError):
            Exporter().export(job)

    run.assert_not_called()
    assert list(tmp_path.iterdir()) == []


def test_export_moves_partial_into_place(tmp_path):
    output = tmp_path / "show.mp3"
    job = ExportJob([tmp_path / "a.wav", tmp_path / "b.wav"], output)

    def fake_run(stream, **kwargs):
        Exporter.partial_path(output).write_bytes(b"ID3 encoded")
        return b"", b""

    with mock.patch("podtrack.batch.exporter.ffmpeg.run", side_effect=fake_run):
        result = Exporter().export(job)

    assert result == output
    assert output.read_bytes() == b"ID3 encoded"
    assert not Exporter.partial_path(output).exists()


def test_transcode_failure_keeps_stderr_and_cleans_up(tmp_path):
    output = tmp_path / "show.mp3"
    job = ExportJob([tmp_path / "a.wav"], output)

    def failing_run(stream, **kwargs):
        Exporter.partial_path(output).write_bytes(b"half")
        raise ffmpeg.Error("ffmpeg", b"", b"a.wav: No such file or directory\n")

    with mock.patch("podtrack.batch.exporter.ffmpeg.run", side_effect=failing_run):
        with pytest.raises(TranscodeFailure) as exc_info:
            Exporter().export(job)

    assert exc_info.value.stderr == "a.wav: No such file or directory\n"
    assert not output.exists()
    assert not Exporter.partial_path(output).exists()


def test_missing_ffmpeg_binary():
    exporter = Exporter("definitely-not-ffmpeg-binary")

    with pytest.raises(TranscodeFailure):
        exporter.check_ffmpeg()
