"""Tests for the mplayer status-line matchers."""

import pytest

from mplayer_control.core.exceptions import PlaybackError
from mplayer_control.domain.playback.metadata import Metadata
from mplayer_control.domain.playback.responses import (
    NORMAL_EOF_CODES,
    answer_matcher,
    eof_code,
    match_answer_error,
    match_metadata,
    match_open_error,
    match_pause_banner,
    match_position_report,
    match_starting_playback,
    parse_flag,
    parse_number,
)


class TestOpenMatchers:
    def test_starting_playback(self) -> None:
        assert match_starting_playback("CPLAYER: Starting playback...") is True
        assert match_starting_playback("OPEN: Playing bob.") is None

    @pytest.mark.parametrize(
        "line, message",
        [
            ('OPEN: File not found "bob"', 'File not found "bob"'),
            ('OPEN: Failed to open "bob".', 'Failed to open "bob".'),
        ],
    )
    def test_open_error(self, line: str, message: str) -> None:
        error = match_open_error(line)

        assert isinstance(error, PlaybackError)
        assert str(error) == message

    def test_other_open_lines_ignored(self) -> None:
        assert match_open_error("OPEN: Playing bob.") is None


class TestStatusMatchers:
    def test_pause_banner(self) -> None:
        assert match_pause_banner("CPLAYER:   =====  PAUSE  =====") is True
        assert match_pause_banner("CPLAYER: Paused at 1:00") is None

    def test_position_report(self) -> None:
        assert match_position_report("CPLAYER: Position: 15 %") == 15.0
        assert match_position_report("CPLAYER: A:  12.0 (12.0) of 120.0") is None


class TestEof:
    def test_eof_code(self) -> None:
        assert eof_code("GLOBAL: EOF code: 4") == 4
        assert eof_code("GLOBAL: EOF code: 0") == 0
        assert eof_code("GLOBAL: ANS_volume=50") is None

    def test_normal_codes(self) -> None:
        assert NORMAL_EOF_CODES == {0, 1}


class TestAnswers:
    def test_answer_matcher_converts(self) -> None:
        match = answer_matcher("time_pos", parse_number)

        assert match("GLOBAL: ANS_time_pos=15.2") == 15.2
        assert match("GLOBAL: ANS_length=120.7") is None

    def test_property_name_is_literal(self) -> None:
        match = answer_matcher("percent_pos", parse_number)

        assert match("GLOBAL: ANS_percentXpos=3") is None

    def test_answer_error(self) -> None:
        error = match_answer_error("GLOBAL: ANS_ERROR=PROPERTY_UNAVAILABLE")

        assert isinstance(error, PlaybackError)
        assert "PROPERTY_UNAVAILABLE" in str(error)
        assert match_answer_error("GLOBAL: ANS_volume=1") is None

    def test_parse_flag(self) -> None:
        assert parse_flag("yes") is True
        assert parse_flag("no") is False
        with pytest.raises(PlaybackError):
            parse_flag("maybe")

    def test_parse_number(self) -> None:
        assert parse_number("42.000000") == 42.0
        with pytest.raises(PlaybackError):
            parse_number("loud")

    def test_metadata_answer(self) -> None:
        assert match_metadata("GLOBAL: ANS_metadata=Title,X") == Metadata(title="X")
        assert match_metadata("GLOBAL: ANS_metadata=(null)") == Metadata()
