"""Tests for line framing."""

import pytest

from src.wsproxy.framing import LineDecoder, split_lines


class TestSplitLines:
    """Test splitting client messages into lines."""

    def test_mixed_terminators(self):
        assert split_lines("hello\r\nworld\n") == ["hello", "world"]

    def test_runs_of_breaks_collapse(self):
        assert split_lines("a\r\n\r\n\nb\r") == ["a", "b"]

    def test_no_terminator(self):
        assert split_lines("NICK guest") == ["NICK guest"]

    @pytest.mark.parametrize("text", ["", "\n", "\r\n\r\n"])
    def test_blank_input_yields_nothing(self, text):
        assert split_lines(text) == []

    def test_whitespace_is_preserved(self):
        assert split_lines("  indented \n") == ["  indented "]


class TestLineDecoder:
    """Test incremental decoding of stream bytes."""

    def test_complete_lines(self):
        decoder = LineDecoder()
        assert decoder.feed(b"a\r\nb\r\n") == ["a", "b"]

    def test_unterminated_read_is_emitted(self):
        decoder = LineDecoder()
        assert decoder.feed(b"Password: ") == ["Password: "]
        assert decoder.feed(b"PRIVMSG #chan :hel") == ["PRIVMSG #chan :hel"]
        assert decoder.feed(b"lo\r\nnext") == ["lo", "next"]

    def test_terminator_split_across_reads(self):
        decoder = LineDecoder()
        assert decoder.feed(b"a\r") == ["a"]
        assert decoder.feed(b"\nb\n") == ["b"]

    def test_flush_after_complete_data(self):
        decoder = LineDecoder()
        assert decoder.feed(b"one\ntwo") == ["one", "two"]
        assert decoder.flush() == []

    def test_multibyte_character_split_across_reads(self):
        decoder = LineDecoder()
        data = "café\n".encode("utf-8")
        assert decoder.feed(data[:4]) == ["caf"]
        assert decoder.feed(data[4:]) == ["é"]

    def test_truncated_character_replaced_at_end(self):
        decoder = LineDecoder()
        assert decoder.feed("é".encode("utf-8")[:1]) == []
        assert decoder.flush() == ["�"]

    def test_malformed_bytes_are_replaced(self):
        decoder = LineDecoder()
        assert decoder.feed(b"bad \xff byte\n") == ["bad � byte"]
