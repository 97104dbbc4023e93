"""
Tests for roster parsing.
"""

import pytest

from tagger.roster import load_roster_file, parse_roster


class TestParseRoster:
    def test_player_name_column(self):
        text = "team,player_name,role\nOpTic,Shotzzy,SMG\nOpTic,Dashy,AR\n"
        assert parse_roster(text) == ["Shotzzy", "Dashy"]

    def test_header_match_is_case_insensitive(self):
        assert parse_roster("Player_Name\nA\nB") == ["A", "B"]

    def test_first_column_without_header(self):
        assert parse_roster("Shotzzy,OpTic\nDashy,OpTic") == ["Shotzzy", "Dashy"]

    def test_crlf_and_blank_lines(self):
        assert parse_roster("player_name\r\n\r\n  Simp  \r\nabeZy\r\n") == ["Simp", "abeZy"]

    def test_duplicates_dropped_keeping_first(self):
        assert parse_roster("B\nA\nB\nC\nA") == ["B", "A", "C"]

    def test_short_rows_skipped(self):
        assert parse_roster("team,player_name\nOpTic\nFaZe,Cellium") == ["Cellium"]

    @pytest.mark.parametrize("text", ["", "\n\n", None])
    def test_empty(self, text):
        assert parse_roster(text) == []


class TestLoadRosterFile:
    def test_reads_utf8_with_bom(self, tmp_path):
        path = tmp_path / "players.csv"
        path.write_bytes("\ufeffplayer_name\nKenny\n".encode("utf-8"))
        assert load_roster_file(path) == ["Kenny"]

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(OSError):
            load_roster_file(tmp_path / "absent.csv")
