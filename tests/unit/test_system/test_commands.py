"""
Unit tests for command preparation and alerts.
"""

import io

import pytest

from relaunch.system import beep, make_alert, split_command
from relaunch.validation import ValidationError


@pytest.mark.unit
class TestSplitCommand:

    def test_none_and_empty(self):
        assert split_command(None) == []
        assert split_command([]) == []

    def test_string_is_split_with_quotes(self):
        assert split_command('myapp --title "hello world"') == ["myapp", "--title", "hello world"]

    def test_single_item_list_is_split(self):
        assert split_command(["myapp -v"]) == ["myapp", "-v"]

    def test_multi_item_list_is_kept(self):
        assert split_command(["my app", "-v"]) == ["my app", "-v"]

    def test_unbalanced_quotes(self):
        with pytest.raises(ValidationError):
            split_command('myapp "unterminated')


@pytest.mark.unit
class TestAlerts:

    def test_beep_writes_bell(self):
        stream = io.StringIO()
        beep(stream)
        assert stream.getvalue() == "\a"

    def test_beep_on_closed_stream_is_silent(self):
        stream = io.StringIO()
        stream.close()
        beep(stream)

    def test_make_alert(self):
        assert make_alert(True) is beep
        assert make_alert(False) is None
