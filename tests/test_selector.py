"""
Tests for menu parsing, input sources and the interactive selector.
"""

import pytest

from afs_restore.exceptions import SelectionAbortedError
from afs_restore.selection.selector import ConsoleInput, ScriptedInput, Selector, parse_choice


class TestParseChoice:
    """Choices are accepted exactly in 1..count."""

    @pytest.mark.parametrize("text,count,expected", [
        ("1", 3, 0),
        ("3", 3, 2),
        (" 2 ", 3, 1),
        ("1", 1, 0),
    ])
    def test_accepts_values_in_range(self, text, count, expected):
        assert parse_choice(text, count) == expected

    @pytest.mark.parametrize("text", ["0", "4", "-1", "", "abc", "1.5", "2a", None])
    def test_rejects_everything_else(self, text):
        assert parse_choice(text, 3) is None

    def test_every_in_range_value_accepted(self):
        count = 12
        accepted = [n for n in range(-5, 20) if parse_choice(str(n), count) is not None]
        assert accepted == list(range(1, count + 1))


class TestScriptedInput:
    """Scripted answers replay in order and abort when exhausted."""

    def test_replays_answers_in_order(self):
        source = ScriptedInput(["a", "", "b"])
        assert [source.read("> ") for _ in range(3)] == ["a", "", "b"]
        assert source.remaining == 0

    def test_exhaustion_raises_aborted(self):
        source = ScriptedInput([])
        with pytest.raises(SelectionAbortedError) as exc_info:
            source.read("Vault: ")
        assert exc_info.value.prompt == "Vault: "

    def test_from_file_skips_comments_and_keeps_blank_lines(self, tmp_path):
        answers = tmp_path / "answers.txt"
        answers.write_text("# vault\n1\n\n# done\ny\n", encoding="utf-8")

        source = ScriptedInput.from_file(answers, echo=False)

        assert [source.read(""), source.read(""), source.read("")] == ["1", "", "y"]

    def test_from_file_escaped_hash_is_an_answer(self, tmp_path):
        answers = tmp_path / "answers.txt"
        answers.write_text("# target folder\n\\#archive\n\\\\#kept\n", encoding="utf-8")

        source = ScriptedInput.from_file(answers, echo=False)

        assert source.remaining == 2
        assert [source.read(""), source.read("")] == ["#archive", "\\\\#kept"]

    def test_echo_writes_prompt_and_answer(self):
        lines = []
        source = ScriptedInput(["2"], echo=True, output=lines.append)
        source.read("Enter choice (1-3): ")
        assert lines == ["Enter choice (1-3): 2"]


class TestConsoleInput:
    """Console input converts EOF and Ctrl+C into SelectionAbortedError."""

    @pytest.mark.parametrize("error", [EOFError, KeyboardInterrupt])
    def test_interrupts_abort(self, monkeypatch, error):
        def raise_error(prompt):
            raise error()

        monkeypatch.setattr("builtins.input", raise_error)
        with pytest.raises(SelectionAbortedError):
            ConsoleInput().read("> ")

    def test_returns_line(self, monkeypatch):
        monkeypatch.setattr("builtins.input", lambda prompt: "hello")
        assert ConsoleInput().read("> ") == "hello"


class TestSelector:
    """Menus, free text, path lists and confirmations."""

    def make(self, answers):
        output = []
        return Selector(ScriptedInput(answers), output=output.append), output

    def test_select_returns_option(self):
        selector, output = self.make(["2"])
        assert selector.select("Pick", ["a", "b", "c"]) == "b"
        assert "  1. a" in output
        assert "  3. c" in output

    def test_reprompts_until_valid(self):
        selector, output = self.make(["x", "0", "4", "", "3"])
        assert selector.choose_index("Pick", ["a", "b", "c"]) == 2
        assert len([line for line in output if line.startswith("Invalid choice")]) == 4

    def test_render_is_used(self):
        selector, output = self.make(["1"])
        selector.select("Pick", [{"name": "V1"}], render=lambda o: o["name"])
        assert "  1. V1" in output

    def test_empty_options_is_an_error(self):
        selector, _ = self.make(["1"])
        with pytest.raises(ValueError):
            selector.select("Pick", [])

    def test_exhausted_input_aborts_menu(self):
        selector, _ = self.make(["9"])
        with pytest.raises(SelectionAbortedError):
            selector.select("Pick", ["a", "b"])

    def test_read_text_requires_value(self):
        selector, output = self.make(["", "   ", " sa2 "])
        assert selector.read_text("Storage account") == "sa2"
        assert output.count("A value is required.") == 2

    def test_read_text_allows_empty_when_optional(self):
        selector, _ = self.make([""])
        assert selector.read_text("Folder", allow_empty=True) == ""

    def test_read_paths_until_empty_line(self):
        selector, _ = self.make(["docs/a.txt", "images/*", ""])
        assert selector.read_paths("Paths") == ["docs/a.txt", "images/*"]

    def test_read_paths_requires_one_entry(self):
        selector, output = self.make(["", "docs/a.txt", ""])
        assert selector.read_paths("Paths") == ["docs/a.txt"]
        assert "At least one path is required." in output

    @pytest.mark.parametrize("answers,expected", [
        (["y"], True),
        (["YES"], True),
        (["n"], False),
        (["No"], False),
        (["maybe", "", "y"], True),
    ])
    def test_confirm(self, answers, expected):
        selector, _ = self.make(answers)
        assert selector.confirm("Continue?") is expected
