"""
Interactive Selector

Presents numbered menus and free-text prompts and returns the operator's
answers. Parsing is a pure function; the input source is injected, so the
same selector runs against the console or a scripted list of answers.

The selector never raises on bad input: it re-prompts. The only way out
other than a valid answer is the input source being exhausted or
interrupted, which raises `SelectionAbortedError`.
"""

import logging
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence, TypeVar, Union

from ..exceptions import SelectionAbortedError

logger = logging.getLogger(__name__)

T = TypeVar("T")

YES_ANSWERS = frozenset({"y", "yes"})
NO_ANSWERS = frozenset({"n", "no"})

# Answers files
COMMENT_PREFIX = "#"
ESCAPED_COMMENT_PREFIX = "\\#"


def parse_choice(text: Optional[str], count: int) -> Optional[int]:
    """
    Parse a menu answer.

    Args:
        text: Raw input line
        count: Number of menu options

    Returns:
        Zero-based index of the chosen option, or None if the answer is not
        an integer in 1..count
    """
    if text is None:
        return None
    try:
        choice = int(text.strip())
    except ValueError:
        return None
    if 1 <= choice <= count:
        return choice - 1
    return None


class ConsoleInput:
    """Reads answers from standard input."""

    def read(self, prompt: str) -> str:
        try:
            return input(prompt)
        except (EOFError, KeyboardInterrupt) as e:
            raise SelectionAbortedError("Input aborted by operator", prompt=prompt) from e


class ScriptedInput:
    """
    Replays a fixed sequence of answers.

    Used by the `--answers` option and by tests. Empty answers are
    significant (they terminate path lists and skip optional fields).

    Example:
        ```python
        source = ScriptedInput(["1", "1", "1", "1", "1", "1", "y", "n"])
        selector = Selector(source)
        ```
    """

    def __init__(self, answers: Iterable[str], echo: bool = False, output: Callable[[str], None] = print):
        """
        Args:
            answers: Answers returned in order, one per prompt
            echo: Print each prompt with its answer, as a console session would show it
            output: Where echoed lines are written
        """
        self._answers: List[str] = list(answers)
        self._position = 0
        self.echo = echo
        self._output = output

    @classmethod
    def from_file(cls, path: Union[str, Path], echo: bool = True) -> "ScriptedInput":
        """
        Load answers from a text file, one answer per line.

        Lines starting with '#' are comments. Blank lines are kept as empty answers.
        An answer that itself starts with '#' is written with a leading backslash:
        the line '\\#tmp/notes.txt' gives the answer '#tmp/notes.txt'.
        """
        answers = []
        with open(path, "r", encoding="utf-8") as f:
            for line in f:
                if line.startswith(COMMENT_PREFIX):
                    continue
                line = line.rstrip("\r\n")
                if line.startswith(ESCAPED_COMMENT_PREFIX):
                    line = line[1:]
                answers.append(line)
        logger.info(f"Loaded {len(answers)} scripted answers from {path}")
        return cls(answers, echo=echo)

    @property
    def remaining(self) -> int:
        return len(self._answers) - self._position

    def read(self, prompt: str) -> str:
        if self._position >= len(self._answers):
            raise SelectionAbortedError("Scripted answers exhausted", prompt=prompt)
        answer = self._answers[self._position]
        self._position += 1
        if self.echo:
            self._output(f"{prompt}{answer}")
        return answer


class Selector:
    """
    Prompt-and-validate helper for the restore flow.

    Example:
        ```python
        selector = Selector(ConsoleInput())
        vault = selector.select("Select a vault", vaults, render=lambda v: v.name)
        paths = selector.read_paths("Path to restore")
        if selector.confirm("Start the restore?"):
            ...
        ```
    """

    def __init__(self, source=None, output: Callable[[str], None] = print):
        """
        Args:
            source: Object with a `read(prompt) -> str` method; defaults to the console
            output: Where menus and re-prompt messages are written
        """
        self.source = source or ConsoleInput()
        self._output = output

    def choose_index(
        self,
        prompt: str,
        options: Sequence[T],
        render: Callable[[T], str] = str
    ) -> int:
        """
        Show a numbered menu and return the zero-based index of the chosen option.

        Raises:
            ValueError: If `options` is empty
            SelectionAbortedError: If the input source is exhausted or interrupted
        """
        if not options:
            raise ValueError(f"No options to choose from for '{prompt}'")

        self._output(f"\n{prompt}:")
        for number, option in enumerate(options, start=1):
            self._output(f"  {number}. {render(option)}")

        count = len(options)
        while True:
            answer = self.source.read(f"Enter choice (1-{count}): ")
            index = parse_choice(answer, count)
            if index is not None:
                logger.debug(f"'{prompt}': chose {index + 1} of {count}")
                return index
            self._output(f"Invalid choice '{answer.strip()}'. Enter a number between 1 and {count}.")

    def select(
        self,
        prompt: str,
        options: Sequence[T],
        render: Callable[[T], str] = str
    ) -> T:
        """Show a numbered menu and return the chosen option."""
        return options[self.choose_index(prompt, options, render)]

    def read_text(self, prompt: str, allow_empty: bool = False) -> str:
        """
        Read a free-text answer.

        Args:
            prompt: Prompt text
            allow_empty: Accept an empty answer (returned as "")

        Returns:
            The answer with surrounding whitespace removed
        """
        while True:
            answer = self.source.read(f"{prompt}: ").strip()
            if answer or allow_empty:
                return answer
            self._output("A value is required.")

    def read_paths(self, prompt: str) -> List[str]:
        """
        Read paths one per line until an empty line. At least one path is required.
        """
        self._output(f"{prompt} (one per line, empty line to finish):")
        paths: List[str] = []
        while True:
            answer = self.source.read(f"  Path {len(paths) + 1}: ").strip()
            if answer:
                paths.append(answer)
            elif paths:
                return paths
            else:
                self._output("At least one path is required.")

    def confirm(self, prompt: str) -> bool:
        """Ask a yes/no question; re-prompts until the answer is y, yes, n or no."""
        while True:
            answer = self.source.read(f"{prompt} (y/n): ").strip().lower()
            if answer in YES_ANSWERS:
                return True
            if answer in NO_ANSWERS:
                return False
            self._output("Please answer 'y' or 'n'.")
