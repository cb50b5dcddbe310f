# ==============================================================================
# PROMPTS MODULE
# ==============================================================================
# The two questions the core ever asks a user:
#   - ask_text(title, prompt, default) -> text, or None when dismissed
#   - confirm(message, options)        -> chosen option, or None when dismissed
#
# The core only talks to the Prompter interface. Implementations:
#   - ConsolePrompter (here):        stdin/stdout, used by the CLI
#   - QtPrompter (gui/prompts.py):   PyQt6 dialogs
#   - AutoPrompter (here):           fixed answers, for --yes / --name flags
# ==============================================================================

from abc import ABC, abstractmethod
from typing import Callable, Optional, Sequence


YES = "Yes"
CANCEL = "Cancel"


class Prompter(ABC):
    """Interactive prompts used by the rewrite workflow and the pipeline."""

    @abstractmethod
    def ask_text(self, title: str, prompt: str, default: str = "") -> Optional[str]:
        """
        Ask for a line of text.

        Returns:
            The entered text, or None if the prompt was dismissed
        """

    @abstractmethod
    def confirm(self, message: str, options: Sequence[str] = (YES, CANCEL)) -> Optional[str]:
        """
        Ask the user to pick one of `options`.

        Returns:
            The chosen option, or None if the prompt was dismissed
        """


class ConsolePrompter(Prompter):
    """
    Prompts on the terminal.

    Args:
        input_func: Replacement for input() (used by tests)
        output_func: Replacement for print()
    """

    def __init__(self, input_func: Callable[[str], str] = input,
                 output_func: Callable[[str], None] = print):
        self._input = input_func
        self._output = output_func

    def ask_text(self, title: str, prompt: str, default: str = "") -> Optional[str]:
        self._output(f"\n{title}")
        self._output(f"  {prompt}")
        try:
            answer = self._input(f"  [{default}] > " if default else "  > ")
        except (EOFError, KeyboardInterrupt):
            return None
        answer = answer.strip()
        return answer if answer else (default or None)

    def confirm(self, message: str, options: Sequence[str] = (YES, CANCEL)) -> Optional[str]:
        self._output(f"\n{message}")
        choices = "/".join(options)
        try:
            answer = self._input(f"  ({choices}) > ").strip().lower()
        except (EOFError, KeyboardInterrupt):
            return None

        for option in options:
            if answer in (option.lower(), option[:1].lower()):
                return option
        return None


class AutoPrompter(Prompter):
    """
    Answers every prompt with preset values.

    Args:
        text: Answer for ask_text (None = dismiss; "" = accept the default)
        choice: Answer for confirm (None = dismiss)
    """

    def __init__(self, text: Optional[str] = "", choice: Optional[str] = YES):
        self.text = text
        self.choice = choice

    def ask_text(self, title: str, prompt: str, default: str = "") -> Optional[str]:
        if self.text is None:
            return None
        return self.text or default or None

    def confirm(self, message: str, options: Sequence[str] = (YES, CANCEL)) -> Optional[str]:
        return self.choice if self.choice in options else None
