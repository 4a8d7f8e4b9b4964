"""
Blocking terminal prompts for the steps that need a human
"""
import asyncio
import logging
from typing import Optional

from rich.console import Console
from rich.prompt import Prompt

logger = logging.getLogger(__name__)

YES_ANSWERS = ("yes", "y")
NO_ANSWERS = ("no", "n")


class HumanPrompt:
    """
    Asks the operator for OTPs, captcha text and yes/no confirmations.

    Prompts run in a worker thread so waiting on the keyboard suspends the
    event loop the same way a network call does.
    """

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def _read(self, question: str) -> str:
        return Prompt.ask(question, console=self.console)

    async def ask(self, question: str) -> str:
        answer = await asyncio.to_thread(self._read, question)
        return answer.strip()

    async def confirm(self, question: str) -> bool:
        """Ask until the answer is a recognizable yes or no"""
        while True:
            answer = await self.ask(f"{question}\nConfirm by typing 'Yes' or 'No'")
            if answer.lower() in YES_ANSWERS:
                return True
            if answer.lower() in NO_ANSWERS:
                return False
            self.console.print("[yellow]Illegal input. Valid inputs are 'Yes' or 'No'[/yellow]")
