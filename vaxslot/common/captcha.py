"""
Captcha hand-off: save the SVG where a human can open it and read back the text
"""
import logging
from pathlib import Path
from typing import Optional

from rich.console import Console

from .models import Credential
from .prompts import HumanPrompt

logger = logging.getLogger(__name__)

CAPTCHA_HTML = '<!DOCTYPE html><html><body><img src="captcha.svg"></body></html>'


class CaptchaPresenter:
    """Writes captcha.svg plus an HTML wrapper and prints a clickable link"""

    def __init__(self, output_dir: str | Path = ".", console: Optional[Console] = None):
        self.output_dir = Path(output_dir)
        self.console = console or Console()

    def present(self, svg: str) -> Path:
        self.output_dir.mkdir(parents=True, exist_ok=True)
        (self.output_dir / "captcha.svg").write_text(svg)
        html_path = self.output_dir / "captcha.html"
        html_path.write_text(CAPTCHA_HTML)

        logger.info("Saved captcha file successfully")
        self.console.print("Ctrl + Click on the link below to view Captcha")
        self.console.print(html_path.resolve().as_uri())
        return html_path


class CaptchaSolver:
    """Fetches a captcha with the current token and asks a human to transcribe it"""

    def __init__(self, client, presenter: CaptchaPresenter, prompt: HumanPrompt):
        self.client = client
        self.presenter = presenter
        self.prompt = prompt

    async def solve(self, credential: Credential) -> str:
        svg = await self.client.get_captcha(credential)
        self.presenter.present(svg)
        return await self.prompt.ask("Enter Captcha Text")
