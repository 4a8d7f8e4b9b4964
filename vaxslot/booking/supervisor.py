"""
Human-confirmed retry layer shared by the search and booking stages
"""
import logging
from typing import Any, Awaitable, Callable, Optional, Tuple, TypeVar

from ..common.models import Credential, is_unresolved
from ..common.prompts import HumanPrompt
from ..common.scheduler import format_duration

logger = logging.getLogger(__name__)

A = TypeVar("A")

# Both stages take (args, credential) and return an outcome
Stage = Callable[[A, Credential], Awaitable[Any]]
ArgsRefresher = Callable[[A, Credential], Awaitable[A]]
Authenticator = Callable[[str], Awaitable[Credential]]


class RetryDeclined(Exception):
    """The operator chose not to retry"""
    pass


class RetryController:
    """
    Re-runs a bounded stage until it resolves, with a human deciding each retry.

    Owns the re-authentication decision: when the token has expired between
    attempts, a new one is obtained before asking to retry, and every later
    attempt uses it.
    """

    def __init__(self, authenticate: Authenticator, mobile: str, prompt: HumanPrompt):
        self.authenticate = authenticate
        self.mobile = mobile
        self.prompt = prompt

    async def ask_to_continue(self, question: str) -> None:
        """
        Raises:
            RetryDeclined: if the answer is no
        """
        if not await self.prompt.confirm(question):
            raise RetryDeclined(question)

    async def supervise(
        self,
        stage: Stage,
        args: A,
        credential: Credential,
        question: str,
        refresh_args: Optional[ArgsRefresher] = None
    ) -> Tuple[Any, Credential]:
        """
        Run ``stage`` and keep retrying on an empty or inconclusive outcome.

        Args:
            stage: search or booking operation
            args: stage arguments
            credential: current credential
            question: retry prompt shown to the operator
            refresh_args: rebuilds the arguments after re-authentication,
                e.g. with a newly transcribed captcha

        Returns:
            The resolved outcome and the credential in use when it resolved
        """
        result = await stage(args, credential)

        while is_unresolved(result):
            logger.info(f"Token expires in {format_duration(credential.remaining())}")

            if credential.is_expired():
                logger.warning("Token expired, authenticating again")
                credential = await self.authenticate(self.mobile)
                if refresh_args is not None:
                    args = await refresh_args(args, credential)

            await self.ask_to_continue(question)
            result = await stage(args, credential)

        return result, credential
