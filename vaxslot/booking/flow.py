"""
End-to-end booking run: launch gate, login, search, book
"""
import logging
from datetime import datetime
from typing import Any, List, Optional

from rich.console import Console
from rich.table import Table

from ..api.auth import CoWinAuth
from ..api.client import CoWinAPIClient
from ..common.captcha import CaptchaPresenter, CaptchaSolver
from ..common.config import Config, ConfigError
from ..common.models import (
    AgeTier,
    BookingRequest,
    BookingStatus,
    Credential,
    SearchCriteria,
)
from ..common.prompts import HumanPrompt
from ..common.scheduler import JitteredDelay, LaunchGate
from .executor import BookingExecutor
from .poller import AvailabilityPoller
from .supervisor import RetryController

logger = logging.getLogger(__name__)


class BookingFlow:
    """
    Runs the phases strictly in order: gate, authenticate, search, book.

    A later phase never starts before the earlier one has resolved. The only
    way out besides a confirmation is the operator declining a retry.
    """

    def __init__(
        self,
        criteria: SearchCriteria,
        auth: CoWinAuth,
        client: CoWinAPIClient,
        gate: LaunchGate,
        poller: AvailabilityPoller,
        executor: BookingExecutor,
        captcha_solver: CaptchaSolver,
        prompt: HumanPrompt,
        beneficiary_ids: Optional[List[str]] = None,
        console: Optional[Console] = None
    ):
        self.criteria = criteria
        self.auth = auth
        self.client = client
        self.gate = gate
        self.poller = poller
        self.executor = executor
        self.captcha_solver = captcha_solver
        self.prompt = prompt
        self.beneficiary_ids = list(beneficiary_ids or [])
        self.console = console or prompt.console
        self.captcha: Optional[str] = None

    @classmethod
    def from_config(
        cls,
        config: Config,
        auth: CoWinAuth,
        client: CoWinAPIClient,
        prompt: HumanPrompt
    ) -> "BookingFlow":
        timing = config.timing
        return cls(
            criteria=config.search.to_criteria(),
            auth=auth,
            client=client,
            gate=LaunchGate(config.schedule.timezone, config.schedule.otp_buffer_seconds),
            poller=AvailabilityPoller(
                client,
                window_seconds=timing.search_window_seconds,
                delay=JitteredDelay(*timing.search_delay_ms),
                timezone=config.schedule.timezone,
            ),
            executor=BookingExecutor(
                client,
                window_seconds=timing.booking_window_seconds,
                delay=JitteredDelay(*timing.booking_delay_ms),
            ),
            captcha_solver=CaptchaSolver(
                client, CaptchaPresenter(config.captcha.output_dir, prompt.console), prompt
            ),
            prompt=prompt,
            beneficiary_ids=config.search.beneficiary_ids,
        )

    async def run(self, mobile: str, start_time: Optional[datetime] = None) -> str:
        """
        Book an appointment.

        Returns:
            The appointment confirmation number

        Raises:
            ConfigError: start time in the past or nobody eligible
            RetryDeclined: the operator stopped the run
        """
        retry = RetryController(self.auth.authenticate, mobile, self.prompt)

        if self.criteria.district_id is None and len(self.criteria.pincodes) != 1:
            await retry.ask_to_continue(
                f"No district configured. Proceed with district {self.criteria.effective_district_id}?"
            )

        if self.criteria.age_tier is AgeTier.ANY:
            # One booking request covers a single age group
            above_45 = await self.prompt.confirm("Beneficiaries above 45?")
            tier = AgeTier.FORTY_FIVE_PLUS if above_45 else AgeTier.UNDER_45
            self.criteria = self.criteria.model_copy(update={"age_tier": tier})

        if start_time is not None:
            await self.gate.wait_for_buffer(start_time)

        credential = await self.auth.authenticate(mobile)

        beneficiary_ids = await self._select_beneficiaries(credential)
        await retry.ask_to_continue("The above listed beneficiaries will be scheduled for vaccination")

        self.captcha = await self.captcha_solver.solve(credential)

        if start_time is not None:
            await self.gate.wait_until(start_time)
        logger.info("Ready to rock and roll")

        while True:
            slot, credential = await retry.supervise(
                self.poller.search,
                self.criteria,
                credential,
                "Search again?",
                refresh_args=self._refresh_captcha,
            )

            request = BookingRequest(
                slot=slot,
                beneficiary_ids=beneficiary_ids,
                dose=self.criteria.dose,
                captcha=self.captcha,
            )
            outcome, credential = await retry.supervise(
                self.executor.attempt,
                request,
                credential,
                "Try to schedule again?",
                refresh_args=self._refresh_captcha,
            )

            if outcome.status == BookingStatus.CONFIRMED:
                logger.info(f"Successfully booked! Appointment Confirmation Number: {outcome.confirmation_number}")
                return outcome.confirmation_number

            await retry.ask_to_continue("The slot was taken. Search again?")

    async def _select_beneficiaries(self, credential: Credential) -> List[str]:
        if self.beneficiary_ids:
            logger.info(f"Using configured beneficiaries: {', '.join(self.beneficiary_ids)}")
            return self.beneficiary_ids

        eligible = await self.client.find_eligible_beneficiaries(self.criteria, credential)
        if not eligible:
            raise ConfigError("No eligible beneficiaries found on this account")

        table = Table(title="Eligible Beneficiaries")
        table.add_column("Name")
        table.add_column("Reference Id")
        for beneficiary in eligible:
            table.add_row(beneficiary.name, beneficiary.reference_id)
        self.console.print(table)

        return [b.reference_id for b in eligible]

    async def _refresh_captcha(self, args: Any, credential: Credential) -> Any:
        # A captcha is bound to the token it was fetched with
        self.captcha = await self.captcha_solver.solve(credential)
        if isinstance(args, BookingRequest):
            return args.model_copy(update={"captcha": self.captcha})
        return args
