"""
Two-Round Redesign Session

Main orchestration module. Sequences the critique call (round 1) and the
code-generation call (round 2), keeps the critique when only round 2
fails, and supports iterate, retry and refine on top of that.

State lives in immutable SessionSnapshot objects. Every change publishes
a new snapshot to subscribers, so a front end can show the critique as
soon as round 1 lands, before round 2 has started.
"""

import functools
import logging
from typing import Callable, Optional

from . import providers
from .errors import ClearRedesignerError, InputValidationError, ModelCallError
from .models import ImagePayload, ModelSelection, SessionSnapshot
from .parser import extract_html, parse_critique
from .prompts import build_code_generation_prompt, build_critique_prompt, build_refine_prompt
from .providers import ModelCaller

logger = logging.getLogger(__name__)

Listener = Callable[[SessionSnapshot], None]

PARTIAL_FAILURE_NOTE = "The analysis above is still available."

ANALYSIS_LANE = "analysis"
REFINE_LANE = "refine"
LANE_FLAGS = {
    ANALYSIS_LANE: ("is_analyzing", "is_round1_running", "is_round2_running"),
    REFINE_LANE: ("is_refining",),
}


def _sentence(message: str) -> str:
    message = message.strip()
    if message and message[-1] not in ".!?":
        message += "."
    return message


class RedesignSession:
    """
    Orchestrates critique, code generation, iteration and refinement.

    Coordinates:
    1. Round 1: screenshot + critique prompt -> raw critique (parsed for display)
    2. Round 2: critique -> code-generation prompt -> HTML mockup
    3. Iterate: both rounds again against the original screenshot
    4. Retry: round 2 only, from the cached critique
    5. Refine: one free-text edit of the current mockup

    Operations run in two lanes: analysis (cycle, iterate, retry) and
    refine. Every operation bumps an epoch counter and becomes current for
    its own lane. A model call that completes after a newer operation of
    the same lane has started is discarded; a refine never invalidates a
    running analysis, or the other way round. Mockup writes from the two
    lanes are last-write-wins.

    Validation problems (missing key, image, mockup or critique) raise
    InputValidationError before any state change. Model failures are
    published in ``snapshot.error`` and never raised.

    Example:
        session = RedesignSession()
        session.subscribe(lambda snap: print(snap.is_round1_running))
        snap = await session.run_full_cycle(selection, image, "B2B dashboard")
        print(snap.overall_score, snap.error)
    """

    def __init__(
        self,
        call_model: Optional[ModelCaller] = None,
        timeout: Optional[float] = None,
        initial: Optional[SessionSnapshot] = None
    ):
        """
        Initialize a session.

        Args:
            call_model: Async model caller; defaults to the HTTP backends
            timeout: HTTP timeout for the default caller (None waits forever)
            initial: Starting snapshot, e.g. a saved critique or mockup
        """
        if call_model is None:
            call_model = functools.partial(providers.call_model, timeout=timeout)
        self._call_model = call_model
        self._snapshot = initial or SessionSnapshot()
        self._epoch = self._snapshot.epoch
        self._lane_epochs = {lane: self._epoch for lane in LANE_FLAGS}
        self._listeners: list[Listener] = []

    @property
    def snapshot(self) -> SessionSnapshot:
        """The most recently published state"""
        return self._snapshot

    @property
    def epoch(self) -> int:
        return self._epoch

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a callback for every published snapshot.

        Returns:
            A function that removes the listener again
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def load(
        self,
        critique_text: Optional[str] = None,
        mockup: Optional[str] = None
    ) -> SessionSnapshot:
        """Seed the session with a saved critique and/or mockup.

        Replaces all state, so in-flight operations of both lanes go stale.
        """
        self._epoch += 1
        self._lane_epochs = {lane: self._epoch for lane in LANE_FLAGS}
        self._snapshot = SessionSnapshot(
            critique_text=critique_text,
            report=parse_critique(critique_text) if critique_text else None,
            mockup=mockup,
            epoch=self._epoch,
        )
        self._notify()
        return self._snapshot

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def run_full_cycle(
        self,
        selection: ModelSelection,
        image: Optional[ImagePayload],
        user_context: str = ""
    ) -> SessionSnapshot:
        """
        Critique the screenshot, then generate a redesign from the critique.

        Args:
            selection: Model and API key
            image: Uploaded screenshot
            user_context: Optional free text for both prompts

        Returns:
            Final snapshot; ``error`` is set on full or partial failure

        Raises:
            InputValidationError: If the API key or image is missing
        """
        self._require_api_key(selection)
        if image is None:
            raise InputValidationError("Please upload an image to analyze.")

        return await self._run_cycle(selection, image, user_context)

    async def iterate(
        self,
        selection: ModelSelection,
        original_image: Optional[ImagePayload],
        current_mockup: Optional[str] = None,
        user_context: str = ""
    ) -> SessionSnapshot:
        """
        Re-audit the original screenshot and regenerate the mockup from scratch.

        The original image is analysed again, not the mockup.

        Raises:
            InputValidationError: If the key, a previous mockup or the
                                  original image is missing
        """
        self._require_api_key(selection)
        mockup = current_mockup if current_mockup is not None else self._snapshot.mockup
        if not mockup:
            raise InputValidationError("No redesign to iterate on. Please run analysis first.")
        if original_image is None:
            raise InputValidationError("Original image required for iteration.")

        return await self._run_cycle(selection, original_image, user_context)

    async def retry_code_generation(
        self,
        selection: ModelSelection,
        user_context: str = ""
    ) -> SessionSnapshot:
        """
        Re-run round 2 against the cached critique.

        Raises:
            InputValidationError: If the key or a cached critique is missing
        """
        self._require_api_key(selection)
        critique = self._snapshot.critique_text
        if not critique:
            raise InputValidationError("No analysis available. Please run analysis first.")

        epoch = self._begin(ANALYSIS_LANE, is_analyzing=True)
        try:
            await self._generate(epoch, selection, critique, user_context)
        finally:
            self._publish(epoch, is_analyzing=False, is_round2_running=False)
        return self._snapshot

    async def refine(
        self,
        selection: ModelSelection,
        request: str,
        current_mockup: Optional[str] = None
    ) -> SessionSnapshot:
        """
        Apply one free-text edit request to the current mockup.

        Without a mockup or with a blank request this is a no-op and the
        current snapshot is returned untouched. On failure the previous
        mockup is kept.

        Raises:
            InputValidationError: If the API key is missing
        """
        mockup = current_mockup if current_mockup is not None else self._snapshot.mockup
        request = (request or "").strip()
        if not mockup or not request:
            logger.debug("Refine skipped: nothing to refine or empty request")
            return self._snapshot
        self._require_api_key(selection)

        epoch = self._begin(REFINE_LANE, is_refining=True)
        try:
            prompt = build_refine_prompt(mockup, request)
            response = await self._call_model(selection, prompt, None)
            refined = extract_html(response)
        except ClearRedesignerError as e:
            logger.warning("Refinement failed: %s", e)
            self._publish(epoch, error=f"Refinement failed: {e}")
        else:
            logger.info("Refinement produced %d chars of HTML", len(refined))
            self._publish(epoch, mockup=refined)
        finally:
            self._publish(epoch, is_refining=False)
        return self._snapshot

    # ------------------------------------------------------------------
    # Rounds
    # ------------------------------------------------------------------

    async def _run_cycle(
        self,
        selection: ModelSelection,
        image: ImagePayload,
        user_context: str
    ) -> SessionSnapshot:
        epoch = self._begin(ANALYSIS_LANE, is_analyzing=True)
        try:
            critique = await self._critique(epoch, selection, image, user_context)
            if critique is not None:
                await self._generate(epoch, selection, critique, user_context)
        finally:
            self._publish(
                epoch,
                is_analyzing=False,
                is_round1_running=False,
                is_round2_running=False,
            )
        return self._snapshot

    async def _critique(
        self,
        epoch: int,
        selection: ModelSelection,
        image: ImagePayload,
        user_context: str
    ) -> Optional[str]:
        """Round 1. Returns the critique, or None if it failed or went stale."""
        self._publish(epoch, is_round1_running=True)
        logger.info("Round 1: critiquing %s with %s", image.name, selection.effective_model_id)

        try:
            critique = await self._call_model(selection, build_critique_prompt(user_context), image)
            if not critique or not critique.strip():
                raise ModelCallError(selection.effective_model_id, "No analysis generated.")
        except ClearRedesignerError as e:
            logger.warning("Round 1 failed: %s", e)
            self._publish(epoch, is_round1_running=False, error=f"Analysis failed: {e}")
            return None

        if not self._is_current(epoch):
            logger.info("Discarding stale critique from operation %d", epoch)
            return None

        report = parse_critique(critique)
        logger.info(
            "Round 1 done: %d chars, %d modules, overall score %s",
            len(critique), len(report.modules), report.overall_score,
        )
        self._publish(epoch, critique_text=critique, report=report, is_round1_running=False)
        return critique

    async def _generate(
        self,
        epoch: int,
        selection: ModelSelection,
        critique: str,
        user_context: str
    ) -> Optional[str]:
        """Round 2. Returns the mockup, or None if it failed or went stale."""
        self._publish(epoch, is_round2_running=True)
        logger.info("Round 2: generating redesign with %s", selection.effective_model_id)

        try:
            prompt = build_code_generation_prompt(critique, user_context)
            response = await self._call_model(selection, prompt, None)
            mockup = extract_html(response)
        except ClearRedesignerError as e:
            logger.warning("Round 2 failed, keeping round 1 critique: %s", e)
            self._publish(
                epoch,
                is_round2_running=False,
                error=f"Code generation failed: {_sentence(str(e))} {PARTIAL_FAILURE_NOTE}",
            )
            return None

        if not self._is_current(epoch):
            logger.info("Discarding stale mockup from operation %d", epoch)
            return None

        logger.info("Round 2 done: %d chars of HTML", len(mockup))
        self._publish(epoch, mockup=mockup, is_round2_running=False)
        return mockup

    # ------------------------------------------------------------------
    # State plumbing
    # ------------------------------------------------------------------

    def _require_api_key(self, selection: ModelSelection) -> None:
        if not selection.api_key or not selection.api_key.strip():
            raise InputValidationError("Please enter your API Key first.")

    def _is_current(self, epoch: int) -> bool:
        return epoch in self._lane_epochs.values()

    def _begin(self, lane: str, **flags: bool) -> int:
        """
        Start a new operation in ``lane``.

        Bumps the epoch and makes it current for that lane only, so older
        in-flight calls of the same lane become stale while the other lane
        carries on. Clears the error and resets this lane's busy flags.
        """
        self._epoch += 1
        self._lane_epochs[lane] = self._epoch
        changes = {flag: False for flag in LANE_FLAGS[lane]}
        changes.update(error=None, epoch=self._epoch)
        changes.update(flags)
        self._snapshot = self._snapshot.model_copy(update=changes)
        self._notify()
        return self._epoch

    def _publish(self, epoch: int, **changes) -> bool:
        """Publish changes if ``epoch`` is still current; returns whether it was."""
        if not self._is_current(epoch):
            return False
        self._snapshot = self._snapshot.model_copy(update=changes)
        self._notify()
        return True

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self._snapshot)
