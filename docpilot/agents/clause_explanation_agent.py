"""
Clause Explanation Agent - plain-language explanation of every clause.

One explanation is generated per clause candidate, concurrently and bounded
by a semaphore owned by this task. Each explanation is checked by a verifier
call; a rejected explanation is regenerated with the verifier's reason as
feedback, up to MAX_EXPLANATION_ATTEMPTS times. Results are reassembled in
document order.

Aggregation:
- every clause validated and verified: Success
- any clause degraded, unverified or failed (but not all failed): Degraded,
  with a placeholder explanation for each failed clause
- every clause failed: Failed with the kind of the first failure
"""

import asyncio
from typing import List, Optional

from msgspec.structs import replace

from docpilot.agents.base import AgentRun, GenerationAgent
from docpilot.logging_config import get_task_logger, log_task_execution
from docpilot.models import (
    AnalysisRequest,
    ClauseCandidate,
    ClauseExplanation,
    Degraded,
    ExplanationVerification,
    Failed,
    Success,
)


MAX_CONCURRENT_CALLS = 5
MAX_EXPLANATION_ATTEMPTS = 3
EXPLANATION_PREVIEW_CHARS = 1200

UNPARSABLE_EXPLANATION_FEEDBACK = (
    "The previous response was not a JSON object in the requested format."
)
UNREADABLE_VERDICT_REASON = "The verifier response could not be read."

FAILED_CLAUSE_TEXT = (
    "Error: The AI was unable to generate a reliable explanation for this "
    "clause after multiple attempts."
)


class ClauseExplanationAgent(GenerationAgent):
    """Explains each clause in plain language with jargon definitions."""

    TASK_NAME = "clauses"

    def __init__(
        self,
        runner,
        validator=None,
        max_concurrent_calls: int = MAX_CONCURRENT_CALLS,
        max_attempts: int = MAX_EXPLANATION_ATTEMPTS
    ):
        super().__init__(runner, validator)
        self.max_concurrent_calls = max_concurrent_calls
        self.max_attempts = max(1, max_attempts)

    def _build_prompt(
        self,
        clause: ClauseCandidate,
        request: AnalysisRequest,
        retry_feedback: Optional[str] = None
    ) -> str:
        retry_section = ""
        if retry_feedback:
            retry_section = f"""

You are being asked to retry this explanation. A previous attempt was flagged as inaccurate by a verifier.
Reason for failure: {retry_feedback}
Please correct the explanation based on this feedback."""

        return f"""You are an AI legal assistant specializing in simplifying complex legal documents.{retry_section}

Explain the following legal clause in plain English, tailored to the user's role. You must also:
1. Identify any legal jargon terms.
2. Provide a simple, one-sentence definition for each jargon term you find.
3. Ground your explanation SOLELY in the provided text and do not add external information.

IMPORTANT: Your entire response must be in the following language: {request.language}

User Role: {request.user_role}

Clause Text:
\"\"\"
{clause.text}
\"\"\"

Respond with ONLY a JSON object of the form:
{{"original_text": string, "plain_english_explanation": string, "jargon_terms": [{{"term": string, "definition": string}}]}}"""

    @staticmethod
    def _fallback_for(clause: ClauseCandidate):
        def fallback(raw_text: str) -> ClauseExplanation:
            explanation = " ".join(raw_text.split())[:EXPLANATION_PREVIEW_CHARS]
            return ClauseExplanation(
                original_text=clause.text,
                plain_english_explanation=explanation or FAILED_CLAUSE_TEXT,
                jargon_terms=[],
                index=clause.index
            )
        return fallback

    @staticmethod
    def _build_verification_prompt(clause: ClauseCandidate, explanation: ClauseExplanation) -> str:
        return f"""You are an AI verifier. Your sole purpose is to check if an AI-generated explanation accurately and completely reflects its source text without adding any external information.

Source Text:
\"\"\"
{clause.text}
\"\"\"

Explanation:
\"\"\"
{explanation.plain_english_explanation}
\"\"\"

The explanation is VALID only if it contains information present in the source text. It is INVALID if it adds facts, obligations or numbers that the source text does not contain, or if it misstates the source text.

Respond with ONLY a JSON object of the form:
{{"verified": boolean, "reason": string}}
The reason must say what is wrong when verified is false, and may be empty when verified is true."""

    @staticmethod
    def _verdict_fallback(raw_text: str) -> ExplanationVerification:
        return ExplanationVerification(verified=False, reason=UNREADABLE_VERDICT_REASON)

    async def verify_explanation(
        self,
        clause: ClauseCandidate,
        explanation: ClauseExplanation
    ) -> AgentRun:
        """Check that an explanation only restates its clause.

        Returns:
            AgentRun with a TaskOutcome[ExplanationVerification]
        """
        return await self._generate_validated(
            self._build_verification_prompt(clause, explanation),
            ExplanationVerification,
            self._verdict_fallback,
            task_name="clause_verification"
        )

    @staticmethod
    def _pin(outcome, clause: ClauseCandidate):
        if isinstance(outcome, Success):
            return Success(value=replace(outcome.value, index=clause.index, original_text=clause.text))
        if isinstance(outcome, Degraded):
            return Degraded(
                value=replace(outcome.value, index=clause.index, original_text=clause.text),
                reason=outcome.reason
            )
        return outcome

    async def _explain_one(
        self,
        clause: ClauseCandidate,
        request: AnalysisRequest,
        semaphore: asyncio.Semaphore,
        request_id: str = "unknown"
    ) -> AgentRun:
        task_logger = get_task_logger(request_id, "ClauseExplanationAgent")
        attempts = 0
        feedback: Optional[str] = None
        last = None

        for attempt in range(1, self.max_attempts + 1):
            async with semaphore:
                run = await self._generate_validated(
                    self._build_prompt(clause, request, feedback),
                    ClauseExplanation,
                    self._fallback_for(clause)
                )
                attempts += run.attempts

                # The runner has already retried transient failures
                if isinstance(run.outcome, Failed):
                    if last is None:
                        return AgentRun(outcome=run.outcome, attempts=attempts)
                    feedback = run.outcome.message
                    break

                last = self._pin(run.outcome, clause)
                if isinstance(last, Degraded):
                    feedback = UNPARSABLE_EXPLANATION_FEEDBACK
                    continue

                check = await self.verify_explanation(clause, last.value)
                attempts += check.attempts

            verdict = check.outcome
            if isinstance(verdict, Failed):
                return AgentRun(
                    outcome=Degraded(
                        value=last.value,
                        reason=f"explanation could not be verified: {verdict.message}"
                    ),
                    attempts=attempts
                )
            if verdict.value.verified:
                return AgentRun(outcome=last, attempts=attempts)

            feedback = verdict.value.reason or "The explanation did not match the clause."
            task_logger.warning(
                f"Explanation for clause {clause.index} rejected by verifier",
                attempt=attempt,
                reason=feedback
            )

        task_logger.warning(
            f"Explanation for clause {clause.index} kept unverified",
            attempt=attempt,
            reason=feedback
        )
        return AgentRun(
            outcome=Degraded(
                value=last.value,
                reason=f"explanation not verified after {attempt} attempts: {feedback}"
            ),
            attempts=attempts
        )

    @log_task_execution("ClauseExplanationAgent")
    async def explain(
        self,
        clauses: List[ClauseCandidate],
        request: AnalysisRequest,
        request_id: str = "unknown"
    ) -> AgentRun:
        """Explain all clause candidates.

        Args:
            clauses: Clause candidates in document order
            request: Analysis request (role and language)
            request_id: Request identifier for logging

        Returns:
            AgentRun with a TaskOutcome[List[ClauseExplanation]] in document order
        """
        task_logger = get_task_logger(request_id, "ClauseExplanationAgent")

        if not clauses:
            return AgentRun(outcome=Success(value=[]), attempts=0)

        semaphore = asyncio.Semaphore(self.max_concurrent_calls)
        runs = await asyncio.gather(
            *(self._explain_one(clause, request, semaphore, request_id) for clause in clauses)
        )

        attempts = sum(run.attempts for run in runs)
        failures = [run.outcome for run in runs if isinstance(run.outcome, Failed)]
        degraded_count = sum(1 for run in runs if isinstance(run.outcome, Degraded))

        if len(failures) == len(clauses):
            first = failures[0]
            task_logger.error(
                "All clause explanations failed",
                clause_count=len(clauses),
                error_kind=first.classification.value
            )
            return AgentRun(
                outcome=Failed(
                    classification=first.classification,
                    message=f"All {len(clauses)} clause explanations failed: {first.message}"
                ),
                attempts=attempts
            )

        explanations: List[ClauseExplanation] = []
        for clause, run in zip(clauses, runs):
            if isinstance(run.outcome, Failed):
                explanations.append(ClauseExplanation(
                    original_text=clause.text,
                    plain_english_explanation=f"{FAILED_CLAUSE_TEXT} The last attempt failed due to: {run.outcome.message}",
                    jargon_terms=[],
                    index=clause.index
                ))
            else:
                explanations.append(run.outcome.value)

        task_logger.info(
            "Clause explanations complete",
            clause_count=len(clauses),
            degraded_count=degraded_count,
            failed_count=len(failures)
        )

        if failures or degraded_count:
            reason = (
                f"{degraded_count} of {len(clauses)} clauses used heuristic fallback or were not verified; "
                f"{len(failures)} of {len(clauses)} clauses could not be explained"
            )
            task_logger.warning(f"Clause explanations degraded: {reason}")
            return AgentRun(outcome=Degraded(value=explanations, reason=reason), attempts=attempts)

        return AgentRun(outcome=Success(value=explanations), attempts=attempts)
