"""
AI Recommendation Client
Calls an OpenAI-compatible chat endpoint (DeepSeek by default) to draft
classroom guidance for a submission.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional

from openai import OpenAI, OpenAIError

from concern2care.core.config import settings
from concern2care.core.errors import AIServiceError

logger = logging.getLogger(__name__)

DISCLAIMER = (
    "IMPORTANT DISCLAIMER: These AI-generated recommendations are for informational "
    "purposes only and should not replace professional educational assessment. Please "
    "refer this student to your school's student support department for proper "
    "evaluation and vetting. All AI-generated suggestions must be reviewed and approved "
    "by qualified educational professionals before implementation."
)

URGENT_SECTION = """

### URGENT CASE - IMMEDIATE ACTION REQUIRED

**Share this case with Student Support immediately:**
* Forward this concern and intervention plan to your school's student support team
* Schedule urgent consultation with counselor, social worker, or special education coordinator
* Document all interventions and student responses for the support team
* Consider immediate safety protocols if student welfare is at risk
* Escalate to administration if no improvement within 48-72 hours"""

SYSTEM_PROMPT = (
    "You are a highly trained educational intervention specialist with expertise in "
    "evidence-based practices, special education law, and research-backed classroom "
    "strategies. Provide research-backed strategies with specific implementation "
    "details, materials, progress monitoring, and timeline expectations."
)

FOLLOW_UP_SYSTEM_PROMPT = (
    "You are a highly trained educational intervention specialist with expertise in "
    "implementation science and evidence-based classroom practices. Provide practical, "
    "step-by-step implementation guidance, troubleshooting, and progress monitoring."
)

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F\ufffd]")


@dataclass
class ConcernDescriptor:
    student_first_name: str
    student_last_initial: str
    student_age: int
    student_grade: str
    task_type: str
    concern_types: List[str]
    concern_description: str
    severity_level: str
    actions_taken: List[str] = field(default_factory=list)
    learning_profile: List[str] = field(default_factory=list)


@dataclass
class Recommendation:
    text: str
    disclaimer: str


def sanitize_text(text: str) -> str:
    """Strip null bytes and control characters the database rejects."""
    if not text:
        return text
    return _CONTROL_CHARS.sub("", text).strip()


def _task_label(task_type: str) -> str:
    if task_type == "differentiation":
        return "differentiation strategies"
    return "Tier 2 intervention plan"


def build_prompt(req: ConcernDescriptor) -> str:
    concern_types = ", ".join(req.concern_types) if req.concern_types else "Not specified"
    actions = ", ".join(req.actions_taken) if req.actions_taken else "None reported"
    profile = ", ".join(req.learning_profile) if req.learning_profile else "Not specified"
    return (
        f"Provide a {_task_label(req.task_type)} for the following student.\n\n"
        f"Student: {req.student_first_name} {req.student_last_initial}. "
        f"(age {req.student_age}, grade {req.student_grade})\n"
        f"Learning profile: {profile}\n"
        f"Concern types: {concern_types}\n"
        f"Severity: {req.severity_level}\n"
        f"Description: {req.concern_description}\n"
        f"Actions already taken: {actions}\n\n"
        "Structure the response with clear headings and bullet points. Make every "
        "recommendation immediately actionable for a general education classroom."
    )


def build_template_recommendations(req: ConcernDescriptor) -> str:
    """Draft used when no AI key is configured (development)."""
    concern_types = ", ".join(req.concern_types) or "the reported concern"
    return (
        f"## {_task_label(req.task_type).capitalize()} for "
        f"{req.student_first_name} {req.student_last_initial}.\n\n"
        f"**Focus areas:** {concern_types}\n\n"
        "### Immediate Strategies\n"
        "* Provide clear, chunked instructions with visual supports\n"
        "* Offer preferential seating and frequent check-ins\n"
        "* Use positive reinforcement tied to specific, observable goals\n\n"
        "### Progress Monitoring\n"
        "* Record a short daily data point for 2-4 weeks\n"
        "* Review progress with the student support team after 4 weeks"
    )


class RecommendationClient:
    """Thin wrapper around the chat completions API."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.AI_API_KEY
        self.model = model or settings.AI_MODEL
        self._client = None
        if self.api_key:
            self._client = OpenAI(
                api_key=self.api_key,
                base_url=base_url or settings.AI_BASE_URL,
                timeout=settings.AI_TIMEOUT_SECONDS,
            )
        else:
            logger.warning("AI_API_KEY not set. Recommendations will use the template draft.")

    @property
    def configured(self) -> bool:
        return self._client is not None

    def _complete(self, system_prompt: str, prompt: str) -> str:
        try:
            response = self._client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": prompt},
                ],
                max_tokens=settings.AI_MAX_TOKENS,
                temperature=0.7,
            )
        except OpenAIError as e:
            logger.error(f"AI request failed: {e}")
            raise AIServiceError(f"AI service request failed: {e}") from e

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise AIServiceError("AI service returned an empty response")
        return content

    def generate_recommendations(self, req: ConcernDescriptor) -> Recommendation:
        logger.info(
            f"Generating recommendations for {req.student_first_name} "
            f"{req.student_last_initial}. ({req.task_type}, {req.severity_level})"
        )
        if self.configured:
            text = self._complete(SYSTEM_PROMPT, build_prompt(req))
        else:
            text = build_template_recommendations(req)

        text = sanitize_text(text)
        if req.severity_level == "urgent":
            text += URGENT_SECTION
        return Recommendation(text=text, disclaimer=DISCLAIMER)

    def follow_up_assistance(
        self,
        *,
        original_recommendations: str,
        question: str,
        req: ConcernDescriptor,
    ) -> Recommendation:
        if not self.configured:
            text = (
                "### Implementation Guidance\n"
                f"* Question: {question}\n"
                "* Start with one strategy and apply it consistently for two weeks\n"
                "* Collect brief daily data before adjusting the plan\n"
                "* Bring the data to your student support team if progress stalls"
            )
            return Recommendation(text=text, disclaimer="")

        prompt = (
            f"Student: {req.student_first_name} {req.student_last_initial}. "
            f"(grade {req.student_grade})\n"
            f"Concern: {req.concern_description}\n\n"
            f"Previously recommended:\n{original_recommendations}\n\n"
            f"Teacher's follow-up question: {question}\n\n"
            "Give step-by-step implementation guidance, common challenges with "
            "solutions, and how to monitor progress."
        )
        text = sanitize_text(self._complete(FOLLOW_UP_SYSTEM_PROMPT, prompt))
        return Recommendation(text=text, disclaimer="")


# Global client cache
_client_instance: Optional[RecommendationClient] = None


def get_ai_client() -> RecommendationClient:
    global _client_instance
    if _client_instance is None:
        _client_instance = RecommendationClient()
    return _client_instance
