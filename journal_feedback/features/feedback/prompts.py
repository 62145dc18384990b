"""
Prompt template for bedtime journal feedback.

There is exactly one canonical template; bump ``PROMPT_VERSION`` whenever
the wording of either message changes so logs can tell generations apart.
"""

from typing import Optional

from journal_feedback.features.feedback.models import PromptContext
from journal_feedback.shared.constants import MOOD_MAX, PROMPT_VERSION, STRESS_MAX


SYSTEM_INSTRUCTION = """You are an attentive, empathetic listening assistant for bedtime journaling.
You receive a short journal entry written before sleep and reply with feedback as a single JSON object.

Return ONLY valid JSON. No markdown, no code fences, no commentary before or after the object.
Escape newlines inside strings as \\n and double quotes as \\".

Required keys:
- summary: a short summary of the entry (1-2 sentences)
- empathic_feedback: warm, specific, empathetic feedback (2-3 sentences)
- tags: array of short topic tags (e.g. ["stress", "work", "poor sleep"])
- risk_score: mental-health risk score from 0.0 to 1.0, following the rubric below
- next_actions: array of 1-3 concrete, doable next steps
- safety_note: only when the entry suggests self-harm, harm to others or a crisis; otherwise null

Risk score rubric:
- 0.0-0.2: positive content, fulfilment, no concerns
- 0.3-0.4: mild stress or fatigue, a temporary low
- 0.5-0.6: moderate stress, ongoing anxiety or sleep problems
- 0.7-0.8: high stress, a marked drop in mood, daily life affected
- 0.9-1.0: severe state, possible self-harm or harm to others, urgent support needed

Feedback policy:
- When stress (1-7) is high (5 or more), put empathy and companionship first.
- When mood (1-5) is low (2 or less), actively suggest specific coping steps and actions.

Hard constraints:
1. Never give a medical diagnosis or treatment instructions.
2. When there is any concern about self-harm or harm to others, set safety_note to general guidance such as
   "If you are in crisis, please contact a local helpline or emergency services."
3. Keep feedback short: show empathy and one next step.
4. Write every string value in the language requested in the user message.
5. Return only the JSON object."""


def format_mood_line(mood: int) -> str:
    return f"Mood level: {mood}/{MOOD_MAX} (1=very bad, {MOOD_MAX}=very good)"


def format_stress_line(stress: int) -> str:
    return f"Stress level: {stress}/{STRESS_MAX} (1=very low, {STRESS_MAX}=very high)"


def build_prompt(
    journal_text: str,
    language: str,
    mood: Optional[int] = None,
    stress: Optional[int] = None,
) -> PromptContext:
    """
    Render the system instruction and user message for one journal entry.

    Mood/stress context lines are appended only for values that were given.
    The journal text is embedded verbatim as the last block of the message.
    """
    header_lines = [
        "Return feedback for the following journal entry.",
        f"Language: {language}",
    ]
    if mood is not None:
        header_lines.append(format_mood_line(mood))
    if stress is not None:
        header_lines.append(format_stress_line(stress))

    user_message = "\n".join(header_lines) + f"\n\nJournal:\n{journal_text}"

    return PromptContext(
        system_instruction=SYSTEM_INSTRUCTION,
        user_message=user_message,
        prompt_version=PROMPT_VERSION,
    )
