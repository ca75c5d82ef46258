from typing import Iterable

from core.config import JD_EXCERPT_CHARS, RESUME_EXCERPT_CHARS

INTERVIEWER_NAME = "Alex"
OPENING_MESSAGE = "Start the interview."
OPENING_FALLBACK = f"Hello, I am {INTERVIEWER_NAME}. Let's start the interview."
REPLY_FALLBACK = "Thank you. Moving to the next question."

SCORE_METRICS = ("clarity", "technical_accuracy", "communication")


def _excerpt(text: str, limit: int) -> str:
    text = str(text or "").strip()
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


def build_interviewer_directive(config) -> str:
    """
    System directive for one interview channel.
    Role, company, difficulty and focus area are embedded verbatim.
    """
    focus_area = config.focus_area or "General"

    return f"""
You are {INTERVIEWER_NAME}, a professional AI Interviewer for the role of {config.role} at {config.company}.

Context:
- Difficulty: {config.difficulty}
- Focus Area: {focus_area}
- Job Description: {_excerpt(config.job_description, JD_EXCERPT_CHARS)}
- Candidate Resume: {_excerpt(config.resume_text, RESUME_EXCERPT_CHARS)}

Instructions:
1. Ask ONE question at a time.
2. Wait for the candidate's answer.
3. After the answer, briefly acknowledge it, then ask the NEXT question.
4. Keep questions concise.
5. Do not provide feedback yet, just conduct the interview.

Start by introducing yourself as {INTERVIEWER_NAME} and asking the first question.
""".strip()


def format_transcript(turns: Iterable) -> str:
    return "\n".join(f"{turn.speaker.value.upper()}: {turn.text}" for turn in turns)


def build_feedback_prompt(turns: Iterable) -> str:
    """
    Called ONCE per scoring attempt, after the live conversation is closed.
    """
    history = format_transcript(turns)
    score_fields = ", ".join(f'"{name}": number (0-10)' for name in SCORE_METRICS)

    return f"""
The interview is now finished.
Based on the conversation history below, provide a structured JSON assessment of the candidate.

Conversation History:
{history}

Required JSON Structure:
{{
  "scores": {{ {score_fields} }},
  "feedback": {{ "strengths": string[], "improvements": string[] }},
  "summary": "2-3 sentence summary of candidate performance"
}}

Do not output markdown code blocks, just the JSON string.
""".strip()
