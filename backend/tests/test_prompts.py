from app.interview.models import InterviewConfig, Turn
from app.interview.prompts import (
    INTERVIEWER_NAME,
    build_feedback_prompt,
    build_interviewer_directive,
    format_transcript,
)
from core.config import JD_EXCERPT_CHARS
from core.state import Speaker


def test_directive_embeds_config_verbatim(interview_config):
    directive = build_interviewer_directive(interview_config)

    assert "Hard" in directive
    assert "System Design" in directive
    assert "Backend Engineer" in directive
    assert "Acme" in directive
    assert INTERVIEWER_NAME in directive
    assert "Ask ONE question at a time" in directive


def test_directive_defaults_focus_and_truncates_job_description():
    config = InterviewConfig(
        role="Data Engineer",
        company="Globex",
        job_description="x" * (JD_EXCERPT_CHARS + 50),
        resume_text="resume",
    )
    directive = build_interviewer_directive(config)

    assert "Focus Area: General" in directive
    assert "x" * JD_EXCERPT_CHARS + "..." in directive
    assert "x" * (JD_EXCERPT_CHARS + 1) not in directive


def test_feedback_prompt_lists_turns_in_order():
    turns = [
        Turn(speaker=Speaker.INTERVIEWER, text="Tell me about yourself"),
        Turn(speaker=Speaker.CANDIDATE, text="I am a backend engineer"),
    ]

    assert format_transcript(turns) == "INTERVIEWER: Tell me about yourself\nCANDIDATE: I am a backend engineer"

    prompt = build_feedback_prompt(turns)
    assert prompt.index("INTERVIEWER: Tell me about yourself") < prompt.index("CANDIDATE: I am a backend engineer")
    assert '"technical_accuracy"' in prompt
    assert '"improvements"' in prompt
