import os
import sys
from pathlib import Path

import pytest


ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("OPENAI_API_KEY", "test-key")
os.environ.setdefault("QA_MODE", "true")


@pytest.fixture(autouse=True)
def _test_env(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("ENV", "development")
    monkeypatch.setenv("QA_MODE", "true")
    monkeypatch.setenv("OPENAI_API_KEY", "test-key")


@pytest.fixture
def interview_config():
    from app.interview.models import InterviewConfig

    return InterviewConfig(
        role="Backend Engineer",
        company="Acme",
        job_description="Build and operate Python services on AWS.",
        resume_text="Five years of Python, Postgres and Kafka.",
        difficulty="Hard",
        focus_area="System Design",
    )
