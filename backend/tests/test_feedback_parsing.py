import dataclasses

import pytest

from app.interview.feedback import parse_feedback_report


def test_parse_feedback_report_reads_nested_lists():
    raw = """
    {
      "scores": {"clarity": 7, "technical_accuracy": 8.6, "communication": "6"},
      "feedback": {"strengths": ["Clear structure"], "improvements": ["Quantify impact", ""]},
      "summary": "Solid backend fundamentals."
    }
    """
    report = parse_feedback_report(raw)

    assert report is not None
    assert report.scores == {"clarity": 7, "technical_accuracy": 9, "communication": 6}
    assert report.strengths == ("Clear structure",)
    assert report.improvements == ("Quantify impact",)
    assert report.summary == "Solid backend fundamentals."


def test_parse_feedback_report_strips_code_fences_and_accepts_top_level_lists():
    raw = '```json\n{"scores": {"clarity": 5}, "strengths": "Concise", "improvements": []}\n```'
    report = parse_feedback_report(raw)

    assert report is not None
    assert report.scores == {"clarity": 5}
    assert report.strengths == ("Concise",)


def test_parse_feedback_report_finds_object_inside_prose():
    report = parse_feedback_report('Here you go: {"summary": "Good"} Thanks!')
    assert report is not None
    assert report.summary == "Good"


def test_parse_feedback_report_clamps_scores_and_drops_garbage():
    report = parse_feedback_report('{"scores": {"clarity": 42, "communication": -3, "depth": "n/a"}}')
    assert report is not None
    assert report.scores == {"clarity": 10, "communication": 0}


def test_parse_feedback_report_rejects_malformed_payloads():
    assert parse_feedback_report("") is None
    assert parse_feedback_report("not json at all") is None
    assert parse_feedback_report("[1, 2, 3]") is None
    assert parse_feedback_report('{"scores": {}, "summary": ""}') is None
    assert parse_feedback_report('{"scores": ') is None


def test_feedback_report_cannot_be_changed_after_parsing():
    report = parse_feedback_report('{"scores": {"clarity": 7}, "strengths": ["Clear"]}')

    with pytest.raises(TypeError):
        report.scores["clarity"] = 10
    with pytest.raises(dataclasses.FrozenInstanceError):
        report.summary = "rewritten"

    exported = report.to_dict()
    exported["scores"]["clarity"] = 0
    assert report.scores["clarity"] == 7
