"""
Unit tests for API request/response models.
"""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from communication_mirror.api.models import (
    AnalyzeRequest,
    AnalyzeResponse,
    ErrorResponse,
    HealthResponse,
    SessionCreatedResponse,
    SingleAnalysisResponse,
    StatusResponse,
)


def test_analyze_request_accepts_camel_case():
    request = AnalyzeRequest.model_validate({"message": "Hi there", "sessionId": "abc"})

    assert request.message == "Hi there"
    assert request.session_id == "abc"


def test_analyze_request_session_optional():
    assert AnalyzeRequest(message="Hi").session_id is None


@pytest.mark.parametrize("message", ["", "   ", "\n\t"])
def test_analyze_request_rejects_blank_message(message):
    with pytest.raises(ValidationError) as exc_info:
        AnalyzeRequest(message=message)

    assert "Message cannot be empty" in str(exc_info.value)


def test_analyze_request_requires_message():
    with pytest.raises(ValidationError):
        AnalyzeRequest.model_validate({"sessionId": "abc"})


def test_analyze_response_serializes_by_alias(sample_bundle):
    response = AnalyzeResponse(data=sample_bundle, session_id="abc")

    body = response.model_dump(by_alias=True, mode="json")

    assert body["success"] is True
    assert body["sessionId"] == "abc"
    assert body["data"]["impact"]["recipientResponse"]
    assert body["data"]["alternatives"][0]["tags"][0]["isPositive"] is True
    assert set(body["data"]) == {"intent", "tone", "impact", "alternatives"}


def test_single_analysis_response_with_list(sample_bundle):
    response = SingleAnalysisResponse(data=sample_bundle.alternatives, session_id="abc")

    body = response.model_dump(by_alias=True, mode="json")

    assert isinstance(body["data"], list)
    assert body["data"][0]["badge"] == "Option A"


def test_session_created_response():
    created = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)

    body = SessionCreatedResponse(session_id="abc", created_at=created).model_dump(by_alias=True)

    assert body == {"success": True, "sessionId": "abc", "createdAt": created}


def test_status_response_aliases():
    status = StatusResponse(
        model_ready=False,
        model_loading=True,
        model={"runtime": "OllamaRuntime"},
    )

    body = status.model_dump(by_alias=True)

    assert body["modelReady"] is False
    assert body["modelLoading"] is True
    assert body["error"] is None
    assert body["sessions"] == {}


def test_health_response_defaults():
    health = HealthResponse(status="ok", version="0.1.0")

    assert health.service == "communication-mirror"
    assert health.timestamp.tzinfo is not None


def test_error_response():
    error = ErrorResponse(error="session_not_found", message="Session not found")

    assert error.details is None
    assert isinstance(error.timestamp, datetime)
