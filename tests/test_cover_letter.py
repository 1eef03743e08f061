"""Tests for /api/generate-cover-letter."""

from __future__ import annotations

import pytest

from conftest import gemini_reply, make_settings, openai_reply


def test_info_endpoint(client):
    resp = client.get("/api/generate-cover-letter")
    assert resp.status_code == 200
    assert resp.json() == {"message": "Cover Letter Generator API"}


@pytest.mark.parametrize("missing", ["cvData", "jobDescription"])
def test_missing_fields_return_400(client, transport, cv_data, missing):
    body = {"cvData": cv_data, "jobDescription": "Build APIs"}
    del body[missing]

    resp = client.post("/api/generate-cover-letter", json=body)

    assert resp.status_code == 400
    assert resp.json() == {"error": "CV data and job description are required"}
    assert transport.calls == 0


def test_missing_key_returns_500(make_client, transport, cv_data):
    client = make_client(settings=make_settings(openai_api_key=""))
    resp = client.post("/api/generate-cover-letter", json={"cvData": cv_data, "jobDescription": "Build APIs"})
    assert resp.status_code == 500
    assert resp.json() == {"error": "OPENAI_API_KEY not configured"}
    assert transport.calls == 0


def test_cover_letter_is_wrapped_and_trimmed(client, transport, cv_data):
    transport.responder = lambda request: openai_reply("\n  Dear Hiring Manager,\n\nHello.\n  ")

    resp = client.post(
        "/api/generate-cover-letter",
        json={"cvData": cv_data, "jobDescription": "Build APIs", "company": "Acme", "position": "Engineer"},
    )

    assert resp.status_code == 200
    assert resp.json() == {"coverLetter": "Dear Hiring Manager,\n\nHello."}
    body = transport.json_body()
    assert body["messages"] == [{"role": "user", "content": body["messages"][0]["content"]}]
    prompt = body["messages"][0]["content"]
    assert "Company: Acme" in prompt
    assert "Position: Engineer" in prompt
    assert "Job Description: Build APIs" in prompt


def test_gemini_cover_letter(client, transport, cv_data):
    transport.responder = lambda request: gemini_reply("Letter")

    resp = client.post(
        "/api/generate-cover-letter",
        json={"cvData": cv_data, "jobDescription": "Build APIs", "provider": "google"},
    )

    assert resp.json() == {"coverLetter": "Letter"}
    assert transport.requests[0].url.host == "generativelanguage.googleapis.com"
    prompt = transport.json_body()["contents"][0]["parts"][0]["text"]
    assert "Company: The Company" in prompt
    assert "Position: The Position" in prompt
