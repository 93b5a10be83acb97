"""
Mindtrail Backend - Profile Aggregation Tests
==============================================

What we test:
    ✅ A user with no records gets null/[] for every form, and 200
    ✅ Latest-record fields hold the newest entry; history fields are oldest first
    ✅ `dates` lists each journal's experience date in history order
    ✅ Unknown email is 404; missing email is 400
"""

import pytest

from conftest import register

BUNDLE_KEYS = {
    "user",
    "dates",
    "journalAllData",
    "onboardingQuestion",
    "journals",
    "muscleSelections",
    "journeys",
    "postExperiences",
    "audios",
    "muscleSelectionsAll",
    "journeysAll",
    "postExperiencesAll",
    "audiosAll",
}


async def _journal(client, headers, experience_date: str, medicine: str):
    response = await client.post(
        "/api/journal",
        headers=headers,
        json={
            "journalEntry": {
                "medicine": medicine,
                "intention": "Clarity",
                "experienceDate": experience_date,
            }
        },
    )
    assert response.status_code == 201


class TestProfileEndpoint:

    @pytest.mark.asyncio
    async def test_empty_profile(self, test_client, auth_headers):
        response = await test_client.post(
            "/api/profile", headers=auth_headers, json={"email": "sky@example.com"}
        )
        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Profile data fetched successfully"

        data = body["data"]
        assert set(data) == BUNDLE_KEYS
        assert data["user"]["email"] == "sky@example.com"
        assert data["user"]["isFirstLogin"] is False
        assert "passwordHash" not in data["user"]
        for key in ("onboardingQuestion", "journals", "muscleSelections",
                    "journeys", "postExperiences", "audios"):
            assert data[key] is None
        for key in ("dates", "journalAllData", "muscleSelectionsAll",
                    "journeysAll", "postExperiencesAll", "audiosAll"):
            assert data[key] == []

    @pytest.mark.asyncio
    async def test_latest_and_history(self, test_client, auth_headers):
        await _journal(test_client, auth_headers, "2024-01-10", "First")
        await _journal(test_client, auth_headers, "2024-02-20", "Second")
        for muscles in (["ABS"], ["NECK", "HEAD"]):
            response = await test_client.post(
                "/api/save-muscles",
                headers=auth_headers,
                json={"selectedMuscles": muscles, "date": "2024-02-20"},
            )
            assert response.status_code == 201
        await test_client.post(
            "/api/saveAudio",
            headers=auth_headers,
            json={"postExperience": "Quiet and warm.", "date": "2024-02-21"},
        )

        response = await test_client.post(
            "/api/profile", headers=auth_headers, json={"email": " SKY@example.com "}
        )
        assert response.status_code == 200
        data = response.json()["data"]

        assert data["dates"] == ["2024-01-10", "2024-02-20"]
        assert [j["medicine"] for j in data["journalAllData"]] == ["First", "Second"]
        assert data["journals"]["medicine"] == "Second"
        assert data["muscleSelections"]["selectedMuscles"] == ["NECK", "HEAD"]
        assert [m["selectedMuscles"] for m in data["muscleSelectionsAll"]] == [
            ["ABS"],
            ["NECK", "HEAD"],
        ]
        assert data["audios"]["audio"] == "Summary: Quiet and warm."
        assert len(data["audiosAll"]) == 1
        assert data["journeys"] is None
        assert data["journeysAll"] == []

    @pytest.mark.asyncio
    async def test_records_are_per_user(self, test_client, auth_headers):
        await _journal(test_client, auth_headers, "2024-01-10", "Mine")
        other = await register(test_client, email="other@example.com", name="Other")

        response = await test_client.post(
            "/api/profile",
            headers={"Authorization": f"Bearer {other['token']}"},
            json={"email": "other@example.com"},
        )
        assert response.status_code == 200
        assert response.json()["data"]["journalAllData"] == []

    @pytest.mark.asyncio
    async def test_unknown_email(self, test_client, auth_headers):
        response = await test_client.post(
            "/api/profile", headers=auth_headers, json={"email": "nobody@example.com"}
        )
        assert response.status_code == 404
        assert "data" not in response.json()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [{}, {"email": "   "}])
    async def test_missing_email(self, test_client, auth_headers, body):
        response = await test_client.post("/api/profile", headers=auth_headers, json=body)
        assert response.status_code == 400
        assert response.json()["details"]["fields"] == ["email"]
