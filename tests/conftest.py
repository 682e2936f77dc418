"""Test configuration and fixtures."""

from unittest.mock import MagicMock

import pytest

from weather_advisor.core.config import settings


@pytest.fixture(autouse=True)
def credentials(monkeypatch):
    """Provide both provider credentials unless a test removes them."""
    monkeypatch.setattr(settings, "weather_api_key", "test-weather-key")
    monkeypatch.setattr(settings, "gemini_api_key", "test-gemini-key")


@pytest.fixture
def make_response():
    """Factory for fake httpx responses."""

    def _make(payload=None, status_code=200):
        response = MagicMock(status_code=status_code)
        response.json.return_value = payload
        if status_code >= 400:
            response.raise_for_status.side_effect = Exception(f"HTTP {status_code}")
        else:
            response.raise_for_status.return_value = None
        return response

    return _make


@pytest.fixture
def gemini_payload():
    """Factory for Gemini generateContent bodies."""

    def _make(text):
        return {"candidates": [{"content": {"parts": [{"text": text}], "role": "model"}}]}

    return _make


@pytest.fixture
def mock_geocoding_response():
    """Mock geocoding API response."""
    return {
        "results": [
            {
                "id": 1850147,
                "name": "Tokyo",
                "latitude": 35.6895,
                "longitude": 139.69171,
                "country": "Japan",
            }
        ]
    }


@pytest.fixture
def mock_weather_response():
    """Mock OpenWeather current conditions response."""
    return {
        "coord": {"lon": 139.6917, "lat": 35.6895},
        "weather": [{"id": 803, "main": "Clouds", "description": "broken clouds", "icon": "04d"}],
        "main": {
            "temp": 18.4,
            "feels_like": 17.9,
            "temp_min": 16.2,
            "temp_max": 20.1,
            "pressure": 1014,
            "humidity": 62,
        },
        "visibility": 10000,
        "wind": {"speed": 3.6, "deg": 200},
        "clouds": {"all": 75},
        "dt": 1700000000,
        "sys": {"country": "JP", "sunrise": 1699994400, "sunset": 1700032200},
        "timezone": 32400,
        "name": "Tokyo",
        "cod": 200,
    }
