"""Pytest configuration and fixtures."""

import json
from collections.abc import Callable, Generator
from pathlib import Path

import cv2
import numpy as np
import pytest
from fastapi.testclient import TestClient

from box_calibration.api.dependencies import clear_dependency_caches
from box_calibration.api.server import app
from box_calibration.core.settings import AppSettings, reload_settings
from box_calibration.core.settings.app_settings import (
    APIServerSettings,
    CalibrationSettings,
    LoggingSettings,
)
from box_calibration.models import ProblemRecord, Rectangle


@pytest.fixture(autouse=True)
def isolated_environment(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Generator[None, None, None]:
    """
    Point persisted preferences at a temporary file and reset cached singletons.

    Yields:
        None
    """
    monkeypatch.setenv("BOXCAL_CALIBRATION__PREFERENCES_FILE", str(tmp_path / "prefs.json"))
    monkeypatch.setenv("BOXCAL_API_SERVER__RATE_LIMIT", "1000/minute")
    monkeypatch.delenv("BOXCAL_API_SERVER__API_KEY", raising=False)
    reload_settings()
    clear_dependency_caches()
    yield
    clear_dependency_caches()


@pytest.fixture
def mock_settings(tmp_path: Path) -> AppSettings:
    """
    Create application settings for testing.

    Returns:
        AppSettings: Settings instance writing preferences under tmp_path.
    """
    return AppSettings(
        api_server=APIServerSettings(rate_limit="1000/minute"),
        calibration=CalibrationSettings(
            preferences_file=str(tmp_path / "service_prefs.json"),
            max_sessions=4,
            hit_slop=2.0,
            diagnostic_sample_size=2,
        ),
        logging=LoggingSettings(log_level="DEBUG", log_format="%(message)s"),
    )


def make_problem(
    problem_id: str,
    xmin: float,
    xmax: float,
    ymin: float,
    ymax: float,
    is_correct: bool = False,
) -> ProblemRecord:
    """Build a problem record with the given bounding box."""
    return ProblemRecord(
        id=problem_id,
        subject="Math",
        is_correct=is_correct,
        bounding_box=Rectangle(xmin=xmin, xmax=xmax, ymin=ymin, ymax=ymax),
    )


@pytest.fixture
def problem_factory() -> Callable[..., ProblemRecord]:
    """
    Get a builder for problem records.

    Returns:
        Callable[..., ProblemRecord]: Builder taking id and box coordinates.
    """
    return make_problem


@pytest.fixture
def letterbox_problems() -> list[ProblemRecord]:
    """
    Problems as a letterboxing producer reports them for a 2000x1000 image.

    Returns:
        list[ProblemRecord]: Two problems hugging the padded band edges.
    """
    return [
        make_problem("q1", 40, 960, 250, 262, is_correct=True),
        make_problem("q2", 40, 960, 738, 750),
    ]


@pytest.fixture
def analysis_text() -> str:
    """
    Raw model output with a fenced JSON result.

    Returns:
        str: Model text.
    """
    payload = {
        "problems": [
            {
                "id": "q1",
                "subject": "Math",
                "questionText": "$3 + 4$",
                "studentAnswer": "7",
                "isCorrect": True,
                "correctAnswer": "7",
                "hint": "",
                "solutionSteps": ["$3 + 4 = 7$"],
                "boundingBox": {"ymin": 0.1, "xmin": 0.1, "ymax": 0.4, "xmax": 0.9},
            },
            {
                "id": "q2",
                "subject": "Math",
                "questionText": "$5 - 2$",
                "studentAnswer": "4",
                "isCorrect": False,
                "correctAnswer": "3",
                "hint": "Count back.",
                "solutionSteps": [],
                "errorType": "calculation",
                "boundingBox": {"ymin": 0.5, "xmin": 0.1, "ymax": 0.8, "xmax": 0.9},
            },
        ],
        "overallSummary": "One mistake.",
    }
    return f"Here is the result:\n```json\n{json.dumps(payload)}\n```\n"


@pytest.fixture
def sample_image_bytes() -> bytes:
    """
    Create a 200x100 PNG image.

    Returns:
        bytes: PNG image bytes.
    """
    img = np.full((100, 200, 3), 255, dtype=np.uint8)
    _, buffer = cv2.imencode(".png", img)
    return buffer.tobytes()


@pytest.fixture
def invalid_image_bytes() -> bytes:
    """
    Create invalid image bytes for testing error handling.

    Returns:
        bytes: Invalid image data.
    """
    return b"not a valid image"


@pytest.fixture
def test_client() -> TestClient:
    """
    Create a test client for the FastAPI application.

    Returns:
        TestClient: FastAPI test client.
    """
    return TestClient(app)
