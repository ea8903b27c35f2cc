import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest

from drift_client.core.config import get_settings
from drift_client.schemas.context import Context


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
def clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def paris_context_payload() -> dict:
    return {
        "branchTopic": "Paris trip planning",
        "messages": [{"role": "user", "content": "I want to plan a trip to Paris"}],
        "allFacts": [
            {
                "branchId": "b1",
                "branchTopic": "Paris trip planning",
                "isCurrent": True,
                "facts": [{"key": "destination", "value": "Paris"}],
            },
            {
                "branchId": "b2",
                "branchTopic": "Budget tracking",
                "isCurrent": False,
                "facts": [],
            },
        ],
    }


@pytest.fixture
def paris_context(paris_context_payload) -> Context:
    return Context.model_validate(paris_context_payload)
