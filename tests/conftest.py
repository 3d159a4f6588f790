import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from baseline import llm
from baseline.config import ClientConfig, GeneratorConfig, Settings


@pytest.fixture(autouse=True)
def _fresh_llm_client():
    llm.reset_client()
    yield
    llm.reset_client()


@pytest.fixture
def settings():
    return Settings(
        generator=GeneratorConfig(api_key="test-key", model="gpt-4o-mini"),
        client=ClientConfig(base_url="http://testserver"),
    )


@pytest.fixture
def unconfigured_settings():
    return Settings(
        generator=GeneratorConfig(api_key=""),
        client=ClientConfig(base_url="http://testserver"),
    )


@pytest.fixture
def aspect_payload():
    return {
        "researchBrief": "## Overview\nGNNs model molecules as graphs.",
        "paperKeys": ["GCN", "GAT"],
        "comparisonTable": [
            {"aspect": "Methodology", "GCN": "Spectral convolution", "GAT": "Attention"},
            {"aspect": "Dataset", "GCN": "Cora"},
        ],
        "notebookCode": "import torch\nprint(torch.__version__)\n",
    }
