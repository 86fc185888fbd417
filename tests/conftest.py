"""
Pytest configuration and fixtures for the density map tests.
"""

import json
import sys

import pytest
import yaml
from loguru import logger


def square(x: float, y: float, size: float = 1.0) -> dict:
    """GeoJSON polygon for a small square cell."""
    return {
        "type": "Polygon",
        "coordinates": [
            [[x, y], [x + size, y], [x + size, y + size], [x, y + size], [x, y]]
        ],
    }


def make_feature(name: str, x: float, **properties) -> dict:
    return {
        "type": "Feature",
        "properties": {"name": name, **properties},
        "geometry": square(x, 5.0),
    }


@pytest.fixture
def farmer_features():
    """State-level features with a skewed farmer count distribution."""
    counts = [0, 3, 4, 5, 12, 14, 30, 33, 95, None]
    return [make_feature(f"State {i}", float(i), farmer_count=c) for i, c in enumerate(counts)]


@pytest.fixture
def farmer_collection(farmer_features):
    return {"type": "FeatureCollection", "features": farmer_features}


@pytest.fixture
def api_rows():
    """Regional summary rows as returned by the survey API."""
    return [
        {
            "name": "Aba North",
            "farmer_count": 12,
            "farms_count": 20,
            "crop_area": 150.5,
            "geom": json.dumps(square(7.3, 5.1)),
        },
        {
            "name": "Umuahia South",
            "farmer_count": 0,
            "farms_count": 0,
            "crop_area": 0,
            "geom": json.dumps(square(7.5, 5.4)),
        },
        {
            "name": "Isiala Ngwa",
            "farmer_count": 40,
            "farms_count": 55,
            "crop_area": 1200.0,
            "geom": json.dumps(square(7.4, 5.2)),
        },
        {"name": "No Shape", "farmer_count": 7, "farms_count": 1, "crop_area": 3, "geom": None},
    ]


@pytest.fixture
def config_file(tmp_path):
    """A minimal config.yaml in a temporary directory."""
    data = {
        "project_name": "Test Density Maps",
        "classification": {"num_classes": 5, "zero_label": "0"},
        "metrics": {
            "farmer_density": {"property": "farmer_count"},
            "commodity_density": {"property": "crop_area", "unit": "acres"},
        },
        "system": {"label_precision": 1},
    }
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump(data))
    return path


@pytest.fixture(autouse=True)
def reset_logging():
    """Give every test a plain stderr sink, whatever the CLI did to loguru."""
    yield
    logger.remove()
    logger.add(sys.stderr, level="WARNING")
