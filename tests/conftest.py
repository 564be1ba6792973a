import os
import sys

import pytest

# Flat layout: modules live at the project root
_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _root not in sys.path:
    sys.path.insert(0, _root)

from models import Destination, TripIntent


@pytest.fixture
def japan_trip():
    return TripIntent(
        origin="Los Angeles",
        destinations=(
            Destination(name="Tokyo", duration_days=2, duration_text="2 days", order=1),
            Destination(name="Kyoto", duration_days=1, duration_text="1 day", order=2),
        ),
        return_to="Los Angeles",
        total_duration_days=3,
    )


@pytest.fixture
def empty_trip():
    return TripIntent()
