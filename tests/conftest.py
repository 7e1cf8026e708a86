"""Root level conftest.

This provides fixtures and adds the utility importable modules
available to all tests.

"""
# Standard Library
import json
import os.path as osp
import sys
from pathlib import Path

# Third Party Library
import pytest

tests_dir = Path(osp.dirname(__file__))
utils_dir = tests_dir / "utils"

sys.path.append(str(utils_dir))

# First Party Library
from cres_testing import event_record, random_sample, single_particle_event


@pytest.fixture
def three_events():
    """One negative event between two positive ones on the x axis."""

    return [
        single_particle_event(-5.0, (10.0, 0.0, 0.0, 0.0), id=0),
        single_particle_event(3.0, (11.0, 0.0, 0.0, 0.0), id=1),
        single_particle_event(3.0, (12.0, 0.0, 0.0, 0.0), id=2),
    ]


@pytest.fixture
def sample():
    return random_sample(200, seed=1)


@pytest.fixture
def sample_path(tmp_path):
    """A JSON lines file with a random sample of events."""

    path = tmp_path / "events.jsonl"

    with open(path, "w") as wf:
        for event in random_sample(60, seed=2):
            wf.write(json.dumps(event_record(event)) + "\n")

    return path
