"""
Engine kernel test configuration.

Fixtures for the sample document used across the tree, reducer, exporter
and store tests.
"""

import pytest

from eduvi.kernel.tests.builders import sample_document
from eduvi.kernel.types import Document


@pytest.fixture
def doc() -> Document:
    return sample_document()


@pytest.fixture
def cards(doc):
    return doc.cards
