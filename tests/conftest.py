from __future__ import annotations

import pytest

from tests._fixtures.batch import ContentStore
from tiltshift.models import ProcessingContext, RevisionPair


@pytest.fixture
def content_store() -> ContentStore:
    """Provide an empty in-memory content provider."""
    return ContentStore()


@pytest.fixture
def processing_context(content_store: ContentStore) -> ProcessingContext:
    """Provide a fresh processing context backed by ``content_store``."""
    return ProcessingContext(content_provider=content_store, refs=RevisionPair(base="base", head="head"))
