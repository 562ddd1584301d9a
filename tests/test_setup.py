"""Test that the project setup is working correctly."""

import token_cluster_tracker


def test_version() -> None:
    """Test that version is defined."""
    assert token_cluster_tracker.__version__ == "0.1.0"


def test_import_modules() -> None:
    """Test that all submodules can be imported."""
    from token_cluster_tracker import alerter, detector, ingestor, pipeline, profiler

    # Just verify imports work
    assert ingestor is not None
    assert profiler is not None
    assert detector is not None
    assert alerter is not None
    assert pipeline is not None
