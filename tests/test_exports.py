"""Tests for package exports."""

import gamestash


def test_all_names_importable() -> None:
    """Every name in __all__ resolves on the package."""
    for name in gamestash.__all__:
        assert getattr(gamestash, name) is not None, name


def test_services_and_factories() -> None:
    from gamestash import (
        DashboardService,
        DigitalService,
        LibraryService,
        PhysicalService,
        SublocationService,
        build_caches,
        create_cache_store,
        create_caches,
    )

    assert LibraryService is not None
    assert SublocationService is not None
    assert PhysicalService is not None
    assert DigitalService is not None
    assert DashboardService is not None
    assert build_caches is not None
    assert create_cache_store is not None
    assert create_caches is not None


def test_version() -> None:
    assert gamestash.__version__ == "0.1.0"
