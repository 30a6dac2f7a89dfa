"""Test that climatecore imports correctly."""

import re

import pytest

import climatecore


@pytest.mark.unit
def test_package_version_exists() -> None:
    """Verify package exposes a valid semver version string."""
    assert hasattr(climatecore, "__version__")
    assert isinstance(climatecore.__version__, str)
    assert re.match(r"^\d+\.\d+\.\d+", climatecore.__version__)


@pytest.mark.unit
def test_public_api_exports() -> None:
    """Verify public API symbols are accessible."""
    for name in climatecore.__all__:
        assert hasattr(climatecore, name), name


@pytest.mark.unit
def test_exception_hierarchy() -> None:
    """Verify exception inheritance chain."""
    assert issubclass(climatecore.ValidationError, climatecore.ClimateCoreError)
    assert issubclass(climatecore.InsufficientDataError, climatecore.ClimateCoreError)
    assert issubclass(climatecore.EmptyRegionError, climatecore.ClimateCoreError)
    assert issubclass(climatecore.ConfigurationError, climatecore.ClimateCoreError)
    assert issubclass(climatecore.ClimateCoreError, Exception)
    assert not issubclass(climatecore.EmptyRegionError, climatecore.InsufficientDataError)
