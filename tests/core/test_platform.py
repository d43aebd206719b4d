"""Tests for platform detection functionality"""
import pytest
from unittest.mock import patch
from streamunpack.core.platform import is_windows, supports_symlinks, supports_unix_permissions

@pytest.fixture
def mock_platform():
    with patch('platform.system') as mock_system:
        yield mock_system

def test_is_windows_true(mock_platform):
    """Test is_windows returns True on Windows platform"""
    mock_platform.return_value = 'Windows'
    assert is_windows() is True

def test_is_windows_false(mock_platform):
    """Test is_windows returns False on non-Windows platform"""
    mock_platform.return_value = 'Linux'
    assert is_windows() is False

def test_capabilities_on_windows(mock_platform):
    """Test symlinks and Unix permissions are unavailable on Windows"""
    mock_platform.return_value = 'Windows'
    assert supports_symlinks() is False
    assert supports_unix_permissions() is False

@pytest.mark.parametrize("system", ['Linux', 'Darwin', 'FreeBSD'])
def test_capabilities_on_unix(mock_platform, system):
    """Test symlinks and Unix permissions are available elsewhere"""
    mock_platform.return_value = system
    assert supports_symlinks() is True
    assert supports_unix_permissions() is True
