"""Tests for config commands"""
import pytest
from argparse import Namespace
from unittest.mock import patch

from streamunpack import constants
from streamunpack.cli.commands.config import config_get_command, config_list_command, config_set_command
from streamunpack.core import config
from streamunpack.utils.exceptions import ConfigValidationError

def test_config_set_command(capsys):
    """Test setting several keys at once"""
    config_set_command(Namespace(pairs=["download_timeout=5", "log_level=debug"]))

    saved = config.load_global_config()
    assert saved["download_timeout"] == 5
    assert saved["log_level"] == "DEBUG"
    assert "Updated 2 global config keys." in capsys.readouterr().out

def test_config_set_command_bad_pair():
    """Test a pair without '=' is rejected"""
    with patch('streamunpack.core.config.save_global_config') as mock_save:
        with pytest.raises(ValueError, match="KEY=VALUE"):
            config_set_command(Namespace(pairs=["download_timeout"]))
    mock_save.assert_not_called()

def test_config_set_command_invalid_value():
    """Test nothing is saved when any value is invalid"""
    with patch('streamunpack.core.config.save_global_config') as mock_save:
        with pytest.raises(ConfigValidationError):
            config_set_command(Namespace(pairs=["download_timeout=5", "log_level=LOUD"]))
    mock_save.assert_not_called()

def test_config_get_command(capsys):
    """Test printing a single value"""
    config_get_command(Namespace(key="download_timeout"))
    assert capsys.readouterr().out.strip() == str(constants.DEFAULT_CONFIG["download_timeout"])

def test_config_get_command_missing():
    """Test an unknown key"""
    with pytest.raises(ValueError, match="Config key 'nope' not found"):
        config_get_command(Namespace(key="nope"))

def test_config_list_command(capsys):
    """Test listing every value"""
    config_list_command(Namespace())
    out = capsys.readouterr().out
    assert out.startswith("Global config:")
    for key, value in constants.DEFAULT_CONFIG.items():
        assert f"  {key}: {value}" in out
