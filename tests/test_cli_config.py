"""Tests for CLI configuration module."""

import json
from pathlib import Path

from cli.config import Config
from common.config import BLE_CHUNK_SIZE, STORAGE_CHUNK_SIZE


def test_config_creates_default_file(tmp_path):
    """Test that config file is created with defaults if missing."""
    config_path = tmp_path / '.walletctl' / 'config.json'
    config = Config(config_path)

    assert config_path.exists()
    assert config.data['storage_chunk_size'] == STORAGE_CHUNK_SIZE
    assert config.data['transport_chunk_size'] == BLE_CHUNK_SIZE
    assert config.data['max_value_size'] == 2048

    with open(config_path, 'r') as f:
        assert json.load(f) == config.data


def test_config_loads_existing_file(tmp_path):
    """Test loading existing config file merges with defaults."""
    config_path = tmp_path / '.walletctl' / 'config.json'
    config_path.parent.mkdir(parents=True)
    with open(config_path, 'w') as f:
        json.dump({'db_path': str(tmp_path / 'custom.db'), 'storage_chunk_size': 500}, f)

    config = Config(config_path)

    assert config.get_db_path() == tmp_path / 'custom.db'
    assert config.get_storage_chunk_size() == 500
    assert config.get_max_value_size() == 2048


def test_config_handles_corrupted_file(tmp_path):
    """Test recovery from corrupted config file."""
    config_path = tmp_path / '.walletctl' / 'config.json'
    config_path.parent.mkdir(parents=True)
    with open(config_path, 'w') as f:
        f.write('{ invalid json content')

    config = Config(config_path)

    assert config.get_storage_chunk_size() == STORAGE_CHUNK_SIZE
    assert config_path.with_suffix('.json.bak').exists()


def test_config_save(temp_config):
    temp_config.data['transport_chunk_size'] = 180
    temp_config.save()

    assert Config(temp_config.config_path).get_transport_chunk_size() == 180


def test_db_path_expands_user(temp_config):
    temp_config.data['db_path'] = '~/wallet.db'

    assert temp_config.get_db_path() == Path.home() / 'wallet.db'


def test_config_directory_created_if_missing(tmp_path):
    """Test that config directory is created if it doesn't exist."""
    config_path = tmp_path / 'nested' / 'deep' / '.walletctl' / 'config.json'

    assert not config_path.parent.exists()

    Config(config_path)

    assert config_path.exists()
