from pathlib import Path

import pytest

import app as app_module
from app import create_app, env_flag, load_config

CONFIG_VARS = ['DATA_FILE', 'FRONTEND_DIR', 'RESET_CORRUPT_STORE', 'EXPOSE_ERROR_DETAILS', 'HOST', 'PORT', 'LOG_LEVEL']


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in CONFIG_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    config = load_config()
    base_dir = Path(app_module.__file__).resolve().parent

    assert config['PORT'] == 3000
    assert config['HOST'] == '0.0.0.0'
    assert config['LOG_LEVEL'] == 'INFO'
    assert config['RESET_CORRUPT_STORE'] is True
    assert config['EXPOSE_ERROR_DETAILS'] is True
    assert config['DATA_FILE'] == str(base_dir / 'data.json')
    assert config['FRONTEND_DIR'] == str(base_dir.parent / 'frontend')


def test_environment_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv('RESET_CORRUPT_STORE', 'off')
    monkeypatch.setenv('EXPOSE_ERROR_DETAILS', '0')
    monkeypatch.setenv('PORT', '8080')
    monkeypatch.setenv('DATA_FILE', str(tmp_path / 'state.json'))
    monkeypatch.setenv('FRONTEND_DIR', str(tmp_path / 'web'))

    app = create_app()

    assert app.config['RESET_CORRUPT_STORE'] is False
    assert app.config['EXPOSE_ERROR_DETAILS'] is False
    assert app.config['PORT'] == 8080
    assert app.config['DATA_FILE'] == str(tmp_path / 'state.json')
    assert app.config['FRONTEND_DIR'] == str(tmp_path / 'web')


def test_test_config_wins_over_environment(monkeypatch):
    monkeypatch.setenv('PORT', '8080')
    app = create_app({'PORT': 9000, 'FRONTEND_DIR': 'missing-frontend'})
    assert app.config['PORT'] == 9000


@pytest.mark.parametrize('value', ['1', 'true', 'TRUE', 'yes', 'On', ' on '])
def test_env_flag_true_values(monkeypatch, value):
    monkeypatch.setenv('SOME_FLAG', value)
    assert env_flag('SOME_FLAG', False) is True


@pytest.mark.parametrize('value', ['0', 'false', 'no', 'off', ''])
def test_env_flag_false_values(monkeypatch, value):
    monkeypatch.setenv('SOME_FLAG', value)
    assert env_flag('SOME_FLAG', True) is False


def test_env_flag_default_when_unset(monkeypatch):
    monkeypatch.delenv('SOME_FLAG', raising=False)
    assert env_flag('SOME_FLAG', True) is True
    assert env_flag('SOME_FLAG', False) is False
