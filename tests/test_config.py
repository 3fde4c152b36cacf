"""Tests for settings loading."""

import pytest

from config import DEFAULTS, SettingsError, load_settings_conf


def _write(tmp_path, body: str):
    (tmp_path / "settings.conf").write_text(body)


def test_missing_file_means_defaults(tmp_path):
    settings = load_settings_conf(str(tmp_path))

    assert settings['storage_backend'] == 'memory'
    assert settings['api_port'] == int(DEFAULTS['api_port'])
    assert settings['seed_sample_data'] is True
    assert settings['external_call_timeout'] == 30.0
    assert settings['cors_origins'] == ['*']


def test_values_override_defaults(tmp_path):
    _write(tmp_path, "\n".join([
        "[DEFAULT]",
        "storage_backend = Postgres",
        "api_port = 9000",
        "seed_sample_data = no",
        "cors_origins = http://a.test, http://b.test",
        "log_level = debug",
        "external_call_timeout = 2.5",
    ]))

    settings = load_settings_conf(str(tmp_path))

    assert settings['storage_backend'] == 'postgres'
    assert settings['api_port'] == 9000
    assert settings['seed_sample_data'] is False
    assert settings['cors_origins'] == ['http://a.test', 'http://b.test']
    assert settings['log_level'] == 'DEBUG'
    assert settings['external_call_timeout'] == 2.5
    assert settings['ledger'] == 'simulated'


def test_invalid_values_are_all_reported(tmp_path):
    _write(tmp_path, "\n".join([
        "[DEFAULT]",
        "api_port = 70000",
        "ledger = ethereum",
        "simulated_delay = soon",
    ]))

    with pytest.raises(SettingsError) as exc_info:
        load_settings_conf(str(tmp_path))

    message = str(exc_info.value)
    assert "api_port" in message
    assert "ledger" in message
    assert "simulated_delay" in message


def test_missing_default_section(tmp_path):
    _write(tmp_path, "[server]\napi_port = 9000\n")

    with pytest.raises(SettingsError) as exc_info:
        load_settings_conf(str(tmp_path))
    assert "[DEFAULT]" in str(exc_info.value)
