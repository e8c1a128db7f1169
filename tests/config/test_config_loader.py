import json

import pytest
from pydantic import ValidationError

from scriptinspector.config import loader
from scriptinspector.config.paths import get_user_config_file, get_user_log_dir
from scriptinspector.config.schema import AppConfig


def test_defaults_when_no_config_file(isolated_user_dir):
    config = loader.load_config()
    assert config == AppConfig()
    assert config.assets_dir_name == "assets"
    assert config.detector_options() == {"command": "madge", "extensions": ["ts"], "timeout": 120,
                                         "output_format": "text"}


def test_user_config_is_loaded_and_cached(isolated_user_dir):
    get_user_config_file().write_text(json.dumps({"detector_timeout": 30, "assets_dir_name": "src"}), encoding="utf-8")
    config = loader.load_config()
    assert config.detector_timeout == 30
    assert config.assets_dir_name == "src"
    assert loader.get_config() is config


def test_corrupt_config_is_backed_up(isolated_user_dir):
    config_file = get_user_config_file()
    config_file.write_text("{ broken", encoding="utf-8")
    assert loader.load_config() == AppConfig()
    assert not config_file.exists()
    assert (isolated_user_dir / "config.json.corrupted").exists()


def test_invalid_values_fall_back_to_defaults(isolated_user_dir):
    get_user_config_file().write_text(json.dumps({"detector_timeout": -5}), encoding="utf-8")
    assert loader.load_config() == AppConfig()


def test_save_config_round_trips(isolated_user_dir):
    path = loader.save_config(AppConfig(cycle_detector="other", detector_output_format="json"))
    assert path == get_user_config_file()
    assert not list(isolated_user_dir.glob(".config.json_tmp*"))
    loader.reset_config_cache()
    config = loader.load_config()
    assert config.cycle_detector == "other" and config.detector_output_format == "json"


def test_paths_live_under_override(isolated_user_dir):
    assert get_user_config_file().parent == isolated_user_dir
    assert get_user_log_dir() == isolated_user_dir / "logs"


def test_only_invalid_fields_fall_back(isolated_user_dir):
    get_user_config_file().write_text(json.dumps({"detector_timeout": -5, "assets_dir_name": "src"}), encoding="utf-8")
    config = loader.load_config()
    assert config.detector_timeout == 120
    assert config.assets_dir_name == "src"


def test_detector_extensions_are_normalized():
    assert AppConfig(detector_extensions=[".TS", "tsx", "ts"]).detector_extensions == ["ts", "tsx"]


@pytest.mark.parametrize("extensions", [["js"], []])
def test_detector_extensions_reject_unknown_or_empty(extensions):
    with pytest.raises(ValidationError):
        AppConfig(detector_extensions=extensions)


def test_unsupported_extension_in_file_keeps_default(isolated_user_dir):
    get_user_config_file().write_text(json.dumps({"detector_extensions": ["vue"]}), encoding="utf-8")
    assert loader.load_config().detector_extensions == ["ts"]
