# pylint: disable=missing-docstring
# pylint: disable=protected-access
import json
import logging
from unittest import mock

import pytest
from ruamel.yaml import YAML

from tests.testdata.metadata import path_to_config, path_to_env_config, path_to_invalid_config
from topicq.abc.exceptions import InvalidConfigurationError
from topicq.util.configuration import (
    ConfigGetterException,
    Configuration,
    LoggerConfig,
    MissingEnvironmentError,
    WorkloadConfig,
)
from topicq.util.defaults import DEFAULT_LOG_CONFIG

yaml = YAML(typ="safe", pure=True)


def _write(tmp_path, content, name="topicq.yml"):
    path = tmp_path / name
    path.write_text(content, encoding="utf8")
    return str(path)


class TestConfiguration:
    def test_defaults(self):
        config = Configuration()
        assert config.version == "unset"
        assert config.queue_capacity == 25
        assert config.timeout == 1.0
        assert config.coordinates.block_size == 100
        assert config.coordinates.item_count == 250
        assert config.coordinates.output == "./output/closest_coords.txt"
        assert config.graphs.block_size == 30
        assert config.graphs.item_count == 200
        assert config.graphs.output == "./output/dependency_graphs.txt"
        for workload in (config.coordinates, config.graphs):
            assert workload.producers == 2
            assert workload.consumers == 1
            assert workload.enabled
            assert not workload.generate_input

    def test_from_source_reads_yaml(self):
        config = Configuration.from_source(path_to_config)
        assert config.version == "1"
        assert config.queue_capacity == 5
        assert config.timeout == 0.1
        assert config.coordinates.consumers == 2
        assert config.coordinates.block_size == 3
        assert config.graphs.block_size == 4
        assert config.config_path == path_to_config

    def test_from_source_reads_json(self, tmp_path):
        path = _write(tmp_path, json.dumps({"queue_capacity": 7}), "topicq.json")
        assert Configuration.from_source(path).queue_capacity == 7

    def test_from_source_uses_default_location(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        _write(tmp_path, "version: default\n")
        config = Configuration.from_source()
        assert config.version == "default"
        assert config.config_path == "./topicq.yml"

    def test_empty_file_yields_defaults(self, tmp_path):
        assert Configuration.from_source(_write(tmp_path, "")) == Configuration()

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(ConfigGetterException, match="does not exist"):
            Configuration.from_source(str(tmp_path / "missing.yml"))

    def test_invalid_yaml_raises(self, tmp_path):
        with pytest.raises(ConfigGetterException, match="Invalid yaml or json file"):
            Configuration.from_source(_write(tmp_path, "version: [1\n"))

    def test_non_mapping_raises(self, tmp_path):
        with pytest.raises(InvalidConfigurationError, match="must contain a mapping"):
            Configuration.from_source(_write(tmp_path, "- 1\n- 2\n"))

    def test_invalid_values_raise(self):
        with pytest.raises(InvalidConfigurationError, match="must be a positive integer"):
            Configuration.from_source(path_to_invalid_config)

    def test_unknown_key_raises(self, tmp_path):
        with pytest.raises(InvalidConfigurationError, match="unexpected keyword"):
            Configuration.from_source(_write(tmp_path, "unknown: 1\n"))

    @pytest.mark.parametrize(
        "content, message",
        [
            ("queue_capacity: -3", "queue_capacity"),
            ("queue_capacity: true", "queue_capacity"),
            ("timeout: 0", "timeout"),
            ("coordinates: {producers: 0}", "producers"),
            ("graphs: {consumers: 1.5}", "consumers"),
            ("graphs: {block_size: '3'}", "block_size"),
            ("coordinates: {unknown: 1}", "unexpected keyword"),
            ("logger: {level: LOUD}", "level"),
        ],
    )
    def test_invalid_configurations(self, tmp_path, content, message):
        with pytest.raises(InvalidConfigurationError, match=message):
            Configuration.from_source(_write(tmp_path, content))

    def test_workload_overrides_keep_other_defaults(self, tmp_path):
        config = Configuration.from_source(
            _write(tmp_path, "graphs: {consumers: 3, input: other.txt}\n")
        )
        assert config.graphs.consumers == 3
        assert config.graphs.input == "other.txt"
        assert config.graphs.block_size == 30
        assert config.coordinates == Configuration().coordinates

    def test_workloads_returns_enabled_workloads_in_order(self, tmp_path):
        config = Configuration()
        assert list(config.workloads()) == ["coordinates", "graphs"]
        config = Configuration.from_source(_write(tmp_path, "coordinates: {enabled: false}\n"))
        assert list(config.workloads()) == ["graphs"]

    def test_environment_variables_are_substituted(self):
        env = {"TOPICQ_TEST_CONFIG_VERSION": "env-1", "TOPICQ_TEST_QUEUE_CAPACITY": "11"}
        with mock.patch.dict("os.environ", env):
            config = Configuration.from_source(path_to_env_config)
        assert config.version == "env-1"
        assert config.queue_capacity == 11

    def test_missing_environment_variables_raise(self):
        with mock.patch.dict("os.environ", {}, clear=True):
            with pytest.raises(MissingEnvironmentError) as error:
                Configuration.from_source(path_to_env_config)
        assert "TOPICQ_TEST_CONFIG_VERSION, TOPICQ_TEST_QUEUE_CAPACITY" in str(error.value)

    def test_lowercase_and_foreign_variables_are_ignored(self, tmp_path):
        path = _write(tmp_path, "version: $HOME_$topicq_version\n")
        with mock.patch.dict("os.environ", {}, clear=True):
            assert Configuration.from_source(path).version == "$HOME_$topicq_version"

    def test_as_dict_excludes_config_path(self):
        config = Configuration.from_source(path_to_config)
        config_dict = config.as_dict()
        assert "config_path" not in config_dict
        assert config_dict["queue_capacity"] == 5
        assert config_dict["coordinates"]["block_size"] == 3

    def test_as_json_and_as_yaml_are_loadable(self):
        config = Configuration.from_source(path_to_config)
        assert json.loads(config.as_json()) == config.as_dict()
        assert yaml.load(config.as_yaml()) == config.as_dict()

    def test_resolved_configuration_can_be_read_again(self, tmp_path):
        config = Configuration.from_source(path_to_config)
        reloaded = Configuration.from_source(_write(tmp_path, config.as_yaml()))
        assert reloaded == config


class TestWorkloadConfig:
    def test_input_and_output_are_converted_to_str(self, tmp_path):
        workload = WorkloadConfig(input=tmp_path, output=tmp_path, block_size=1, item_count=1)
        assert workload.input == str(tmp_path)

    def test_seed_must_be_int(self):
        with pytest.raises(TypeError):
            WorkloadConfig(input="a", output="b", block_size=1, item_count=1, seed="1")


class TestLoggerConfig:
    def test_defaults_are_taken_from_default_log_config(self):
        config = LoggerConfig()
        assert config.handlers == DEFAULT_LOG_CONFIG["handlers"]
        assert config.formatters == DEFAULT_LOG_CONFIG["formatters"]
        assert config.loggers["root"]["level"] == "INFO"

    def test_level_sets_root_level(self):
        config = LoggerConfig(level="DEBUG")
        assert config.loggers["root"]["level"] == "DEBUG"

    def test_custom_loggers_are_merged(self):
        config = LoggerConfig(loggers={"Queue": {"level": "DEBUG"}})
        assert config.loggers["Queue"] == {"level": "DEBUG"}
        assert "console" in config.loggers

    def test_setup_logging_applies_levels(self):
        config = LoggerConfig(level="WARNING", loggers={"Broker": {"level": "DEBUG"}})
        try:
            config.setup_logging()
            assert logging.getLogger().level == logging.WARNING
            assert logging.getLogger("Broker").level == logging.DEBUG
        finally:
            LoggerConfig().setup_logging()
            logging.getLogger("Broker").setLevel(logging.NOTSET)
