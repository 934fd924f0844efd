"""
Configuration is done via a YAML or JSON file.
topicq searches for the file :code:`./topicq.yml` if no configuration file is passed.

..  code-block:: bash
    :caption: Valid Run Examples

    topicq run /different/path/topicq.yml
    topicq run topicq.yml --workload graphs

Configuration File Structure
----------------------------

..  code-block:: yaml
    :caption: Example of a complete configuration file

    version: 1
    queue_capacity: 25
    timeout: 1.0
    logger:
        level: INFO
    coordinates:
        input: ./input/coordinates.txt
        output: ./output/closest_coords.txt
        producers: 2
        consumers: 1
        block_size: 100
        generate_input: true
        item_count: 250
    graphs:
        input: ./input/graphs.txt
        output: ./output/dependency_graphs.txt
        producers: 2
        consumers: 1
        block_size: 30
        generate_input: false
        item_count: 200

For the :code:`coordinates` workload :code:`block_size` is the number of
candidate points per task, for the :code:`graphs` workload it is the number of
vertices per graph.

It is possible to use environment variables in the configuration file.
Environment variables have to be set in uppercase and prefixed with
:code:`TOPICQ_`. Lowercase variables are ignored.

..  code-block:: yaml

    queue_capacity: $TOPICQ_QUEUE_CAPACITY
"""

import json
import logging
import os
import re
from copy import deepcopy
from logging.config import dictConfig
from pathlib import Path
from string import Template
from typing import Any, List, Optional

from attrs import asdict, define, field, validators
from ruamel.yaml import YAML
from ruamel.yaml.compat import StringIO
from ruamel.yaml.error import YAMLError

from topicq.abc.exceptions import InvalidConfigurationError
from topicq.util.defaults import (
    DEFAULT_CONFIG_LOCATION,
    DEFAULT_CONSUMER_COUNT,
    DEFAULT_COORDINATE_TASK_COUNT,
    DEFAULT_GRAPH_COUNT,
    DEFAULT_GRAPH_SIZE,
    DEFAULT_LOG_CONFIG,
    DEFAULT_POINTS_PER_TASK,
    DEFAULT_PRODUCER_COUNT,
    DEFAULT_QUEUE_CAPACITY,
)

logger = logging.getLogger("Config")


class MyYAML(YAML):
    """helper class to dump yaml with ruamel.yaml"""

    def dump(self, data: Any, stream: Any | None = None, **kw: Any) -> Any:
        inefficient = False
        if stream is None:
            inefficient = True
            stream = StringIO()
        YAML.dump(self, data, stream, **kw)
        if inefficient:
            return stream.getvalue()


yaml = MyYAML(pure=True)
safe_yaml = YAML(typ="safe", pure=True)


class EnvTemplate(Template):
    """Template class for uppercase only template variables"""

    pattern = r"""
    \$(?:
        (?P<escaped>\$)|
        (?P<named>(?=TOPICQ_)[_A-Z0-9]*)|
        {(?P<braced>(?=TOPICQ_)[_A-Z0-9]*)}|
        (?P<invalid>)
    )
    """
    flags = re.VERBOSE


class ConfigGetterException(InvalidConfigurationError):
    """Raise if the configuration file can not be read."""


class MissingEnvironmentError(InvalidConfigurationError):
    """Raise if environment variables are missing"""

    def __init__(self, message: str) -> None:
        super().__init__(f"Environment variable(s) used, but not set: {message}")


def _positive_int(instance, attribute, value) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValueError(f"'{attribute.name}' must be a positive integer, got: {value!r}")


@define(kw_only=True)
class LoggerConfig:
    """The logger config class used in Configuration.
    The schema for this class is derived from the python logging module:
    https://docs.python.org/3/library/logging.config.html#dictionary-schema-details
    """

    _LOG_LEVELS = (
        logging.NOTSET,  # 0
        logging.DEBUG,  # 10
        logging.INFO,  # 20
        logging.WARNING,  # 30
        logging.ERROR,  # 40
        logging.CRITICAL,  # 50
    )

    version: int = field(validator=validators.instance_of(int), default=1)
    formatters: dict = field(validator=validators.instance_of(dict), factory=dict)
    filters: dict = field(validator=validators.instance_of(dict), factory=dict)
    handlers: dict = field(validator=validators.instance_of(dict), factory=dict)
    disable_existing_loggers: bool = field(validator=validators.instance_of(bool), default=False)
    level: str = field(
        default="INFO",
        validator=[
            validators.instance_of(str),
            validators.in_([logging.getLevelName(level) for level in _LOG_LEVELS]),
        ],
        eq=False,
    )
    """The log level of the root logger. Defaults to :code:`INFO`."""
    loggers: dict = field(validator=validators.instance_of(dict), factory=dict)
    """The loggers loglevel configuration. topicq opts out of hierarchical loggers, so
    the level of a single component like :code:`Queue` or :code:`Broker` can be raised
    independently of the root logger.

    .. code-block:: yaml
        :caption: Example of a custom logger configuration

        logger:
            level: INFO
            loggers:
                "Queue": {"level": "DEBUG"}
    """

    def __attrs_post_init__(self) -> None:
        self._set_defaults()
        self.loggers = {**deepcopy(DEFAULT_LOG_CONFIG["loggers"]), **self.loggers}
        self.loggers.setdefault("root", {}).update({"level": self.level})

    def setup_logging(self) -> None:
        """Apply this configuration to the python logging module."""
        dictConfig(asdict(self))

    def _set_defaults(self) -> None:
        """resets all keys to the defined defaults except :code:`loggers`."""
        for key, value in DEFAULT_LOG_CONFIG.items():
            if key == "loggers":
                continue
            setattr(self, key, deepcopy(value))


@define(kw_only=True)
class WorkloadConfig:
    """Producer and consumer setup of one workload."""

    enabled: bool = field(validator=validators.instance_of(bool), default=True)
    """Whether :code:`topicq run` executes this workload. Defaults to :code:`True`."""
    input: str = field(validator=validators.instance_of(str), converter=str)
    """Path of the input file."""
    output: str = field(validator=validators.instance_of(str), converter=str)
    """Path of the result file. Parent directories are created."""
    producers: int = field(validator=_positive_int, default=DEFAULT_PRODUCER_COUNT)
    """Number of producer threads sharing the input. Defaults to :code:`2`."""
    consumers: int = field(validator=_positive_int, default=DEFAULT_CONSUMER_COUNT)
    """Number of competing consumer threads. Defaults to :code:`1`."""
    block_size: int = field(validator=_positive_int)
    """Candidate points per coordinate task or vertices per graph."""
    generate_input: bool = field(validator=validators.instance_of(bool), default=False)
    """Write a random input file before running. Defaults to :code:`False`."""
    item_count: int = field(validator=_positive_int)
    """Number of tasks or graphs written if :code:`generate_input` is set."""
    seed: Optional[int] = field(
        validator=validators.optional(validators.instance_of(int)), default=None
    )
    """Seed for input generation. Defaults to :code:`None` (random)."""


def _coordinates_config(value) -> WorkloadConfig:
    if isinstance(value, WorkloadConfig):
        return value
    defaults = {
        "input": "./input/coordinates.txt",
        "output": "./output/closest_coords.txt",
        "block_size": DEFAULT_POINTS_PER_TASK,
        "item_count": DEFAULT_COORDINATE_TASK_COUNT,
    }
    return WorkloadConfig(**{**defaults, **(value or {})})


def _graphs_config(value) -> WorkloadConfig:
    if isinstance(value, WorkloadConfig):
        return value
    defaults = {
        "input": "./input/graphs.txt",
        "output": "./output/dependency_graphs.txt",
        "block_size": DEFAULT_GRAPH_SIZE,
        "item_count": DEFAULT_GRAPH_COUNT,
    }
    return WorkloadConfig(**{**defaults, **(value or {})})


@define(kw_only=True)
class Configuration:
    """the configuration class"""

    version: str = field(validator=validators.instance_of(str), converter=str, default="unset")
    """Optional version of the configuration file, printed by :code:`topicq --version`.
    Defaults to :code:`unset`."""
    queue_capacity: int = field(validator=_positive_int, default=DEFAULT_QUEUE_CAPACITY)
    """Capacity of every topic queue. Defaults to :code:`25`."""
    timeout: float = field(
        validator=(validators.instance_of(float), validators.gt(0)),
        converter=float,
        default=1.0,
    )
    """Interval in seconds in which the controller checks its workers. topicq reacts to
    CTRL+C and to consumers that died within this time. Defaults to :code:`1.0`."""
    logger: LoggerConfig = field(
        validator=validators.instance_of(LoggerConfig),
        factory=LoggerConfig,
        converter=lambda x: LoggerConfig(**x) if isinstance(x, dict) else x,
    )
    """Logger configuration."""
    coordinates: WorkloadConfig = field(
        validator=validators.instance_of(WorkloadConfig),
        factory=lambda: _coordinates_config(None),
        converter=_coordinates_config,
    )
    """Nearest point workload."""
    graphs: WorkloadConfig = field(
        validator=validators.instance_of(WorkloadConfig),
        factory=lambda: _graphs_config(None),
        converter=_graphs_config,
    )
    """Graph filter workload."""
    config_path: Optional[str] = field(default=None, eq=False)
    """Path the configuration was loaded from."""

    @classmethod
    def from_source(cls, config_path: Optional[str] = None) -> "Configuration":
        """Create configuration from a yaml or json file.

        Parameters
        ----------
        config_path : str
            path of the file to create configuration from.

        Returns
        -------
        config : Configuration
            Configuration object attrs class.

        Raises
        ------
        InvalidConfigurationError
            If the file can not be read or its content is not a valid configuration.
        """
        config_path = config_path or DEFAULT_CONFIG_LOCATION
        try:
            content = Path(config_path).read_text(encoding="utf8")
        except FileNotFoundError as error:
            raise ConfigGetterException(
                f"The given config file does not exist: {error.filename}"
            ) from error
        except OSError as error:
            raise ConfigGetterException(f"{config_path} {error}") from error
        content = cls._substitute_environment(content)
        try:
            try:
                config_dict = json.loads(content)
            except ValueError:
                config_dict = safe_yaml.load(content)
        except YAMLError as error:
            raise ConfigGetterException(f"Invalid yaml or json file: {config_path} {error}") from error
        if config_dict is None:
            config_dict = {}
        if not isinstance(config_dict, dict):
            raise InvalidConfigurationError(
                f"Invalid configuration file: {config_path} must contain a mapping"
            )
        try:
            config = Configuration(**config_dict)
        except TypeError as error:
            raise InvalidConfigurationError(
                f"Invalid configuration file: {config_path} {error.args[0]}"
            ) from error
        except ValueError as error:
            raise InvalidConfigurationError(
                f"Invalid configuration file: {config_path} {str(error)}"
            ) from error
        config.config_path = str(config_path)
        logger.debug("Loaded configuration from '%s'", config_path)
        return config

    @staticmethod
    def _substitute_environment(content: str) -> str:
        template = EnvTemplate(content)
        used: List[str] = []
        for match in template.pattern.finditer(content):
            name = match.group("named") or match.group("braced")
            if name:
                used.append(name)
        missing = sorted({name for name in used if name not in os.environ})
        if missing:
            raise MissingEnvironmentError(", ".join(missing))
        return template.safe_substitute(os.environ)

    def workloads(self) -> dict[str, WorkloadConfig]:
        """Enabled workloads by name in execution order."""
        workloads = {"coordinates": self.coordinates, "graphs": self.graphs}
        return {name: workload for name, workload in workloads.items() if workload.enabled}

    def as_dict(self) -> dict:
        """Return the configuration as dict."""
        return asdict(self, filter=lambda attribute, _: attribute.name != "config_path")

    def as_json(self, indent=None) -> str:
        """Return the configuration as json string."""
        return json.dumps(self.as_dict(), indent=indent)

    def as_yaml(self) -> str:
        """Return the configuration as yaml string."""
        return yaml.dump(self.as_dict())
