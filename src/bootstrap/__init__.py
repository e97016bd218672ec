"""
ブートストラップ関連の公開API。
"""

from .container import (
    BootstrapContainer,
    BootstrapContext,
    BootstrapError,
    ConfigBundle,
    InvalidConfigurationError,
    LoggingConfigurator,
    MetricsConfigurator,
    MissingConfigurationError,
    QueryLoader,
)
from .config_loader import (
    AppConfigModel,
    LoggingConfigModel,
    MetricsConfigModel,
    QueryConfigModel,
    YamlConfigLoader,
    load_query_definitions,
)
from .logging_setup import DictConfigLoggingConfigurator
from .metrics_setup import MetricsConfiguratorRegistry, NoopMetricsConfigurator, PrometheusMetricsConfigurator

__all__ = [
    "BootstrapContainer",
    "BootstrapContext",
    "BootstrapError",
    "ConfigBundle",
    "InvalidConfigurationError",
    "LoggingConfigurator",
    "MetricsConfigurator",
    "MissingConfigurationError",
    "QueryLoader",
    "DictConfigLoggingConfigurator",
    "MetricsConfiguratorRegistry",
    "NoopMetricsConfigurator",
    "PrometheusMetricsConfigurator",
    "YamlConfigLoader",
    "AppConfigModel",
    "LoggingConfigModel",
    "MetricsConfigModel",
    "QueryConfigModel",
    "load_query_definitions",
]
