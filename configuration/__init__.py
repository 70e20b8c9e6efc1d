from .configuration import Configuration, DEFAULT_CONFIG_NAME
from .schema import OPTIONS, ConfigOption, OptionKind, PipelineOptions, parse_flag

__all__ = ['Configuration', 'DEFAULT_CONFIG_NAME', 'OPTIONS', 'ConfigOption', 'OptionKind',
           'PipelineOptions', 'parse_flag']
