# core/errors.py


class MediaStatusError(Exception):
    pass


class ConfigError(MediaStatusError):
    """Config file exists but can't be read or parsed."""


class NetworkError(MediaStatusError):
    pass


class ParseError(MediaStatusError):
    pass


class AssetResolutionError(MediaStatusError):
    pass


class SinkError(MediaStatusError):
    pass
