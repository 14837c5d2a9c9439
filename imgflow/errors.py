from __future__ import annotations


class ImgFlowError(Exception):
    """Base class for every error raised by imgflow."""


class ConfigurationError(ImgFlowError):
    pass


class ScanError(ImgFlowError):
    pass


class InventoryError(ImgFlowError):
    pass


class InvalidPathError(ImgFlowError):
    pass


class ConversionError(ImgFlowError):
    pass


class UploadError(ImgFlowError):
    pass
