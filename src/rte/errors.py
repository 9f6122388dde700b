from __future__ import annotations


class RteError(RuntimeError):
    pass


class SourceUrlError(RteError):
    pass


class SourceReadError(RteError):
    pass


class FetchError(RteError):
    pass


class ArchiveDecodeError(RteError):
    pass


class PathTraversalError(RteError):
    pass


class TemplateEncodingError(RteError):
    pass


class TemplateRenderError(RteError):
    pass


class ParameterError(RteError):
    pass


class DestinationExistsError(RteError):
    pass


class SinkWriteError(RteError):
    pass
