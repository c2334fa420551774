"""Error kinds raised by the branding pipeline."""


class BrandError(Exception):
    """Base class for all branding errors."""


class UnsupportedFormatError(BrandError):
    """The artifact extension is not one of .svg, .json, .png, .jpg, .jpeg."""


class ArtifactIOError(BrandError):
    """Reading, parsing or writing an artifact failed."""


class UpstreamServiceError(BrandError):
    """A remote style or model service was unreachable or answered badly."""


class ProcessingError(BrandError):
    """A local external-process invocation failed."""
