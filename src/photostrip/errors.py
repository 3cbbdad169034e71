"""Failure taxonomy for strip composition.

Every failure of an export surfaces as one of these exceptions. None of
them is retried by the engine; retrying is the caller's decision.
OverlayNotReady and ExportInProgress are recoverable: the same request
can be re-issued once the overlay has loaded or the running export ends.
"""


class CompositionError(Exception):
    """Base class for all composition failures."""


class ImageLoadFailure(CompositionError):
    """A still, clip, or overlay payload could not be decoded."""


class DecodeTimeout(ImageLoadFailure):
    """A payload did not finish decoding within the decode timeout."""


class OverlayNotReady(CompositionError):
    """Animated export was requested before the overlay finished loading."""


class NoAnimatableInput(CompositionError):
    """Animated export has no frame mapping, or a slot has no clip."""


class EncodingFailure(CompositionError):
    """The final encode step could not produce a valid artifact."""


class ExportInProgress(CompositionError):
    """Another export is already running on this exporter."""


class CompositionCancelled(CompositionError):
    """The caller cancelled the export before it completed."""
