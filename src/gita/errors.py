"""Exception hierarchy shared by the fetcher, the controller and the speech layer."""


class GitaError(Exception):
    """Base class for every error the reader turns into an inline message."""


class FetchError(GitaError):
    """A chapter or slok request did not produce usable data."""


class NetworkError(FetchError):
    """Non-success HTTP status or transport failure."""


class ValidationError(FetchError):
    """The payload is missing required fields or has the wrong shape."""


class InputError(GitaError):
    """Manual chapter/verse entry outside the known bounds."""


class SpeechError(GitaError):
    """Synthesis or playback failed, or the requested provider is disabled."""
