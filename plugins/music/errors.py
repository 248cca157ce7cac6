class MusicError(Exception):
    """Base class for music failures that are reported back to the invoking user."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class UserInputError(MusicError):
    """Bad position, bad volume or a missing option. No state is changed."""


class NotInVoiceError(MusicError):
    def __init__(self, message: str = "You must be in a voice channel to use this command.") -> None:
        super().__init__(message)


class SourceLoadError(MusicError):
    """The query could not be resolved into anything playable."""

    def __init__(self, reason: str, message: str | None = None) -> None:
        super().__init__(message or f"Could not load track: {reason}")
        self.reason = reason


class TrackDecodeError(MusicError):
    """A stored track blob is unreadable or was written by an unknown schema."""


class VoiceUnavailableError(MusicError):
    def __init__(self, message: str = "I couldn't join your voice channel.") -> None:
        super().__init__(message)
