class AudioLoadError(Exception): ...
class DecodeError(Exception): ...
class PlaybackError(Exception): ...
