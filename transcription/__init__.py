from .transcription import is_supported_media, transcribe_media

__all__ = ["is_supported_media", "transcribe_media"]
