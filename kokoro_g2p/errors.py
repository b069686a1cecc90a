"""Custom exceptions for the G2P pipeline."""


class G2PError(Exception):
    """Base class for G2P errors"""
    pass


class LexiconError(G2PError):
    """Unreadable lexicon file, malformed entry, or a phoneme outside the vocabulary.

    Raised while a lexicon is being built; the lexicon is unusable afterwards.
    """

    def __init__(self, message, word=None, chars=None):
        super().__init__(message)
        self.word = word
        self.chars = chars or ''


class FallbackError(G2PError):
    """Error loading a fallback G2P model"""
    pass


class PhonemizationCancelled(G2PError):
    """Raised when phonemization of an utterance is cancelled by the caller."""
    pass
