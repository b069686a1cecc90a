"""Environment-driven configuration and the G2P factory."""
import logging
import os
from dataclasses import dataclass
from typing import Optional, Tuple

from .errors import FallbackError
from .fallback import EspeakFallback, G2PTokenizer, OnnxFallback
from .g2p import G2P
from .lexicon import load_lexicon
from .symbols import DEFAULT_UNK
from .tagger import SpacyTagger

logger = logging.getLogger(__name__)

FALLBACKS = ('espeak', 'onnx', 'none')


def get_bool(name: str, default: bool = False) -> bool:
    """Parse a boolean env var with common truthy values."""
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {'1', 'true', 'yes', 'on'}


def get_str(name: str, default: Optional[str] = None) -> Optional[str]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip()


def get_paths(name: str) -> Tuple[str, ...]:
    raw = os.getenv(name, '')
    return tuple(p for p in raw.split(os.pathsep) if p)


@dataclass
class G2PConfig:
    """
    Settings for building a G2P.

    Attributes:
        lexicon_paths (tuple): JSON lexicon files, later ones override earlier
        british (bool): GB vocabulary and rules
        spacy_model (str): spaCy model for tagging
        fallback (str): 'espeak', 'onnx' or 'none'
        fallback_model (str/None): ONNX model path for the 'onnx' fallback
        fallback_config (str/None): Tokenizer JSON for the 'onnx' fallback
        unk (str): Phonemes emitted for unresolved tokens
        lang (str): Numeral speller language
    """
    lexicon_paths: Tuple[str, ...] = ()
    british: bool = False
    spacy_model: str = 'en_core_web_sm'
    fallback: str = 'none'
    fallback_model: Optional[str] = None
    fallback_config: Optional[str] = None
    unk: str = DEFAULT_UNK
    lang: str = 'en'

    @classmethod
    def from_env(cls):
        return cls(
            lexicon_paths=get_paths('KOKORO_G2P_LEXICON'),
            british=get_bool('KOKORO_G2P_BRITISH'),
            spacy_model=get_str('KOKORO_G2P_SPACY_MODEL', 'en_core_web_sm'),
            fallback=get_str('KOKORO_G2P_FALLBACK', 'none').lower(),
            fallback_model=get_str('KOKORO_G2P_FALLBACK_MODEL'),
            fallback_config=get_str('KOKORO_G2P_FALLBACK_CONFIG'),
            unk=get_str('KOKORO_G2P_UNK', DEFAULT_UNK),
            lang=get_str('KOKORO_G2P_LANG', 'en'),
        )


def build_fallback(config):
    """Create the fallback model named by `config.fallback`, or None."""
    if config.fallback not in FALLBACKS:
        raise FallbackError(f'Unknown fallback {config.fallback!r}, expected one of {FALLBACKS}')
    if config.fallback == 'espeak':
        return EspeakFallback(british=config.british)
    elif config.fallback == 'onnx':
        if not config.fallback_model or not config.fallback_config:
            raise FallbackError('The onnx fallback needs KOKORO_G2P_FALLBACK_MODEL and KOKORO_G2P_FALLBACK_CONFIG')
        return OnnxFallback(config.fallback_model, G2PTokenizer.from_config(config.fallback_config))
    return None


def build_g2p(config=None):
    """
    Build a G2P from configuration.

    Args:
        config (G2PConfig/None): Settings; read from the environment if None

    Returns:
        G2P: Ready converter

    Raises:
        LexiconError: If a lexicon file is malformed
        FallbackError: If the fallback model cannot be loaded
    """
    config = G2PConfig.from_env() if config is None else config
    if not config.lexicon_paths:
        logger.warning('No lexicon files configured, only letter spelling and fallback are available')
    lexicon = load_lexicon(config.lexicon_paths, british=config.british, lang=config.lang)
    return G2P(
        lexicon,
        tagger=SpacyTagger(config.spacy_model),
        fallback=build_fallback(config),
        unk=config.unk,
    )
