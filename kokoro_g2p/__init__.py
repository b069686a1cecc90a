from .config import G2PConfig, build_g2p
from .errors import FallbackError, G2PError, LexiconError, PhonemizationCancelled
from .g2p import G2P, phonemize
from .lexicon import Lexicon, load_lexicon
from .tokenizer import Token, TokenContext

__version__ = '0.1.0'
