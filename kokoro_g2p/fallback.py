"""
Fallback grapheme-to-phoneme models for words the lexicon cannot resolve.

Two backends share one interface, `infer(word, tag=None) -> (phonemes, rating)`:
- EspeakFallback runs espeak-ng through phonemizer and maps its IPA output
  onto the Kokoro phoneme alphabet
- OnnxFallback runs a character-level seq2seq model with onnxruntime
"""
import json
import logging
from pathlib import Path

import numpy as np
import onnxruntime as ort
from phonemizer.backend import EspeakBackend

from .errors import FallbackError

logger = logging.getLogger(__name__)

# espeak IPA -> Kokoro phonemes, applied longest first
E2M = sorted({
    'aɪ': 'I',
    'aʊ': 'W',
    'eɪ': 'A',
    'oʊ': 'O',
    'əʊ': 'Q',
    'ɔɪ': 'Y',
    'dʒ': 'ʤ',
    'tʃ': 'ʧ',
    'ɚ': 'əɹ',
    'ɝ': 'ɜɹ',
    'ɐ': 'ə',
    'r': 'ɹ',
    'x': 'k',
    'ç': 'k',
    'ɬ': 'l',
    'ʲ': '',
    'e': 'A',
    'o': 'O',
}.items(), key=lambda kv: -len(kv[0]))


class EspeakFallback:
    """
    espeak-ng backed fallback.

    Args:
        british (bool): Use en-gb instead of en-us
    """

    def __init__(self, british=False):
        self.british = british
        language = 'en-gb' if british else 'en-us'
        self.backend = EspeakBackend(language, with_stress=True)
        logger.info('Initialized espeak fallback (%s)', language)

    def to_kokoro(self, ps):
        """Map espeak IPA onto the Kokoro phoneme alphabet."""
        for old, new in E2M:
            ps = ps.replace(old, new)
        if not self.british:
            ps = ps.replace('ː', '')
        return ps.replace(' ', '')

    def infer(self, word, tag=None):
        ps = self.backend.phonemize([word], strip=True)
        if not ps or not ps[0]:
            return None, None
        return self.to_kokoro(ps[0]), 1

    def close(self):
        self.backend = None


class G2PTokenizer:
    """
    Symbol table for the ONNX fallback model.

    Ids 0-3 are <pad>, <s>, </s> and <unk>; grapheme and phoneme characters
    follow in the order given, with a leading '_' padding marker ignored.

    Args:
        grapheme_chars (str): Input alphabet of the model
        phoneme_chars (str): Output alphabet of the model
    """
    PAD, BOS, EOS, UNK = 0, 1, 2, 3
    SPECIAL = ('<pad>', '<s>', '</s>', '<unk>')

    def __init__(self, grapheme_chars, phoneme_chars):
        graphemes = list(self.SPECIAL) + list(grapheme_chars.lstrip('_'))
        phonemes = list(self.SPECIAL) + list(phoneme_chars.lstrip('_'))
        self.grapheme_to_id = {g: i for i, g in enumerate(graphemes)}
        self.id_to_phoneme = dict(enumerate(phonemes))

    @classmethod
    def from_config(cls, path):
        """Load a tokenizer from a JSON file with grapheme_chars and phoneme_chars."""
        try:
            with open(path, encoding='utf-8') as f:
                config = json.load(f)
            return cls(config['grapheme_chars'], config['phoneme_chars'])
        except (OSError, ValueError, KeyError) as e:
            raise FallbackError(f'Failed to load fallback tokenizer config {path}: {e}') from e

    def encode_word(self, word):
        """
        Encode a word as a batch of one: [[<s>, chars..., </s>]].

        Unknown characters encode as <unk>.
        """
        ids = [self.BOS] + [self.grapheme_to_id.get(c, self.UNK) for c in word] + [self.EOS]
        return np.array([ids], dtype=np.int64)

    def decode_phonemes(self, ids):
        """
        Decode output ids to a phoneme string, skipping special tokens.

        Raises:
            ValueError: On an id outside the phoneme table
        """
        result = ''
        for i in ids:
            i = int(i)
            if i < len(self.SPECIAL):
                continue
            if i not in self.id_to_phoneme:
                raise ValueError(f'ID {i} not found in phoneme table')
            result += self.id_to_phoneme[i]
        return result


class OnnxFallback:
    """
    Character-level seq2seq fallback run with onnxruntime.

    The model takes `input_ids` of shape (1, n) and returns output phoneme
    ids. Words are fed in chunks because the model degrades on long inputs.

    Args:
        model_path (str): Path to the .onnx model
        tokenizer (G2PTokenizer): Symbol table matching the model
        chunk_size (int): Characters per model call
    """

    def __init__(self, model_path, tokenizer, chunk_size=11):
        if not Path(model_path).exists():
            raise FallbackError(f'ONNX fallback model not found: {model_path}')
        self.tokenizer = tokenizer
        self.chunk_size = chunk_size
        session_options = ort.SessionOptions()
        session_options.graph_optimization_level = ort.GraphOptimizationLevel.ORT_ENABLE_EXTENDED
        try:
            self.session = ort.InferenceSession(
                str(model_path), session_options, providers=['CPUExecutionProvider']
            )
        except Exception as e:
            raise FallbackError(f'Failed to initialize ONNX session: {e}') from e
        logger.info('Loaded ONNX fallback model from %s', model_path)

    def run(self, input_ids):
        return self.session.run(None, {'input_ids': input_ids})

    def infer(self, word, tag=None):
        ps = ''
        for i in range(0, len(word), self.chunk_size):
            chunk = word[i:i + self.chunk_size]
            output_ids = self.run(self.tokenizer.encode_word(chunk))[0]
            ps += self.tokenizer.decode_phonemes(output_ids[0])
        logger.debug('ONNX fallback %r -> %r', word, ps)
        return ps, 1

    def close(self):
        self.session = None
