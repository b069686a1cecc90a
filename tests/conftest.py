"""
Pytest configuration for the G2P tests.

Provides a small US lexicon and a rule-based tagger so the suite runs
without spaCy models, espeak-ng or ONNX model files.
"""
import re

import pytest

from kokoro_g2p.g2p import G2P
from kokoro_g2p.lexicon import Lexicon
from kokoro_g2p.symbols import CURRENCIES

LETTERS = {
    'A': 'ˈA', 'B': 'bˈi', 'C': 'sˈi', 'D': 'dˈi', 'E': 'ˈi', 'F': 'ˈɛf',
    'G': 'ʤˈi', 'H': 'ˈAʧ', 'I': 'ˈI', 'J': 'ʤˈA', 'K': 'kˈA', 'L': 'ˈɛl',
    'M': 'ˈɛm', 'N': 'ˈɛn', 'O': 'ˈO', 'P': 'pˈi', 'Q': 'kjˈu', 'R': 'ˈɑɹ',
    'S': 'ˈɛs', 'T': 'tˈi', 'U': 'jˈu', 'V': 'vˈi', 'W': 'dˈʌbᵊlju',
    'X': 'ˈɛks', 'Y': 'wˈI', 'Z': 'zˈi',
}

NUMBERS = {
    'zero': 'zˈɪɹO', 'one': 'wˈʌn', 'two': 'tˈu', 'three': 'θɹˈi', 'four': 'fˈɔɹ',
    'five': 'fˈIv', 'six': 'sˈɪks', 'seven': 'sˈɛvən', 'eight': 'ˈAt', 'nine': 'nˈIn',
    'ten': 'tˈɛn', 'eleven': 'ɪlˈɛvən', 'twelve': 'twˈɛlv', 'thirteen': 'θˌɜɹtˈin',
    'fourteen': 'fˌɔɹtˈin', 'fifteen': 'fˌɪftˈin', 'sixteen': 'sˌɪkstˈin',
    'seventeen': 'sˌɛvəntˈin', 'eighteen': 'ˌAtˈin', 'nineteen': 'nˌIntˈin',
    'twenty': 'twˈɛnti', 'thirty': 'θˈɜɹɾi', 'forty': 'fˈɔɹɾi', 'fifty': 'fˈɪfti',
    'sixty': 'sˈɪksti', 'seventy': 'sˈɛvənti', 'eighty': 'ˈAɾi', 'ninety': 'nˈInti',
    'hundred': 'hˈʌndɹəd', 'thousand': 'θˈWzənd', 'first': 'fˈɜɹst', 'third': 'θˈɜɹd',
    'minus': 'mˈInəs', 'point': 'pˈYnt', 'and': 'ænd',
}

WORDS = {
    'to': 'tʊ', 'the': 'ðə', 'am': 'ˈæm', 'cat': 'kˈæt', 'apple': 'ˈæpᵊl',
    'walk': 'wˈɔk', 'wait': 'wˈAt', 'need': 'nˈid', 'kiss': 'kˈɪs', 'city': 'sˈɪɾi',
    'make': 'mˈAk', 'run': 'ɹˈʌn', 'smith': 'smˈɪθ', 'versus': 'vˈɜɹsəs',
    'dot': 'dˈɑt', 'slash': 'slˈæʃ', 'percent': 'pəɹsˈɛnt', 'dollar': 'dˈɑləɹ',
    'cent': 'sˈɛnt', 'pound': 'pˈWnd', 'pence': 'pˈɛns', 'euro': 'jˈʊɹO',
    'number': 'nˈʌmbəɹ', 'sign': 'sˈIn', 'hello': 'həlˈO', 'world': 'wˈɜɹld',
    'black': 'blˈæk', 'bird': 'bˈɜɹd', 'button': 'bˈʌʔn',
    'used': {'VBD': 'jˈust', 'DEFAULT': 'jˈuzd'},
    'read': {'VBD': 'ɹˈɛd', 'DEFAULT': 'ɹˈid'},
}

TOKEN_RE = re.compile(r"(?:Dr|Mr|Mrs|vs)\.|[$£€]|\d+(?:[.,]\d+)*(?:st|nd|rd|th|s)?|[A-Za-z]+(?:['’][A-Za-z]+)*|\S")


def _tag(word, index):
    lw = word.lower()
    if word in CURRENCIES:
        return 'SYM'
    elif word[0].isdigit():
        return 'NUM'
    elif not word[0].isalnum():
        return 'PUNCT'
    elif lw in ('a', 'an', 'the'):
        return 'DET'
    elif word == 'I':
        return 'PRON'
    elif lw == 'to':
        return 'PART'
    elif lw in ('in', 'by', 'of'):
        return 'ADP'
    elif lw == 'used':
        return 'VERB'
    elif word.endswith('.') or (index > 0 and word[0].isupper()):
        return 'PROPN'
    return 'NOUN'


def fake_tagger(text):
    """Regex word splitter with rule-based Universal POS tags."""
    matches = list(TOKEN_RE.finditer(text))
    result = []
    for i, m in enumerate(matches):
        end = matches[i + 1].start() if i + 1 < len(matches) else len(text)
        result.append((m.group(), _tag(m.group(), i), text[m.end():end]))
    return result


@pytest.fixture
def entries():
    return {**LETTERS, **NUMBERS, **WORDS}


@pytest.fixture
def lexicon(entries):
    return Lexicon(entries)


@pytest.fixture
def tagger():
    return fake_tagger


@pytest.fixture
def g2p(lexicon, tagger):
    return G2P(lexicon, tagger=tagger)
