import logging
from unittest.mock import patch

import pytest
import spacy

from kokoro_g2p.g2p import G2P
from kokoro_g2p.tagger import SpacyTagger


@pytest.fixture
def blank_tagger():
    tagger = SpacyTagger()
    tagger._nlp = spacy.blank('en')
    return tagger


def test_missing_model_uses_blank_pipeline(caplog):
    tagger = SpacyTagger('en_missing_model')
    with caplog.at_level(logging.WARNING, logger='kokoro_g2p.tagger'):
        with patch('kokoro_g2p.tagger.spacy.load', side_effect=OSError('no such model')):
            nlp = tagger.nlp
    assert nlp.pipe_names == []
    assert 'en_missing_model' in caplog.text
    assert tagger.nlp is nlp


def test_blank_pipeline_tags(blank_tagger):
    assert blank_tagger('Pay $5, now!') == [
        ('Pay', 'X', ' '),
        ('$', 'SYM', ''),
        ('5', 'NUM', ''),
        (',', 'PUNCT', ' '),
        ('now', 'X', ''),
        ('!', 'PUNCT', ''),
    ]


def test_whitespace_runs_are_trailing_whitespace(blank_tagger):
    assert blank_tagger('Hello.\nWorld  cat') == [
        ('Hello', 'X', ''),
        ('.', 'PUNCT', '\n'),
        ('World', 'X', '  '),
        ('cat', 'X', ''),
    ]


@pytest.mark.parametrize('text', ['one\n\ntwo', 'one \t two  ', 'a  b   c\n'])
def test_whitespace_round_trip(blank_tagger, text):
    triples = blank_tagger(text)
    assert ''.join(word + ws for word, _, ws in triples) == text
    assert all(word.strip() for word, _, _ in triples)


def test_leading_whitespace_is_dropped(blank_tagger):
    assert blank_tagger('  cat') == [('cat', 'X', '')]


def test_pipeline_keeps_line_breaks(lexicon, blank_tagger):
    ps, tokens = G2P(lexicon, tagger=blank_tagger)('hello.\nworld  cat')
    assert ps == 'həlˈO.\nwˈɜɹld  kˈæt'
    assert [tk.text for tk in tokens] == ['hello', '.', 'world', 'cat']
