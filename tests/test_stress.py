import pytest

from kokoro_g2p.g2p import G2P
from kokoro_g2p.tokenizer import Token, apply_stress, stress_weight


@pytest.mark.parametrize('ps,stress,expected', [
    ('ˈæpᵊl', None, 'ˈæpᵊl'),
    ('ˈæpᵊl', -2, 'æpᵊl'),
    ('ˌAˈæp', -2, 'Aæp'),
    ('ˈæpᵊl', -1, 'ˌæpᵊl'),
    ('ˌAˈæp', -1, 'Aˌæp'),
    ('ˈæpᵊl', 0, 'ˌæpᵊl'),
    ('ˈæpᵊl', -0.5, 'ˌæpᵊl'),
    ('kæt', 0, 'kˌæt'),
    ('kæt', 0.5, 'kˌæt'),
    ('kæt', 1, 'kˌæt'),
    ('kæt', 2, 'kˈæt'),
    ('kˌæt', 1, 'kˈæt'),
    ('kˌæt', 2, 'kˈæt'),
    ('kˈæt', 2, 'kˈæt'),
    ('st', 1, 'st'),
    ('st', 2, 'st'),
    ('', 2, ''),
])
def test_apply_stress(ps, stress, expected):
    assert apply_stress(ps, stress) == expected


def test_apply_stress_none():
    assert apply_stress(None, 1) is None


@pytest.mark.parametrize('ps', ['ˈæpᵊl', 'ˌAˈæp', 'kæt', 'nˌIntˈin dˈɑləɹz'])
def test_repeated_demotion_never_leaves_primary(ps):
    for _ in range(3):
        ps = apply_stress(ps, -1)
        assert 'ˈ' not in ps


def test_stress_weight():
    assert stress_weight('kˈæt') == 4
    assert stress_weight('ˈAʧ') == 5
    assert stress_weight('') == 0
    assert stress_weight(None) == 0


def test_resolve_tokens_demotes_weaker_half():
    tokens = [
        Token('black', 'ADJ', '', phonemes='blˈæk'),
        Token('bird', 'NOUN', '', phonemes='bˈɜɹd'),
    ]
    G2P.resolve_tokens(tokens)
    assert [tk.phonemes for tk in tokens] == ['blˌæk', 'bˈɜɹd']


def test_resolve_tokens_initialism():
    tokens = [
        Token('X', 'PROPN', '', phonemes='ˈɛks'),
        Token('ray', 'NOUN', '', phonemes='ɹˈA'),
    ]
    G2P.resolve_tokens(tokens)
    assert [tk.phonemes for tk in tokens] == ['ˈɛks', 'ɹˌA']


def test_resolve_tokens_leaves_single_stress():
    tokens = [
        Token('black', 'ADJ', '', phonemes='blæk'),
        Token('bird', 'NOUN', '', phonemes='bˈɜɹd'),
    ]
    G2P.resolve_tokens(tokens)
    assert [tk.phonemes for tk in tokens] == ['blæk', 'bˈɜɹd']


def test_resolve_tokens_mixed_classes_prespace():
    tokens = [
        Token('abc', 'NOUN', '', phonemes='ˈAbˈisˈi'),
        Token('123', 'NUM', '', phonemes='wˈʌn tˈu θɹˈi'),
    ]
    G2P.resolve_tokens(tokens)
    assert tokens[1].prespace
    assert not tokens[0].prespace
    assert tokens[0].phonemes == 'ˈAbˈisˈi'


def test_resolve_tokens_finishes_punctuation():
    tokens = [
        Token('cat', 'NOUN', '', phonemes='kˈæt'),
        Token('-', 'PUNCT', ''),
        Token('.', 'PUNCT', ''),
    ]
    G2P.resolve_tokens(tokens)
    assert tokens[1].phonemes == ''
    assert tokens[2].phonemes == '.'
    assert tokens[1].rating == tokens[2].rating == 3
