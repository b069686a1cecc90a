import json
from unittest.mock import MagicMock, patch

import numpy as np
import pytest

from kokoro_g2p.errors import FallbackError
from kokoro_g2p.fallback import EspeakFallback, G2PTokenizer, OnnxFallback


@pytest.fixture
def espeak_backend():
    with patch('kokoro_g2p.fallback.EspeakBackend') as backend_cls:
        yield backend_cls


@pytest.mark.parametrize('ipa,expected', [
    ('həlˈoʊ', 'həlˈO'),
    ('ɹˈaɪt', 'ɹˈIt'),
    ('bˈaʊt', 'bˈWt'),
    ('dʒˈʌdʒ', 'ʤˈʌʤ'),
    ('tʃˈɜːtʃ', 'ʧˈɜʧ'),
    ('bˈɚd', 'bˈəɹd'),
    ('pˈeɪ', 'pˈA'),
    ('bˈɔɪ', 'bˈY'),
])
def test_espeak_to_kokoro(espeak_backend, ipa, expected):
    assert EspeakFallback().to_kokoro(ipa) == expected


def test_espeak_british_keeps_length(espeak_backend):
    fallback = EspeakFallback(british=True)
    assert fallback.to_kokoro('bˈɜːd') == 'bˈɜːd'
    assert fallback.to_kokoro('ɡˈəʊ') == 'ɡˈQ'
    espeak_backend.assert_called_once_with('en-gb', with_stress=True)


def test_espeak_infer(espeak_backend):
    espeak_backend.return_value.phonemize.return_value = ['kˈoʊkəɹoʊ']
    assert EspeakFallback().infer('Kokoro', 'PROPN') == ('kˈOkəɹO', 1)
    espeak_backend.return_value.phonemize.assert_called_once_with(['Kokoro'], strip=True)


def test_espeak_infer_empty(espeak_backend):
    espeak_backend.return_value.phonemize.return_value = ['']
    assert EspeakFallback().infer('???') == (None, None)


@pytest.fixture
def tokenizer():
    return G2PTokenizer('_abc', '_xyz')


def test_tokenizer_encode(tokenizer):
    ids = tokenizer.encode_word('ab?')
    assert ids.dtype == np.int64
    assert ids.tolist() == [[1, 4, 5, 3, 2]]


def test_tokenizer_decode(tokenizer):
    assert tokenizer.decode_phonemes(np.array([1, 4, 6, 2, 0])) == 'xz'
    with pytest.raises(ValueError):
        tokenizer.decode_phonemes([99])


def test_tokenizer_from_config(tmp_path):
    path = tmp_path / 'tokenizer.json'
    path.write_text(json.dumps({'grapheme_chars': '_ab', 'phoneme_chars': '_ˈA'}), encoding='utf-8')
    tokenizer = G2PTokenizer.from_config(path)
    assert tokenizer.encode_word('b').tolist() == [[1, 5, 2]]
    assert tokenizer.decode_phonemes([4, 5]) == 'ˈA'


def test_tokenizer_from_bad_config(tmp_path):
    path = tmp_path / 'tokenizer.json'
    path.write_text(json.dumps({'grapheme_chars': '_ab'}), encoding='utf-8')
    with pytest.raises(FallbackError):
        G2PTokenizer.from_config(path)
    with pytest.raises(FallbackError):
        G2PTokenizer.from_config(tmp_path / 'missing.json')


def test_onnx_missing_model(tmp_path, tokenizer):
    with pytest.raises(FallbackError):
        OnnxFallback(tmp_path / 'missing.onnx', tokenizer)


def test_onnx_infer_chunks_words(tmp_path, tokenizer):
    model = tmp_path / 'g2p.onnx'
    model.write_bytes(b'')
    with patch('kokoro_g2p.fallback.ort.InferenceSession') as session_cls:
        session = MagicMock()
        session.run.return_value = [np.array([[1, 4, 5, 2]], dtype=np.int64)]
        session_cls.return_value = session
        fallback = OnnxFallback(model, tokenizer, chunk_size=2)
        assert fallback.infer('abcab') == ('xyxyxy', 1)
    assert session.run.call_count == 3
    first_inputs = session.run.call_args_list[0][0][1]
    assert first_inputs['input_ids'].tolist() == [[1, 4, 5, 2]]


def test_onnx_session_failure(tmp_path, tokenizer):
    model = tmp_path / 'g2p.onnx'
    model.write_bytes(b'')
    with patch('kokoro_g2p.fallback.ort.InferenceSession', side_effect=RuntimeError('bad model')):
        with pytest.raises(FallbackError):
            OnnxFallback(model, tokenizer)
