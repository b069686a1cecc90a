"""
Token model and the text-side stages of the Kokoro G2P pipeline.

This module turns text into groups of tokens that the lexicon can resolve.
The main steps in the process are:
1. Preprocessing - pull inline [text](feature) overrides out of the text
2. Folding - merge continuation tokens back into their head token
3. Subtoken splitting - break tokens into digits, letter runs, symbols
4. Retokenization - resolve punctuation and currency, group the rest
"""
import logging
import re
from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Union

import regex

from .errors import PhonemizationCancelled
from .symbols import (
    CONSONANTS,
    CURRENCIES,
    DIPHTHONGS,
    PRIMARY_STRESS,
    PUNCT_REPLACEMENTS,
    PUNCTS,
    SECONDARY_STRESS,
    STRESSES,
    VOWELS,
)

logger = logging.getLogger(__name__)

LINK_REGEX = re.compile(r'\[([^\]]+)\]\(([^\)]*)\)')

# Ordered alternatives: leading apostrophes, camel-case capital, numerals,
# hyphen/underscore runs, quote runs, lower-to-upper spans, letter runs,
# any other symbol, trailing apostrophes.
SUBTOKEN_REGEX = regex.compile(
    r"^['‘’]+|\p{Lu}(?=\p{Lu}\p{Ll})|(?:^-)?(?:\d?[,.]?\d)+|[-_]+|['‘’]{2,}|\p{L}*?(?:['‘’]\p{L})*?"
    r"\p{Ll}(?=\p{Lu})|\p{L}+(?:['‘’]\p{L})*|[^-_\p{L}'‘’\d]|['‘’]+$"
)

# Decoded [text](feature) value: int or half stress, '/phonemes' or '#alias'
InlineFeature = Union[int, float, str]


@dataclass
class Token:
    """
    Object representing a token with phonetic and stress information.

    Attributes:
        text (str): The original text
        tag (str): Part-of-speech tag from the tagger
        whitespace (str): Whitespace following this token
        phonemes (str/None): Phonetic representation, None until resolved
        start_ts (float/None): Optional alignment start time
        end_ts (float/None): Optional alignment end time
        is_head (bool): Whether this token starts a new word
        alias (str/None): Text used instead of `text` for lookup
        stress (int/float/None): Stress level override
        currency (str/None): Currency symbol attached to a numeral
        num_flags (str): Flag characters for number reading ('&', 'a', 'n')
        prespace (bool): Whether phonemes should be preceded by a space when merged
        rating (int/None): Lookup confidence, lower is better
    """
    text: str
    tag: str
    whitespace: str
    phonemes: Optional[str] = None
    start_ts: Optional[float] = None
    end_ts: Optional[float] = None
    is_head: bool = True
    alias: Optional[str] = None
    stress: Optional[float] = None
    currency: Optional[str] = None
    num_flags: str = ''
    prespace: bool = False
    rating: Optional[int] = None


@dataclass(frozen=True)
class TokenContext:
    """Lookahead state taken from the token after the current one."""
    future_vowel: Optional[bool] = None
    future_to: Optional[bool] = None


# A resolved/single token, or a run of tokens resolved jointly
ResolutionGroup = Union[Token, List[Token]]


def check_cancelled(cancel):
    if cancel is not None and cancel.is_set():
        raise PhonemizationCancelled('phonemization cancelled')


def merge_tokens(tokens, unk=None):
    """
    Merge multiple tokens into a single token while preserving phonemes and stress.

    Args:
        tokens (list): Token objects to merge, in reading order
        unk (str/None): Marker for unresolved pieces; when None the merged
            token is left unresolved

    Returns:
        Token: A single merged Token object
    """
    stress = {tk.stress for tk in tokens if tk.stress is not None}
    currency = {tk.currency for tk in tokens if tk.currency is not None}
    rating = {tk.rating for tk in tokens}
    phonemes = None
    if unk is not None:
        phonemes = ''
        for tk in tokens:
            if tk.prespace and phonemes and not phonemes[-1].isspace() and tk.phonemes:
                phonemes += ' '
            phonemes += unk if tk.phonemes is None else tk.phonemes
    return Token(
        text=''.join(tk.text + tk.whitespace for tk in tokens[:-1]) + tokens[-1].text,
        tag=max(tokens, key=lambda tk: sum(1 if c == c.lower() else 2 for c in tk.text)).tag,
        whitespace=tokens[-1].whitespace,
        phonemes=phonemes,
        start_ts=tokens[0].start_ts,
        end_ts=tokens[-1].end_ts,
        is_head=tokens[0].is_head,
        alias=None,
        stress=next(iter(stress)) if len(stress) == 1 else None,
        currency=max(currency) if currency else None,
        num_flags=''.join(sorted({c for tk in tokens for c in tk.num_flags})),
        prespace=tokens[0].prespace,
        rating=None if None in rating else min(rating),
    )


def stress_weight(ps):
    """Phonetic weight for stress ranking: diphthongs and affricates count double."""
    return sum(2 if c in DIPHTHONGS else 1 for c in ps) if ps else 0


def apply_stress(ps, stress):
    """
    Apply stress to phonemes.

    Args:
        ps (str/None): The phoneme string
        stress (int/float/None): Stress level indicator:
            - None: Keep stress as is
            - < -1: Remove all stress
            - -1: Convert primary stress to secondary
            - 0, -0.5: Convert primary to secondary if it exists
            - 0, 0.5, 1: Add secondary stress if no stress exists
            - >= 1: Convert secondary to primary if no primary exists
            - > 1: Add primary stress if no stress exists

    Returns:
        str/None: Phonemes with appropriate stress markers applied
    """
    def restress(ps):
        ips = list(enumerate(ps))
        stresses = {i: next(j for j, v in ips[i:] if v in VOWELS) for i, p in ips if p in STRESSES}
        for i, j in stresses.items():
            _, s = ips[i]
            ips[i] = (j - 0.5, s)
        return ''.join(p for _, p in sorted(ips))

    if ps is None or stress is None:
        return ps
    elif stress < -1:
        return ps.replace(PRIMARY_STRESS, '').replace(SECONDARY_STRESS, '')
    elif stress == -1 or (stress in (0, -0.5) and PRIMARY_STRESS in ps):
        return ps.replace(SECONDARY_STRESS, '').replace(PRIMARY_STRESS, SECONDARY_STRESS)
    elif stress in (0, 0.5, 1) and all(s not in ps for s in STRESSES):
        if all(v not in ps for v in VOWELS):
            return ps
        return restress(SECONDARY_STRESS + ps)
    elif stress >= 1 and PRIMARY_STRESS not in ps and SECONDARY_STRESS in ps:
        return ps.replace(SECONDARY_STRESS, PRIMARY_STRESS)
    elif stress > 1 and all(s not in ps for s in STRESSES):
        if all(v not in ps for v in VOWELS):
            return ps
        return restress(PRIMARY_STRESS + ps)
    return ps


def is_digit(text):
    return bool(re.fullmatch(r'[0-9]+', text))


def parse_feature(feature):
    """
    Decode the feature half of a [text](feature) annotation.

    Args:
        feature (str): Text between the parentheses

    Returns:
        int/float/str/None: Integer stress, half stress, '/phonemes',
            '#alias', or None for anything unrecognized
    """
    if is_digit(feature[1:] if feature[:1] in ('-', '+') else feature):
        return int(feature)
    elif feature in ('0.5', '+0.5'):
        return 0.5
    elif feature == '-0.5':
        return -0.5
    elif len(feature) > 1 and feature[0] == '/' and feature[-1] == '/':
        return feature[0] + feature[1:].rstrip('/')
    elif len(feature) > 1 and feature[0] == '#' and feature[-1] == '#':
        return feature[0] + feature[1:].rstrip('#')
    return None


def preprocess(text):
    """
    Extract inline [text](feature) overrides and split the text into raw words.

    Args:
        text (str): Raw input text

    Returns:
        tuple: (
            str: Text with annotations replaced by their display text,
            list: Raw words in reading order,
            dict: Decoded features keyed by raw word index
        )
    """
    result = ''
    words = []
    features: Dict[int, InlineFeature] = {}
    last_end = 0
    text = text.lstrip()
    for m in LINK_REGEX.finditer(text):
        result += text[last_end:m.start()]
        words.extend(text[last_end:m.start()].split())
        feature = parse_feature(m.group(2))
        if feature is not None:
            features[len(words)] = feature
        result += m.group(1)
        words.append(m.group(1))
        last_end = m.end()
    if last_end < len(text):
        result += text[last_end:]
        words.extend(text[last_end:].split())
    return result, words, features


def _spans(text, pieces):
    spans = []
    pos = 0
    for piece in pieces:
        start = text.find(piece, pos) if piece else -1
        if start < 0:
            spans.append(None)
            continue
        spans.append((start, start + len(piece)))
        pos = start + len(piece)
    return spans


def apply_features(text, words, features, tokens):
    """
    Attach preprocessed features to the tagger tokens covering each raw word.

    Raw words and tokens are aligned by character offset in `text`. Stress
    features apply to every covered token. A phoneme override goes to the
    first token and silences the rest, which become continuation pieces.
    An alias goes to the first token and silences the rest.
    """
    word_spans = _spans(text, words)
    token_spans = _spans(text, [tk.text for tk in tokens])
    for index, value in features.items():
        if index >= len(word_spans) or word_spans[index] is None:
            continue
        start, end = word_spans[index]
        aligned = [
            tk for tk, span in zip(tokens, token_spans)
            if span is not None and span[0] < end and span[1] > start
        ]
        for i, tk in enumerate(aligned):
            if not isinstance(value, str):
                tk.stress = value
            elif value.startswith('/'):
                tk.is_head = i == 0
                tk.phonemes = value[1:] if i == 0 else ''
                tk.rating = 5
            elif value.startswith('#'):
                if i == 0:
                    tk.alias = value[1:]
                else:
                    tk.phonemes = ''
                    tk.rating = 5
    return tokens


def fold_left(tokens, unk):
    """Merge every non-head token into the token before it."""
    result = []
    for tk in tokens:
        if result and not tk.is_head:
            tk = merge_tokens([result.pop(), tk], unk=unk)
        result.append(tk)
    return result


def subtokenize(word):
    """
    Split a word into its maximal run of lexical pieces, left to right.

    Returns:
        generator: Piece strings, e.g. "gr8" -> "gr", "8"
    """
    return (m.group() for m in SUBTOKEN_REGEX.finditer(word))


def retokenize(tokens, lexicon, cancel=None):
    """
    Split tokens into subtokens and group them for resolution.

    Currency symbols and lone punctuation are resolved here. Pieces joined
    without whitespace are collected into a list for joint dictionary lookup;
    anything else stands alone.

    Args:
        tokens (list): Folded Token objects
        lexicon (Lexicon): Used to read currency unit words
        cancel (threading.Event/None): Checked before each token and piece

    Returns:
        list: Token objects and lists of Token objects (ResolutionGroup)
    """
    words: List[ResolutionGroup] = []
    currency = None
    for i, token in enumerate(tokens):
        check_cancelled(cancel)
        if token.alias is None and token.phonemes is None:
            pieces = [
                replace(
                    token,
                    text=t,
                    whitespace='',
                    is_head=True,
                    alias=None,
                    currency=None,
                    prespace=False,
                    rating=None,
                )
                for t in subtokenize(token.text)
            ]
        else:
            pieces = [token]
        if pieces:
            pieces[-1].whitespace = token.whitespace
        for j, tk in enumerate(pieces):
            check_cancelled(cancel)
            if tk.alias is not None or tk.phonemes is not None:
                pass
            elif tk.tag in ('SYM', 'NUM') and tk.text in CURRENCIES:
                currency = tk
                tk.phonemes, tk.rating = lexicon.lookup(CURRENCIES[tk.text][0], None, None, None)
            elif tk.tag == 'PUNCT' and len(tk.text) == 1 and tk.text in PUNCTS:
                tk.phonemes = PUNCT_REPLACEMENTS.get(tk.text, tk.text)
                tk.rating = 4
            elif currency is not None:
                if tk.tag != 'NUM':
                    currency = None
                elif j + 1 == len(pieces) and (i + 1 == len(tokens) or tokens[i + 1].tag != 'NUM'):
                    tk.currency = currency.text
                    currency.phonemes = ''
                    currency.rating = 4
            elif 0 < j < len(pieces) - 1 and tk.text == '2' and (pieces[j - 1].text[-1:] + pieces[j + 1].text[:1]).isalpha():
                tk.alias = 'to'
            if tk.alias is not None or tk.phonemes is not None:
                words.append(tk)
            elif words and isinstance(words[-1], list) and not words[-1][-1].whitespace:
                tk.is_head = False
                words[-1].append(tk)
            else:
                words.append(tk if tk.whitespace else [tk])
    words = [w[0] if isinstance(w, list) and len(w) == 1 else w for w in words]
    logger.debug('retokenized groups: %s', [
        [tk.text for tk in w] if isinstance(w, list) else w.text for w in words
    ])
    return words


def token_context(ctx, phonemes, token):
    """
    Compute the lookahead context for the token before `token`.

    Args:
        ctx (TokenContext): Context that was in effect for `token`
        phonemes (str/None): Resolved phonemes of `token`
        token (Token): The token just resolved

    Returns:
        TokenContext: Whether the next sound is a vowel, and whether the
            next word is "to"
    """
    vowel = ctx.future_vowel
    if phonemes:
        vowel = next(
            (c in VOWELS for c in phonemes if c in VOWELS or c in CONSONANTS),
            vowel,
        )
    future_to = token.text in ('to', 'To') or (token.text == 'TO' and token.tag in ('TO', 'IN'))
    return TokenContext(future_vowel=vowel, future_to=future_to)
