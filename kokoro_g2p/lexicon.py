"""
English pronunciation lexicon.

Lookup goes through special cases, the dictionary, -s/-ed/-ing stemming,
letter-by-letter spelling of proper nouns and number verbalization. Entries
are validated against the active phoneme vocabulary when the lexicon is
built; a Lexicon is never mutated afterwards and may be shared across threads.
"""
import json
import logging
import re
import unicodedata
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional, Union

from .errors import LexiconError
from .numbers import RuleSet, spell
from .symbols import (
    CURRENCIES,
    GB_VOCAB,
    LEXICON_ORDS,
    ORDINALS,
    PRIMARY_STRESS,
    PUNCT_SYMBOLS,
    SECONDARY_STRESS,
    SYMBOLS,
    US_TAUS,
    US_VOCAB,
)
from .tokenizer import apply_stress, is_digit

logger = logging.getLogger(__name__)

NUMBER_SUFFIXES = ('st', 'nd', 'rd', 'th', 'ing', "'d", 'ed', "'s", 's')


@dataclass(frozen=True)
class PhonemeEntry:
    """Dictionary entry with a single pronunciation."""
    phonemes: str


@dataclass(frozen=True)
class TaggedEntry:
    """Dictionary entry keyed by POS tag, with a mandatory DEFAULT."""
    phonemes: Mapping[str, Optional[str]]

    @property
    def default(self):
        return self.phonemes['DEFAULT']

    def get(self, tag):
        ps = self.phonemes.get(tag)
        return self.default if ps is None else ps


DictionaryEntry = Union[PhonemeEntry, TaggedEntry]


def parse_entry(word, value):
    """Build a DictionaryEntry from a decoded JSON value."""
    if isinstance(value, (PhonemeEntry, TaggedEntry)):
        return value
    if isinstance(value, str):
        return PhonemeEntry(value)
    if isinstance(value, dict):
        if 'DEFAULT' not in value:
            raise LexiconError(f'Entry {word!r} has no DEFAULT pronunciation', word=word)
        for tag, ps in value.items():
            if ps is not None and not isinstance(ps, str):
                raise LexiconError(f'Entry {word!r} has a non-string value for tag {tag!r}', word=word)
        return TaggedEntry(MappingProxyType(dict(value)))
    raise LexiconError(f'Unexpected value type for entry {word!r}: {type(value).__name__}', word=word)


def grow_dictionary(d):
    """Add capitalized aliases for lowercase headwords and lowercase aliases for capitalized ones."""
    e = {}
    for k, v in d.items():
        if len(k) < 2:
            continue
        if k == k.lower():
            if k != k.capitalize():
                e[k.capitalize()] = v
        elif k == k.lower().capitalize():
            e[k.lower()] = v
    return {**e, **d}


class Lexicon:
    """
    Dictionary lookup with English morphology and number reading.

    Args:
        entries (dict): Headword to phoneme string or tag->phoneme mapping
        british (bool): Use the GB phoneme vocabulary and rules
        lang (str): Language code handed to the numeral speller

    Raises:
        LexiconError: If an entry is malformed or uses a phoneme outside
            the active vocabulary
    """

    def __init__(self, entries, british=False, lang='en'):
        self.british = british
        self.lang = lang
        self.cap_stresses = (0.5, 2)
        golds = {k: parse_entry(k, v) for k, v in entries.items()}
        self._validate(golds)
        self.golds = MappingProxyType(grow_dictionary(golds))

    def _validate(self, golds):
        vocab = GB_VOCAB if self.british else US_VOCAB
        for word, entry in golds.items():
            values = [entry.phonemes] if isinstance(entry, PhonemeEntry) else entry.phonemes.values()
            for ps in values:
                if ps is None:
                    continue
                bad = ''.join(sorted({c for c in ps if c not in vocab}))
                if bad:
                    raise LexiconError(
                        f'Entry {word!r} uses phonemes outside the {"GB" if self.british else "US"} vocabulary: {bad!r}',
                        word=word,
                        chars=bad,
                    )

    def _literal(self, word):
        entry = self.golds.get(word)
        if isinstance(entry, PhonemeEntry):
            return entry.phonemes
        return None

    def get_propn(self, word):
        """Spell a word letter by letter, stressing the last letter."""
        entries = [self.golds.get(c.upper()) for c in word if c.isalpha()]
        if None in entries:
            return None, None
        ps = ''.join(e.phonemes if isinstance(e, PhonemeEntry) else e.default for e in entries)
        ps = apply_stress(ps, 0)
        ps = ps.rsplit(SECONDARY_STRESS, 1)
        return PRIMARY_STRESS.join(ps), 3

    def get_special_case(self, word, tag, stress, ctx):
        if tag == 'PUNCT' and word in PUNCT_SYMBOLS:
            return self.lookup(PUNCT_SYMBOLS[word], None, -0.5, ctx)
        elif word in SYMBOLS:
            return self.lookup(SYMBOLS[word], None, None, ctx)
        elif '.' in word.strip('.') and word.replace('.', '').isalpha() and len(max(word.split('.'), key=len)) < 3:
            return self.get_propn(word)
        elif word in ('a', 'A'):
            return 'ɐ' if tag == 'DET' else 'ˈA', 4
        elif word in ('am', 'Am', 'AM'):
            if tag in ('PROPN', 'NOUN'):
                return self.get_propn(word)
            elif ctx.future_vowel is None or word != 'am' or (stress is not None and stress > 0):
                am = self._literal('am')
                if am is not None:
                    return am, 4
            return 'ɐm', 4
        elif word in ('an', 'An', 'AN'):
            if word == 'AN' and tag in ('PROPN', 'NOUN'):
                return self.get_propn(word)
            return 'ɐn', 4
        elif word == 'I' and tag == 'PRON':
            return SECONDARY_STRESS + 'I', 4
        elif word in ('by', 'By', 'BY') and tag == 'ADV':
            return 'bˈI', 4
        elif word in ('to', 'To') or (word == 'TO' and tag in ('ADP', 'SCONJ')):
            to = self._literal('to')
            if to is not None:
                return {None: to, False: 'tə', True: 'tʊ'}[ctx.future_vowel], 4
        elif word in ('in', 'In') or (word == 'IN' and tag != 'PROPN'):
            stress = PRIMARY_STRESS if ctx.future_vowel is None or tag not in ('ADP', 'SCONJ') else ''
            return stress + 'ɪn', 4
        elif word in ('the', 'The') or (word == 'THE' and tag == 'DET'):
            return 'ði' if ctx.future_vowel is True else 'ðə', 4
        elif tag == 'IN' and re.fullmatch(r'(?i)vs\.?', word):
            return self.lookup('versus', None, None, ctx)
        elif word in ('used', 'Used', 'USED'):
            used = self.golds.get('used')
            if isinstance(used, TaggedEntry):
                if tag in ('VERB', 'ADJ') and ctx.future_to and used.phonemes.get('VBD') is not None:
                    return used.phonemes['VBD'], 4
                return used.default, 4
        return None, None

    def is_known(self, word, tag):
        if word in self.golds or word in SYMBOLS:
            return True
        elif not word.isalpha() or not all(ord(c) in LEXICON_ORDS for c in word):
            return False  # TODO: café
        elif len(word) == 1:
            return True
        elif word == word.upper() and word.lower() in self.golds:
            return True
        return word[1:] == word[1:].upper()

    def lookup(self, word, tag, stress, ctx):
        """
        Look a word up in the dictionary.

        All-caps words that are not headwords themselves are lowered; if
        tagged PROPN and the dictionary form carries no primary stress they
        are spelled out instead.

        Args:
            word (str): Word to look up
            tag (str/None): POS tag selecting among tagged pronunciations
            stress (int/float/None): Stress to apply to the result
            ctx (TokenContext/None): Lookahead context

        Returns:
            tuple: (phonemes or None, rating or None)
        """
        is_propn = None
        if word == word.upper() and word not in self.golds:
            word = word.lower()
            is_propn = tag == 'PROPN'
        entry = self.golds.get(word)
        ps = None
        if isinstance(entry, PhonemeEntry):
            ps = entry.phonemes
        elif isinstance(entry, TaggedEntry):
            if ctx is not None and ctx.future_vowel is None and 'None' in entry.phonemes:
                tag = 'None'
            ps = entry.get(tag)
        if ps is None or (is_propn and PRIMARY_STRESS not in ps):
            propn, rating = self.get_propn(word)
            if propn is not None:
                return propn, rating
        if ps is None:
            return None, None
        return apply_stress(ps, stress), 4

    def _s(self, stem):
        # https://en.wiktionary.org/wiki/-s
        if not stem:
            return None
        elif stem[-1] in 'ptkfθ':
            return stem + 's'
        elif stem[-1] in 'szʃʒʧʤ':
            return stem + ('ɪ' if self.british else 'ᵻ') + 'z'
        return stem + 'z'

    def stem_s(self, word, tag, stress, ctx):
        if len(word) < 3 or not word.endswith('s'):
            return None, None
        if not word.endswith('ss') and self.is_known(word[:-1], tag):
            stem = word[:-1]
        elif (word.endswith("'s") or (len(word) > 4 and word.endswith('es') and not word.endswith('ies'))) and self.is_known(word[:-2], tag):
            stem = word[:-2]
        elif len(word) > 4 and word.endswith('ies') and self.is_known(word[:-3] + 'y', tag):
            stem = word[:-3] + 'y'
        else:
            return None, None
        stem, rating = self.lookup(stem, tag, stress, ctx)
        return self._s(stem), rating

    def _ed(self, stem):
        # https://en.wiktionary.org/wiki/-ed
        if not stem:
            return None
        elif stem[-1] in 'pkfθʃsʧ':
            return stem + 't'
        elif stem[-1] == 'd':
            return stem + ('ɪ' if self.british else 'ᵻ') + 'd'
        elif stem[-1] != 't':
            return stem + 'd'
        elif self.british or len(stem) < 2:
            return stem + 'ɪd'
        elif stem[-2] in US_TAUS:
            return stem[:-1] + 'ɾᵻd'
        return stem + 'ᵻd'

    def stem_ed(self, word, tag, stress, ctx):
        if len(word) < 4 or not word.endswith('d'):
            return None, None
        if not word.endswith('dd') and self.is_known(word[:-1], tag):
            stem = word[:-1]
        elif len(word) > 4 and word.endswith('ed') and not word.endswith('eed') and self.is_known(word[:-2], tag):
            stem = word[:-2]
        else:
            return None, None
        stem, rating = self.lookup(stem, tag, stress, ctx)
        return self._ed(stem), rating

    def _ing(self, stem):
        # https://en.wiktionary.org/wiki/-ing
        if not stem:
            return None
        elif self.british:
            if stem[-1] in 'əː':
                return None
        elif len(stem) > 1 and stem[-1] == 't' and stem[-2] in US_TAUS:
            return stem[:-1] + 'ɾɪŋ'
        return stem + 'ɪŋ'

    def stem_ing(self, word, tag, stress, ctx):
        if len(word) < 5 or not word.endswith('ing'):
            return None, None
        if len(word) > 5 and self.is_known(word[:-3], tag):
            stem = word[:-3]
        elif self.is_known(word[:-3] + 'e', tag):
            stem = word[:-3] + 'e'
        elif len(word) > 5 and re.search(r'([bcdgklmnprstvxz])\1ing$|cking$', word) and self.is_known(word[:-4], tag):
            stem = word[:-4]
        else:
            return None, None
        stem, rating = self.lookup(stem, tag, stress, ctx)
        return self._ing(stem), rating

    def get_word(self, word, tag, stress, ctx):
        """
        Resolve a word through special cases, the dictionary and the stemmers.

        Mixed or upper case words are lowered only when the lowercase form is
        a headword or stems successfully.
        """
        ps, rating = self.get_special_case(word, tag, stress, ctx)
        if ps is not None:
            return ps, rating
        wl = word.lower()
        if (
            len(word) > 1
            and word.replace("'", '').isalpha()
            and word != wl
            and (tag != 'PROPN' or len(word) > 7)
            and word not in self.golds
            and (word == word.upper() or word[1:] == word[1:].lower())
            and (
                wl in self.golds
                or any(stem(wl, tag, stress, ctx)[0] for stem in (self.stem_s, self.stem_ed, self.stem_ing))
            )
        ):
            word = wl
        if self.is_known(word, tag):
            return self.lookup(word, tag, stress, ctx)
        elif word.endswith("s'") and self.is_known(word[:-2] + "'s", tag):
            return self.lookup(word[:-2] + "'s", tag, stress, ctx)
        elif word.endswith("'") and self.is_known(word[:-1], tag):
            return self.lookup(word[:-1], tag, stress, ctx)
        s, rating = self.stem_s(word, tag, stress, ctx)
        if s is not None:
            return s, rating
        ed, rating = self.stem_ed(word, tag, stress, ctx)
        if ed is not None:
            return ed, rating
        ing, rating = self.stem_ing(word, tag, 0.5 if stress is None else stress, ctx)
        if ing is not None:
            return ing, rating
        return None, None

    @staticmethod
    def is_currency(word):
        if '.' not in word:
            return True
        elif word.count('.') > 1:
            return False
        cents = word.split('.')[1]
        return len(cents) < 3 or set(cents) == {'0'}

    def get_number(self, word, currency, is_head, num_flags):
        """
        Verbalize a numeral token.

        Args:
            word (str): Numeral, optionally signed and with an ordinal,
                's, ed or ing suffix
            currency (str/None): Currency symbol attached to the numeral
            is_head (bool): False for numerals continuing a word
            num_flags (str): '&' keeps "and", 'a' reads a leading "one" as
                "a", 'n' replaces "and" with a trailing schwa-n

        Returns:
            tuple: (phonemes or None, rating or None)
        """
        m = re.search(r"[a-z']+$", word)
        suffix = m.group() if m else None
        word = word[:-len(suffix)] if suffix else word
        num_flags = num_flags or ''
        result = []
        if word.startswith('-'):
            result.append(self.lookup('minus', None, None, None))
            word = word[1:]

        def extend_num(num, first=True, escape=False):
            splits = [w for w in re.split(r'[^a-z]+', num if escape else spell(num, lang=self.lang)) if w]
            for i, w in enumerate(splits):
                if w != 'and' or '&' in num_flags:
                    if first and i == 0 and len(splits) > 1 and w == 'one' and 'a' in num_flags:
                        result.append(('ə', 4))
                    else:
                        result.append(self.lookup(w, None, -2 if w == 'point' else None, None))
                elif 'n' in num_flags and result:
                    result[-1] = (result[-1][0] + 'ən', result[-1][1])

        if not word:
            pass
        elif is_digit(word) and suffix in ORDINALS:
            extend_num(spell(word, RuleSet.ORDINAL, self.lang), escape=True)
        elif not result and len(word) == 4 and currency not in CURRENCIES and is_digit(word):
            extend_num(spell(word, RuleSet.NUMBERING_YEAR, self.lang), escape=True)
        elif not is_head and '.' not in word:
            num = word.replace(',', '')
            if not num:
                pass
            elif num[0] == '0' or len(num) > 3:
                for n in num:
                    extend_num(n, first=False)
            elif len(num) == 3 and not num.endswith('00'):
                extend_num(num[0])
                if num[1] == '0':
                    result.append(self.lookup('O', None, -2, None))
                    extend_num(num[2], first=False)
                else:
                    extend_num(num[1:], first=False)
            else:
                extend_num(num)
        elif word.count('.') > 1 or not is_head:
            first = True
            for num in word.replace(',', '').split('.'):
                if not num:
                    pass
                elif num[0] == '0' or (len(num) != 2 and any(n != '0' for n in num[1:])):
                    for n in num:
                        extend_num(n, first=False)
                else:
                    extend_num(num, first=first)
                first = False
        elif currency in CURRENCIES and Lexicon.is_currency(word):
            pairs = [
                (int(num) if num else 0, unit)
                for num, unit in zip(word.replace(',', '').split('.'), CURRENCIES[currency])
            ]
            if len(pairs) > 1:
                if pairs[1][0] == 0:
                    pairs = pairs[:1]
                elif pairs[0][0] == 0:
                    pairs = pairs[1:]
            for i, (num, unit) in enumerate(pairs):
                if i > 0:
                    result.append(self.lookup('and', None, None, None))
                extend_num(str(num), first=i == 0)
                if abs(num) != 1 and unit != 'pence':
                    result.append(self.stem_s(unit + 's', None, None, None))
                else:
                    result.append(self.lookup(unit, None, None, None))
        else:
            if is_digit(word):
                word = spell(word, lang=self.lang)
            elif '.' not in word:
                rule_set = RuleSet.ORDINAL if suffix in ORDINALS else RuleSet.CARDINAL
                word = spell(word.replace(',', ''), rule_set, self.lang)
            else:
                word = word.replace(',', '')
                if word[0] == '.':
                    word = 'point ' + ' '.join(spell(n, lang=self.lang) for n in word[1:])
                else:
                    word = spell(word, lang=self.lang)
            extend_num(word, escape=True)
        if not result:
            logger.debug('No spoken form for numeral %r', word)
            return None, None
        ps = ' '.join(p for p, _ in result if p is not None)
        ratings = [r for _, r in result if r is not None]
        rating = min(ratings) if ratings else None
        if suffix in ('s', "'s"):
            return self._s(ps), rating
        elif suffix in ('ed', "'d"):
            return self._ed(ps), rating
        elif suffix == 'ing':
            return self._ing(ps), rating
        return ps, rating

    def append_currency(self, ps, currency):
        if not currency:
            return ps
        units = CURRENCIES.get(currency)
        unit = self.stem_s(units[0] + 's', None, None, None)[0] if units else None
        return f'{ps} {unit}' if unit else ps

    @staticmethod
    def numeric_if_needed(c):
        if not c.isdigit():
            return c
        n = unicodedata.numeric(c, None)
        return str(int(n)) if n is not None and n == int(n) else c

    @staticmethod
    def is_number(word, is_head):
        if all(not is_digit(c) for c in word):
            return False
        for s in NUMBER_SUFFIXES:
            if word.endswith(s):
                word = word[:-len(s)]
                break
        return all(is_digit(c) or c in ',.' or (is_head and i == 0 and c == '-') for i, c in enumerate(word))

    def __call__(self, tk, ctx):
        """
        Resolve a token: dictionary word first, then numeral.

        Args:
            tk (Token): Token to resolve; its alias is used when set
            ctx (TokenContext): Lookahead context

        Returns:
            tuple: (phonemes or None, rating or None)
        """
        word = (tk.text if tk.alias is None else tk.alias).replace(chr(8216), "'").replace(chr(8217), "'")
        word = unicodedata.normalize('NFKC', word)
        word = ''.join(Lexicon.numeric_if_needed(c) for c in word)
        stress = None if word == word.lower() else self.cap_stresses[int(word == word.upper())]
        ps, rating = self.get_word(word, tk.tag, stress, ctx)
        if ps is not None:
            return apply_stress(self.append_currency(ps, tk.currency), tk.stress), rating
        elif Lexicon.is_number(word, tk.is_head):
            ps, rating = self.get_number(word, tk.currency, tk.is_head, tk.num_flags)
            return apply_stress(ps, tk.stress), rating
        # Retrying the lowercase form here is deliberately not attempted.
        return None, None


def load_lexicon(paths, british=False, lang='en'):
    """
    Load and merge JSON lexicon files; later files override earlier ones.

    Args:
        paths (list): Paths to JSON files mapping headwords to phonemes
        british (bool): Validate against the GB vocabulary

    Returns:
        Lexicon: The validated lexicon
    """
    entries = {}
    for path in paths:
        try:
            with open(path, encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise LexiconError(f'Failed to read lexicon file {path}: {e}') from e
        if not isinstance(data, dict):
            raise LexiconError(f'Lexicon file {path} does not contain a JSON object')
        entries.update(data)
        logger.info('Loaded %d lexicon entries from %s', len(data), path)
    lexicon = Lexicon(entries, british=british, lang=lang)
    logger.info('Lexicon ready: %d entries (%s)', len(lexicon.golds), 'GB' if british else 'US')
    return lexicon
