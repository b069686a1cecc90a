"""
English grapheme-to-phoneme conversion for Kokoro.

G2P ties the pipeline together:
1. Preprocessing - inline [text](feature) overrides
2. Tagging - words, POS tags and whitespace from the tagger
3. Folding and retokenization - subtokens grouped for joint lookup
4. Resolution - right to left, longest match against the lexicon, with
   per-token fallback and stress rebalancing
5. Assembly - phonemes and whitespace joined into one string
"""
import logging
import unicodedata

from .lexicon import Lexicon
from .symbols import (
    DEFAULT_UNK,
    NON_QUOTE_PUNCTS,
    OUTPUT_REPLACEMENTS,
    PRIMARY_STRESS,
    PUNCT_SYMBOLS,
    SUBTOKEN_JUNKS,
)
from .tagger import SpacyTagger
from .tokenizer import (
    Token,
    TokenContext,
    apply_features,
    apply_stress,
    check_cancelled,
    fold_left,
    is_digit,
    merge_tokens,
    preprocess as preprocess_text,
    retokenize,
    stress_weight,
    token_context,
)

logger = logging.getLogger(__name__)


def _is_junk(text):
    return all(c in SUBTOKEN_JUNKS for c in text)


class G2P:
    """
    Text to phonemes.

    Args:
        lexicon (Lexicon): Dictionary and morphology rules
        tagger (callable/None): text -> [(word, tag, whitespace), ...];
            defaults to a SpacyTagger
        fallback (object/None): Model with `infer(word, tag)` for words the
            lexicon cannot resolve
        unk (str): Phonemes emitted for unresolved tokens
    """

    def __init__(self, lexicon, tagger=None, fallback=None, unk=DEFAULT_UNK):
        self.lexicon = lexicon
        self.tagger = SpacyTagger() if tagger is None else tagger
        self.fallback = fallback
        self.unk = unk

    def close(self):
        """Release the fallback model, if any."""
        if self.fallback is not None and hasattr(self.fallback, 'close'):
            self.fallback.close()
        self.fallback = None

    def tokenize(self, text, words, features):
        tokens = [Token(text=t, tag=tag, whitespace=ws) for t, tag, ws in self.tagger(text)]
        logger.debug('tagged tokens: %s', [(tk.text, tk.tag) for tk in tokens])
        if features:
            apply_features(text, words, features, tokens)
        return tokens

    @staticmethod
    def resolve_tokens(tokens):
        """
        Finish a jointly resolved group and rebalance its stress.

        Spans that read as several words (spaces, slashes, or a mix of
        letters, digits and symbols) are only marked for prespacing.
        Otherwise, when more than half of the phoneme-bearing tokens carry a
        primary stress, the weaker half is demoted.
        """
        text = ''.join(tk.text + tk.whitespace for tk in tokens[:-1]) + tokens[-1].text
        prespace = ' ' in text or '/' in text or len({
            0 if c.isalpha() else 1 if is_digit(c) else 2
            for c in text if c not in SUBTOKEN_JUNKS
        }) > 1
        for i, tk in enumerate(tokens):
            if tk.phonemes is None:
                if i == len(tokens) - 1 and tk.text in NON_QUOTE_PUNCTS:
                    tk.phonemes = tk.text
                    tk.rating = 3
                elif _is_junk(tk.text):
                    tk.phonemes = ''
                    tk.rating = 3
            elif i > 0:
                tk.prespace = prespace
        if prespace:
            return
        indices = [(PRIMARY_STRESS in tk.phonemes, stress_weight(tk.phonemes), i) for i, tk in enumerate(tokens) if tk.phonemes]
        if len(indices) == 2 and len(tokens[indices[0][2]].text) == 1:
            i = indices[1][2]
            tokens[i].phonemes = apply_stress(tokens[i].phonemes, -0.5)
            return
        elif len(indices) < 2 or sum(b for b, _, _ in indices) <= (len(indices) + 1) // 2:
            return
        indices = sorted(indices)
        for _, _, i in indices[:len(indices) - len(indices) // 2]:
            tokens[i].phonemes = apply_stress(tokens[i].phonemes, -0.5)

    def _infer(self, tk):
        try:
            ps, rating = self.fallback.infer(tk.text, tk.tag)
        except Exception:
            logger.warning('Fallback model failed on %r, leaving it unresolved', tk.text, exc_info=True)
            return None, None
        logger.debug('fallback %r -> %r', tk.text, ps)
        return ps, rating

    def _unicode_names(self, text, cancel=None):
        parts = []
        tokens = []
        for c in text:
            name = unicodedata.name(c, None)
            if name is None:
                parts.append(self.unk)
                continue
            ps, sub = self(name.lower(), cancel=cancel)
            parts.append(ps)
            tokens.extend(sub)
        return ', '.join(parts), merge_tokens(tokens).rating if tokens else None

    def token_fallback(self, tk, cancel=None):
        """
        Resolve a token the lexicon could not.

        Tries symbol words, numerals, the fallback model (not for single
        characters or all-caps proper nouns), letter spelling, and finally
        the Unicode names of the characters.

        Returns:
            tuple: (phonemes or None, rating or None)
        """
        if tk.text in PUNCT_SYMBOLS:
            return self.lexicon.lookup(PUNCT_SYMBOLS[tk.text], None, -0.5, None)
        elif Lexicon.is_number(tk.text, tk.is_head):
            return self.lexicon.get_number(tk.text, tk.currency, tk.is_head, tk.num_flags)
        elif self.fallback is not None and len(tk.text) != 1 and not (tk.tag == 'PROPN' and all(c.isupper() for c in tk.text)):
            return self._infer(tk)
        elif all(c.isalpha() for c in tk.text):
            return self.lexicon.get_propn(tk.text)
        return self._unicode_names(tk.text, cancel)

    def _resolve_group(self, group, ctx, cancel=None):
        left, right = 0, len(group)
        should_fallback = False
        while left < right:
            window = group[left:right]
            if any(tk.alias is not None or tk.phonemes is not None for tk in window):
                tk, ps, rating = None, None, None
            else:
                tk = merge_tokens(window)
                ps, rating = self.lexicon(tk, ctx)
            if ps is not None:
                group[left].phonemes = ps
                group[left].rating = rating
                for x in group[left + 1:right]:
                    x.phonemes = ''
                    x.rating = rating
                ctx = token_context(ctx, ps, tk)
                right, left = left, 0
            elif left + 1 < right:
                left += 1
            else:
                right -= 1
                tk = group[right]
                if tk.phonemes is None:
                    if _is_junk(tk.text):
                        tk.phonemes = ''
                        tk.rating = 3
                    else:
                        should_fallback = True
                        break
                left = 0
        if should_fallback:
            logger.debug('fallback tokens: %s', [tk.text for tk in group])
            for tk in group:
                if tk.phonemes is None:
                    tk.phonemes, tk.rating = self.token_fallback(tk, cancel)
        else:
            self.resolve_tokens(group)
        return ctx

    def assemble(self, tokens):
        """Join phonemes and whitespace, mapping flap and glottal stop to T and t."""
        for tk in tokens:
            if tk.phonemes:
                for old, new in OUTPUT_REPLACEMENTS.items():
                    tk.phonemes = tk.phonemes.replace(old, new)
        return ''.join((self.unk if tk.phonemes is None else tk.phonemes) + tk.whitespace for tk in tokens)

    def __call__(self, text, preprocess=True, cancel=None):
        """
        Convert text to phonemes.

        Args:
            text (str): Input text, optionally with [text](feature) overrides
            preprocess (bool): Parse inline overrides
            cancel (threading.Event/None): Set to abandon the utterance

        Returns:
            tuple: (phoneme string, list of merged Token objects)

        Raises:
            PhonemizationCancelled: If `cancel` is set while resolving
        """
        if preprocess:
            text, words, features = preprocess_text(text)
        else:
            words, features = [], {}
        tokens = fold_left(self.tokenize(text, words, features), self.unk)
        # Taggers do not treat a lone "a" as a determiner, so it would be read as a word
        if (len(tokens) == 1 and tokens[0].text == 'a') or (len(tokens) == 2 and ' '.join(tk.text for tk in tokens) == 'capital A'):
            tokens[-1].phonemes = PRIMARY_STRESS + 'A'
        groups = retokenize(tokens, self.lexicon, cancel)
        ctx = TokenContext()
        for w in reversed(groups):
            check_cancelled(cancel)
            if isinstance(w, list):
                ctx = self._resolve_group(w, ctx, cancel)
                continue
            if w.phonemes is None:
                w.phonemes, w.rating = self.lexicon(w, ctx)
            if w.phonemes is None:
                w.phonemes, w.rating = self.token_fallback(w, cancel)
            ctx = token_context(ctx, w.phonemes, w)
        tokens = [merge_tokens(w, unk=self.unk) if isinstance(w, list) else w for w in groups]
        ps = self.assemble(tokens)
        logger.debug('phonemes: %r', ps)
        return ps, tokens


_default_g2p = None


def phonemize(text, g2p=None):
    """
    Convert text to phonemes with a G2P built from the environment.

    Args:
        text (str): The input text to convert to phonemes
        g2p (G2P/None): Converter to use instead of the default

    Returns:
        dict: Dictionary with:
            - 'ps': Phoneme string with stress marks
            - 'tokens': List of Token objects
    """
    global _default_g2p
    if g2p is None:
        if _default_g2p is None:
            from .config import G2PConfig, build_g2p
            _default_g2p = build_g2p(G2PConfig.from_env())
        g2p = _default_g2p
    ps, tokens = g2p(text)
    return {'ps': ps, 'tokens': tokens}
