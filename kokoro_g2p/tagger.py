"""spaCy word tokenizer and part-of-speech tagger."""
import logging

import spacy

logger = logging.getLogger(__name__)


class SpacyTagger:
    """
    Segment text into (word, tag, whitespace) triples with Universal POS tags.

    The pipeline is loaded on first use. If the named model is not installed
    a blank English pipeline is used and tags are guessed from lexical flags.

    Args:
        model (str): spaCy model package name
    """

    def __init__(self, model='en_core_web_sm'):
        self.model = model
        self._nlp = None

    @property
    def nlp(self):
        if self._nlp is None:
            self._nlp = self._load_spacy(self.model)
        return self._nlp

    @staticmethod
    def _load_spacy(name):
        try:
            nlp = spacy.load(name, disable=['ner', 'lemmatizer'])
            logger.info('Loaded spaCy model %s', name)
            return nlp
        except (OSError, IOError):
            logger.warning('spaCy model %s is not installed, using a blank English pipeline', name)
            return spacy.blank('en')

    def __call__(self, text):
        doc = self.nlp(text)
        result = []
        for tk in doc:
            if tk.is_space:
                # Whitespace beyond a single space comes back as its own token.
                # It belongs to the word before it; leading whitespace is dropped.
                if result:
                    word, tag, ws = result[-1]
                    result[-1] = (word, tag, ws + tk.text + tk.whitespace_)
                continue
            tag = tk.pos_
            if not tag:
                if tk.is_punct:
                    tag = 'PUNCT'
                elif tk.like_num:
                    tag = 'NUM'
                elif tk.is_currency:
                    tag = 'SYM'
                else:
                    tag = 'X'
            result.append((tk.text, tag, tk.whitespace_))
        return result
