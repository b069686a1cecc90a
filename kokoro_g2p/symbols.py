"""
Phoneme alphabet and text symbol tables shared by the G2P pipeline.

The phoneme alphabet is the one used by Kokoro: single-character diphthongs
(A, I, O, Q, W, Y), affricates as ligatures (ʤ, ʧ) and IPA stress marks.
"""

# Define stress markers and vowel phonemes for stress placement
STRESSES = 'ˌˈ'
PRIMARY_STRESS = STRESSES[1]
SECONDARY_STRESS = STRESSES[0]
VOWELS = frozenset('AIOQWYaiuæɑɒɔəɛɜɪʊʌᵻ')
CONSONANTS = frozenset('bdfhjklmnpstvwzðŋɡɹɾʃʒʤʧθ')

# Diphthongs and affricates count double when weighing stress
DIPHTHONGS = frozenset('AIOQWYʤʧ')

# Vowels after which a US "t" is flapped (ɾ) before -ed/-ing
US_TAUS = frozenset('AIOWYiuæɑəɛɪɹʊʌ')

# Phoneme vocabularies every dictionary entry is validated against
US_VOCAB = frozenset('AIOWYbdfhijklmnpstuvwzæðŋɑɔəɛɜɡɪɹɾʃʊʌʒʤʧˈˌθᵊᵻʔ')
GB_VOCAB = frozenset('AIQWYabdfhijklmnpstuvwzðŋɑɒɔəɛɜɡɪɹʃʊʌʒʤʧˈˌːθᵊ')

# Characters that carry no sound inside a word
SUBTOKEN_JUNKS = frozenset("',-._‘’/")
PUNCTS = frozenset(';:,.!?—…"“”()')
NON_QUOTE_PUNCTS = frozenset(p for p in PUNCTS if p not in '"“”')
PUNCT_REPLACEMENTS = {
    '“': '"',
    '”': '"',
    '…': '...',
}

# Characters allowed in words the stemmers and proper-noun speller may touch
LEXICON_ORDS = frozenset([39, 45, *range(65, 91), *range(97, 123)])

# Currency symbols and their (major, minor) unit words
CURRENCIES = {
    '$': ('dollar', 'cent'),
    '£': ('pound', 'pence'),
    '€': ('euro', 'cent'),
}
ORDINALS = frozenset(['st', 'nd', 'rd', 'th'])

# Symbols read as words
PUNCT_SYMBOLS = {
    '.': 'dot',
    '/': 'slash',
    '_': 'underscore',
}
SYMBOLS = {
    '%': 'percent',
    '&': 'and',
    '+': 'plus',
    '@': 'at',
}

# Substitutions applied to resolved phonemes for the synthesizer's inventory
FLAP = 'ɾ'
GLOTTAL_STOP = 'ʔ'
OUTPUT_REPLACEMENTS = {
    FLAP: 'T',
    GLOTTAL_STOP: 't',
}

# Spoken "unknown"
DEFAULT_UNK = 'ˌʌnnˈOn'
