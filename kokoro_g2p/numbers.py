"""
Numeral speller: spell numeral strings out as words with num2words.

Failures never raise; an unparseable numeral spells as an empty string.
"""
import enum
import logging

from num2words import num2words

logger = logging.getLogger(__name__)


class RuleSet(enum.Enum):
    """Spell-out rule sets, mapped to num2words conversion types."""
    ORDINAL = 'ordinal'
    CARDINAL = 'cardinal'
    NUMBERING = 'numbering'
    NUMBERING_YEAR = 'year'


_TO = {
    RuleSet.ORDINAL: 'ordinal',
    RuleSet.CARDINAL: 'cardinal',
    RuleSet.NUMBERING: 'cardinal',
    RuleSet.NUMBERING_YEAR: 'year',
}


def _parse(num):
    try:
        return int(num)
    except ValueError:
        pass
    try:
        return float(num)
    except ValueError:
        return None


def spell(num, rule_set=RuleSet.CARDINAL, lang='en'):
    """
    Spell a numeral string out in words.

    Args:
        num (str): Numeral such as "42", "3.14" or "1984"
        rule_set (RuleSet): Cardinal, ordinal, numbering or year reading
        lang (str): num2words language code

    Returns:
        str: The spelled-out words, or "" if the numeral cannot be read
    """
    value = _parse(num)
    if value is None:
        logger.warning('Failed to convert number to words, returning empty string: %r', num)
        return ''
    if isinstance(value, float) and rule_set is not RuleSet.CARDINAL:
        rule_set = RuleSet.CARDINAL
    try:
        return num2words(value, lang=lang, to=_TO[rule_set])
    except (ArithmeticError, NotImplementedError, TypeError, ValueError):
        logger.warning('Failed to convert number to words, returning empty string: %r', num)
        logger.debug('spell parameters: num=%r rule_set=%s lang=%s', num, rule_set, lang, exc_info=True)
        return ''
