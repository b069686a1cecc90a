"""
Command-line phonemizer.

Usage:
  python -m kokoro_g2p "The quick brown fox." --lexicon us_gold.json us_silver.json
  python -m kokoro_g2p "$19.99" --fallback espeak --tokens
"""
import argparse
import logging
import sys
from dataclasses import replace

from .config import FALLBACKS, G2PConfig, build_g2p
from .errors import G2PError

logger = logging.getLogger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(prog='kokoro-g2p', description='Convert English text to Kokoro phonemes')
    parser.add_argument('text', help='Text to phonemize')
    parser.add_argument('--british', action='store_true', default=None, help='Use GB phonemes')
    parser.add_argument('--lexicon', nargs='+', metavar='PATH', help='JSON lexicon files, later ones override earlier')
    parser.add_argument('--fallback', choices=FALLBACKS, help='Model for words missing from the lexicon')
    parser.add_argument('--tokens', action='store_true', help='Print one line per token')
    parser.add_argument('--verbose', '-v', action='store_true', help='Debug logging')
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )
    config = G2PConfig.from_env()
    if args.british is not None:
        config = replace(config, british=args.british)
    if args.lexicon:
        config = replace(config, lexicon_paths=tuple(args.lexicon))
    if args.fallback:
        config = replace(config, fallback=args.fallback)
    try:
        g2p = build_g2p(config)
    except G2PError as e:
        logger.error('Failed to set up phonemizer: %s', e)
        return 1
    try:
        ps, tokens = g2p(args.text)
    finally:
        g2p.close()
    print(ps)
    if args.tokens:
        for tk in tokens:
            print(f'{tk.text}\t{tk.tag}\t{tk.phonemes}\t{tk.rating}')
    return 0


if __name__ == '__main__':
    sys.exit(main())
