"""
Configuration constants for the photo repository.
"""
import re

# --- Output Directory ---
CACHE_FILENAME = ".prepo_cache.json"
LOG_FILENAME = "photo_repo.log"

# Managed links are named photo_<index><ext>; anything else in the output dir is left alone
LINK_PREFIX = "photo_"
MANAGED_LINK_PATTERN = re.compile(r'^photo_\d+(\..*)?$')

# --- Link Types ---
LINK_HARD = 'hard'
LINK_SYMBOLIC = 'symbolic'
LINK_TEST = 'test'
LINK_NONE = 'none'

LINK_TYPES = (LINK_HARD, LINK_SYMBOLIC, LINK_TEST, LINK_NONE)

# Alias -> canonical link type (accepted by the link-type setter and the CLI)
LINK_TYPE_ALIASES = {
    'h': LINK_HARD,
    'hard': LINK_HARD,
    's': LINK_SYMBOLIC,
    'symbolic': LINK_SYMBOLIC,
    't': LINK_TEST,
    'test': LINK_TEST,
    'none': LINK_NONE,
}

# --- Ordering ---
ORDER_ANY = 'any'
ORDER_RANDOM = 'random'
ORDER_VALUES = (ORDER_ANY, ORDER_RANDOM)

# --- Defaults for a fresh repository ---
DEFAULT_ORDER = ORDER_ANY
DEFAULT_LINK_TYPE = LINK_SYMBOLIC

# --- Filename Analysis ---
# A serial run like "100_1213" must start and end with a digit so that it never
# swallows the underscore opening a tag. ISO dates are protected by the lookahead.
SERIAL_PREFIX = re.compile(r'^(?!\d{4}-\d{2}-\d{2})\d(?:[\d_]*\d)?')
IMAG_PREFIX = re.compile(r'^IMAG\d+')
ISO_DATE = re.compile(r'^\s*(\d{4})-(\d{2})-(\d{2})')
TIME_TOKEN = re.compile(r'^\s*\d{2}\.\d{2}\.\d{2}')

# Tag = text between a pair of underscores, no underscore inside,
# first/last character not whitespace
TAG_PATTERN = re.compile(r'_([^_\s](?:[^_]*[^_\s])?)_')

# --- Filter Expressions ---
# Limit on nested '(' and '!' so parsing and evaluation never hit the recursion limit
MAX_EXPRESSION_DEPTH = 64
