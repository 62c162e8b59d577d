"""Common literal values used across kodama.

Metadata keys, cache layout names, and link actions live here so the parsers,
the resolver, the writer, and the tests agree on the same spelling.

Examples
--------
>>> from kodama import _constants
>>> _constants.ENTRY_FILE_TEMPLATE.format(slug="notes/a", ext="md")
'notes/a.md.entry'
>>> _constants.KEY_TITLE in _constants.PLAIN_METADATA_KEYS
False
"""

DEFAULT_CONFIG_FILE = "Kodama.toml"
INDEX_SLUG = "index"

CACHE_DIR = ".cache"
HASH_DIR = "hash"
ENTRY_DIR = "entry"
ENTRY_FILE_TEMPLATE = "{slug}.{ext}.entry"
INDEXES_FILE = "indexes.json"
MAIN_CSS_FILE = "main.css"
SNIPPETS_FILE = ".vscode/markdown.code-snippets"

KEY_SLUG = "slug"
KEY_EXT = "ext"
KEY_TITLE = "title"
KEY_TAXON = "taxon"
KEY_PARENT = "parent"
KEY_PAGE_TITLE = "page-title"
KEY_DATA_TAXON = "data-taxon"
KEY_BACKLINKS = "backlinks"
KEY_REFERENCES = "references"
KEY_COLLECT = "collect"
KEY_ASREF = "asref"
KEY_ASBACK = "asback"
KEY_FOOTER_MODE = "footer-mode"

PLAIN_METADATA_KEYS = frozenset(
    {
        KEY_SLUG,
        KEY_EXT,
        KEY_DATA_TAXON,
        KEY_PARENT,
        KEY_PAGE_TITLE,
        KEY_BACKLINKS,
        KEY_REFERENCES,
        KEY_COLLECT,
        KEY_ASREF,
        KEY_ASBACK,
        KEY_FOOTER_MODE,
    }
)
# Keys rendered by the page header itself rather than the generic metadata list.
HEADER_METADATA_KEYS = frozenset({KEY_TITLE, KEY_TAXON}) | PLAIN_METADATA_KEYS

ACTION_SEPARATOR = "#:"
ACTION_EMBED = "embed"
ACTION_INCLUDE = "include"
ACTION_SPAN = "span"
ACTION_BLOCK = "block"
ACTION_CODE = "code"
ACTION_HTML = "html"
ACTION_SHARED = "shared"
INLINE_TYPST_PREFIX = "inline"

FILE_NAME_PLACEHOLDER = "<FILE_NAME>"
OUTPUT_PLACEHOLDER = "<output>"
