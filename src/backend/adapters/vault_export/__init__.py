"""Build rule evaluation contexts from JSON vault exports (no vault access)."""

from .frontmatter import split_frontmatter
from .links import LinkResolver, extract_wiki_links
from .manifest import contexts_from_manifest

__all__ = [
    "LinkResolver",
    "contexts_from_manifest",
    "extract_wiki_links",
    "split_frontmatter",
]
