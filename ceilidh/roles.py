"""Role-set substitution — rewrite role tokens into the chosen terminology.

Two passes, always in this order:

  1. normalise_roles(): bracketed tokens ([P1], [P1s], [P2], [P2s]) and the
     legacy words Lark(s)/Robin(s) become the canonical placeholders
     "Person 1", "Person 1s", "Person 2", "Person 2s".
  2. project_roles(): canonical placeholders become the role-set's terms.

Each pass is a single regex substitution, so no token is rewritten twice
within a pass. Markup is handled by substituting text leaves of a parsed
tree (render_markup); the substitution itself never sees tags.
"""

from __future__ import annotations

import re

from bs4 import BeautifulSoup, NavigableString
from bs4.element import PreformattedString

from .models import RoleSet

_TOKEN_TO_PLACEHOLDER = {
    "[p1]": "Person 1",
    "[p1s]": "Person 1s",
    "[p2]": "Person 2",
    "[p2s]": "Person 2s",
    "lark": "Person 1",
    "larks": "Person 1s",
    "robin": "Person 2",
    "robins": "Person 2s",
}

_STEP1 = re.compile(r"\[P[12]s?\]|\b(?:Larks?|Robins?)\b", re.IGNORECASE)
_STEP2 = re.compile(r"\bPerson ([12])(s?)\b")

# Tags whose text is not prose.
_SKIP_TAGS = {"script", "style"}
_BLOCK_TAGS = {"p", "div", "li", "tr", "h1", "h2", "h3", "h4", "h5", "h6"}


def normalise_roles(text: str) -> str:
    """Step 1: tokens and legacy words to canonical placeholders."""
    if not text:
        return text or ""
    return _STEP1.sub(lambda m: _TOKEN_TO_PLACEHOLDER[m.group(0).lower()], text)


# ---------------------------------------------------------------------------
# Term resolution: ordered fallback chains
# ---------------------------------------------------------------------------


def _singular_chain(role_set: RoleSet | None, n: str) -> list[str | None]:
    mapped = getattr(role_set.mapping, f"p{n}") if role_set else None
    return [mapped, f"Person {n}"]


def _plural_chain(role_set: RoleSet | None, n: str) -> list[str | None]:
    if role_set is None:
        return [f"Person {n}s"]
    singular = getattr(role_set.mapping, f"p{n}")
    return [
        getattr(role_set.mapping, f"p{n}s"),
        f"{singular}s" if singular else None,
        f"Person {n}s",
    ]


def role_term(role_set: RoleSet | None, n: str, plural: bool = False) -> str:
    """Resolve the displayed term for role ``n`` ("1" or "2")."""
    chain = _plural_chain(role_set, n) if plural else _singular_chain(role_set, n)
    return next(term for term in chain if term)


def project_roles(text: str, role_set: RoleSet | None) -> str:
    """Step 2: canonical placeholders to the role-set's terms."""
    if not text or role_set is None:
        return text or ""
    return _STEP2.sub(
        lambda m: role_term(role_set, m.group(1), plural=bool(m.group(2))), text
    )


def substitute(text: str, role_set: RoleSet | None) -> str:
    """Full substitution on plain text: step 1, then step 2."""
    return project_roles(normalise_roles(text), role_set)


# ---------------------------------------------------------------------------
# Markup
# ---------------------------------------------------------------------------


def _text_leaves(soup: BeautifulSoup) -> list[NavigableString]:
    leaves = []
    for node in soup.find_all(string=True):
        if isinstance(node, PreformattedString):  # comments, doctypes, CDATA
            continue
        if node.parent is not None and node.parent.name in _SKIP_TAGS:
            continue
        leaves.append(node)
    return leaves


def render_markup(html: str, role_set: RoleSet | None) -> str:
    """Substitute role terms in every text leaf, keeping the markup intact."""
    if not html:
        return ""
    soup = BeautifulSoup(html, "html.parser")
    for leaf in _text_leaves(soup):
        replaced = substitute(str(leaf), role_set)
        if replaced != str(leaf):
            leaf.replace_with(NavigableString(replaced))
    return str(soup)


def markup_to_text(html: str) -> str:
    """Plain text of a markup fragment, whitespace collapsed."""
    if not html:
        return ""
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup.find_all(_SKIP_TAGS):
        tag.decompose()
    for br in soup.find_all("br"):
        br.replace_with("\n")
    for block in soup.find_all(_BLOCK_TAGS):
        block.append("\n")
    lines = (" ".join(line.split()) for line in soup.get_text().splitlines())
    return "\n".join(line for line in lines if line)
