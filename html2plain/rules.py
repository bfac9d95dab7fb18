"""Ordered regular-expression rules driving the HTML to text conversion.

Each rule is either a literal substitution or a callback rule. Callback rules
capture the tag name in an ``element`` group (and usually its contents in a
``value`` group) and are routed by the converter to the handler registered for
that tag. The order of ``RULES`` is significant: container tags are collapsed
to blank lines before their children are rewritten, and ``<div>`` becomes a
line break marker before the remaining tags are stripped.
"""

import re
from typing import NamedTuple

# Stands in for "&amp;" while unknown entities are removed.
AMPERSAND_MARKER = "\ue000"

# Stands in for a literal space inside preformatted text until wrapping is done.
SPACE_MARKER = "\ue001"

# Characters removed by trimming. NBSP is kept.
TRIM_CHARS = " \t\n\r\0\x0b"


class Rule(NamedTuple):
    """A single pattern and its replacement.

    A ``replacement`` of ``None`` marks a callback rule.
    """

    pattern: re.Pattern
    replacement: str | None = None

    @property
    def is_callback(self) -> bool:
        return self.replacement is None


def _rule(pattern: str, replacement: str | None = None, flags: int = re.IGNORECASE) -> Rule:
    return Rule(re.compile(pattern, flags), replacement)


HEADING_RULE = _rule(r"<(?P<element>h[1-6])( [^>]*)?>(?P<value>.*?)</h[1-6]>")
PARAGRAPH_RULE = _rule(r"[ ]*<(?P<element>p)( [^>]*)?>(?P<value>.*?)</p>[ ]*", flags=re.IGNORECASE | re.DOTALL)
BREAK_RULE = _rule(r"<(?P<element>br)[^>]*>[ ]*")
BOLD_RULE = _rule(r"<(?P<element>b)( [^>]*)?>(?P<value>.*?)</b>")
STRONG_RULE = _rule(r"<(?P<element>strong)( [^>]*)?>(?P<value>.*?)</strong>")
TABLE_HEADER_RULE = _rule(r"<(?P<element>th)( [^>]*)?>(?P<value>.*?)</th>")
ANCHOR_RULE = _rule(
    r"<(?P<element>a) [^>]*href=(?P<quote>\"|')(?P<url>[^\"']+)(?P=quote)(?P<attrs>[^>]*)>(?P<value>.*?)</a>"
)

# Structural rules that are also applied inside <pre> blocks.
CALLBACK_RULES: tuple[Rule, ...] = (
    HEADING_RULE,
    PARAGRAPH_RULE,
    BREAK_RULE,
    BOLD_RULE,
    STRONG_RULE,
    TABLE_HEADER_RULE,
    ANCHOR_RULE,
)

RULES: tuple[Rule, ...] = (
    _rule(r"\r", "", flags=0),
    _rule(r"[\n\t]+", " ", flags=0),
    _rule(r"<head\b[^>]*>.*?</head>", ""),
    _rule(r"<script\b[^>]*>.*?</script>", ""),
    _rule(r"<style\b[^>]*>.*?</style>", ""),
    _rule(r"<i\b[^>]*>(.*?)</i>", r"_\1_"),
    _rule(r"<em\b[^>]*>(.*?)</em>", r"_\1_"),
    _rule(r"(<ul\b[^>]*>|</ul>)", "\n\n"),
    _rule(r"(<ol\b[^>]*>|</ol>)", "\n\n"),
    _rule(r"(<dl\b[^>]*>|</dl>)", "\n\n"),
    _rule(r"<dd\b[^>]*>(.*?)</dd>", " \\1\n"),
    _rule(r"<dt\b[^>]*>(.*?)</dt>", "\t* \\1"),
    _rule(r"<(?P<element>li)\b[^>]*>(?P<value>.*?)</li>"),
    _rule(r"<li\b[^>]*>", "\n\t* "),
    _rule(r"<hr\b[^>]*>", "\n-------------------------\n"),
    _rule(r"<div\b[^>]*>", "<div>\n"),
    _rule(r"(<table\b[^>]*>|</table>)", "\n\n"),
    _rule(r"(<tr\b[^>]*>|</tr>)", "\n"),
    _rule(r"<td\b[^>]*>(.*?)</td>", "\t\t\\1\n"),
    _rule(r"<span class=\"_html2text_ignore\">.+?</span>", ""),
    _rule(r"<(img)\b[^>]*alt=\"([^>\"]+)\"[^>]*>", r"[\2]"),
    *CALLBACK_RULES,
)

# Applied after tags are stripped and before entities are decoded.
ENTITY_RULES: tuple[Rule, ...] = (
    _rule(r"&#153;", "\u2122"),
    _rule(r"&#151;", "\u2014"),
    _rule(r"&(amp|#38);", AMPERSAND_MARKER),
    _rule(r"[ ]{2,}", " ", flags=0),
)

# Complete entity references, the only form that is decoded.
ENTITY = re.compile(r"&(?:[A-Za-z][A-Za-z0-9]*|#[0-9]+|#[xX][0-9A-Fa-f]+);")

# Whatever still looks like an entity after decoding is dropped.
UNKNOWN_ENTITY = re.compile(r"&([a-zA-Z0-9]{2,}|#[0-9]{2,});")

# Literal whitespace encoding for the body of a <pre> block.
PRE_RULES: tuple[Rule, ...] = (
    _rule(r"\n", "<br>", flags=0),
    _rule(r"\t", SPACE_MARKER * 4, flags=0),
    _rule(r" ", SPACE_MARKER, flags=0),
    _rule(r"<pre[^>]*>", ""),
    _rule(r"</pre>", ""),
)

PRE_BLOCK = re.compile(r"<pre[^>]*>(.*?)</pre>", re.IGNORECASE | re.DOTALL)
PRE_BREAK = re.compile(r"(<br\b[^>]*>)", re.IGNORECASE)
BLOCKQUOTE_TAG = re.compile(r"</*blockquote[^>]*>", re.IGNORECASE)
HEADING_ELEMENT = re.compile(r"h[1-6]")
LINK_OVERRIDE = re.compile(r"_html2text_link_(\w+)")

COMMENT = re.compile(r"<!--.*?-->", re.DOTALL)
TAG = re.compile(r"<[a-zA-Z/!?][^>]*>")
NESTED_TAG = re.compile(r"(<[^>]*>)")

BLANK_LINE = re.compile(r"\n[ \t\n\r\f\v]+\n")
EXCESS_NEWLINES = re.compile(r"\n{3,}")
QUOTE_PREFIX = re.compile(r"((?:^|\n)>*)")


def apply_rules(text: str, rules: tuple[Rule, ...], callback=None) -> str:
    """Apply ``rules`` to ``text`` in order.

    Args:
        text: Text to rewrite.
        rules: Ordered rules.
        callback: Called with each match of a callback rule.

    Returns:
        The rewritten text.
    """
    for rule in rules:
        if rule.is_callback:
            text = rule.pattern.sub(callback, text)
        else:
            text = rule.pattern.sub(rule.replacement, text)
    return text
