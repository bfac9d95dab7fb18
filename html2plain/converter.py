"""Core HTML to plain text conversion logic."""

import dataclasses
import html
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from html.entities import html5

from html2plain.links import LinkList, LinkMode, parse_link_mode, render_link
from html2plain.rules import (
    AMPERSAND_MARKER,
    BLANK_LINE,
    BLOCKQUOTE_TAG,
    CALLBACK_RULES,
    COMMENT,
    ENTITY,
    ENTITY_RULES,
    EXCESS_NEWLINES,
    HEADING_ELEMENT,
    LINK_OVERRIDE,
    NESTED_TAG,
    PRE_BLOCK,
    PRE_BREAK,
    PRE_RULES,
    QUOTE_PREFIX,
    RULES,
    SPACE_MARKER,
    TAG,
    TRIM_CHARS,
    UNKNOWN_ENTITY,
    apply_rules,
)

logger = logging.getLogger(__name__)


class CaseMode(str, Enum):
    """Case transform applied to the text of an element."""

    NONE = "none"
    UPPER = "upper"
    LOWER = "lower"


@dataclass(frozen=True)
class ElementRule:
    """Decoration applied to one element type."""

    case: CaseMode = CaseMode.NONE
    prepend: str = ""
    append: str = ""


DEFAULT_ELEMENT_RULES: dict[str, ElementRule] = {
    "h1": ElementRule(case=CaseMode.UPPER),
    "h2": ElementRule(case=CaseMode.UPPER),
    "h3": ElementRule(case=CaseMode.UPPER),
    "h4": ElementRule(case=CaseMode.UPPER),
    "h5": ElementRule(case=CaseMode.UPPER),
    "h6": ElementRule(case=CaseMode.UPPER),
    "th": ElementRule(case=CaseMode.UPPER, prepend="\t\t", append="\n"),
    "strong": ElementRule(case=CaseMode.UPPER),
    "b": ElementRule(case=CaseMode.UPPER),
    "li": ElementRule(prepend="\t* ", append="\n"),
}


def _parse_case(value: CaseMode | str) -> CaseMode:
    try:
        return CaseMode(value.lower() if isinstance(value, str) else value)
    except ValueError:
        choices = ", ".join(mode.value for mode in CaseMode)
        raise ValueError(f"Unsupported case mode {value!r} (expected one of: {choices})") from None


def _parse_element_rule(element: str, rule: ElementRule | Mapping) -> ElementRule:
    if isinstance(rule, Mapping):
        unknown = set(rule) - {"case", "prepend", "append"}
        if unknown:
            raise ValueError(f"Unknown keys in element rule for {element!r}: {', '.join(sorted(unknown))}")
        rule = ElementRule(
            case=rule.get("case", CaseMode.NONE),
            prepend=rule.get("prepend", ""),
            append=rule.get("append", ""),
        )
    elif not isinstance(rule, ElementRule):
        raise ValueError(f"Element rule for {element!r} must be an ElementRule or a mapping, got {rule!r}")

    for name in ("prepend", "append"):
        value = getattr(rule, name)
        if not isinstance(value, str):
            raise ValueError(f"{name} of element rule for {element!r} must be a string, got {value!r}")

    return dataclasses.replace(rule, case=_parse_case(rule.case))


@dataclass
class ConversionOptions:
    """Configuration options for HTML to text conversion.

    ``element_rules`` entries are merged over ``DEFAULT_ELEMENT_RULES``; mapping
    an element to ``None`` removes its default rule.
    """

    link_mode: LinkMode = LinkMode.INLINE
    width: int = 70  # 0 disables word wrapping.
    element_rules: dict[str, ElementRule] = field(default_factory=dict)
    max_input_length: int | None = None

    def __post_init__(self):
        self.link_mode = parse_link_mode(self.link_mode)

        if isinstance(self.width, bool) or not isinstance(self.width, int) or self.width < 0:
            raise ValueError(f"Width must be a non-negative integer, got {self.width!r}")

        if self.max_input_length is not None and (
            isinstance(self.max_input_length, bool)
            or not isinstance(self.max_input_length, int)
            or self.max_input_length <= 0
        ):
            raise ValueError(f"max_input_length must be a positive integer or None, got {self.max_input_length!r}")

        if not isinstance(self.element_rules, Mapping):
            raise ValueError(f"element_rules must be a mapping of tag names to rules, got {self.element_rules!r}")

        rules = dict(DEFAULT_ELEMENT_RULES)
        for element, rule in self.element_rules.items():
            if not isinstance(element, str):
                raise ValueError(f"Element names must be strings, got {element!r}")
            element = element.lower()
            if rule is None:
                rules.pop(element, None)
            else:
                rules[element] = _parse_element_rule(element, rule)
        self.element_rules = rules


@dataclass
class _ConversionContext:
    """State owned by a single conversion.

    Blockquote bodies are converted with a copy that narrows ``width`` and
    shares ``links``.
    """

    width: int
    links: LinkList


class HtmlConverter:
    """Converts HTML markup to readable plain text."""

    def __init__(self, options: ConversionOptions | None = None, base_url: str = ""):
        """Initialize the converter with optional configuration.

        Args:
            options: Conversion options. Uses defaults if not provided.
            base_url: Base URL that relative links resolve against.
        """
        self.options = options or ConversionOptions()
        self.base_url = base_url
        self._html = ""
        self._text: str | None = None
        self._handlers = {
            "p": self._render_paragraph,
            "br": self._render_break,
            "a": self._render_anchor,
        }

    def set_html(self, html_text: str) -> None:
        """Set the source HTML returned as text by ``get_text``."""
        self._html = html_text
        self._text = None

    def get_text(self) -> str:
        """Return the source HTML converted to text, converting it on first use."""
        if self._text is None:
            self._text = self.convert(self._html)
        return self._text

    def set_base_url(self, base_url: str) -> None:
        """Set the base URL used to resolve relative links."""
        self.base_url = base_url
        self._text = None

    def convert(self, html_text: str) -> str:
        """Convert HTML to plain text.

        Args:
            html_text: HTML document or fragment.

        Returns:
            The converted text, followed by a ``Links:`` section when links
            were collected in table mode.

        Raises:
            ValueError: If the input is longer than ``max_input_length``.
        """
        limit = self.options.max_input_length
        if limit is not None and len(html_text) > limit:
            raise ValueError(f"Input of {len(html_text)} characters exceeds max_input_length of {limit}")

        logger.debug("Converting %d characters of HTML", len(html_text))

        context = _ConversionContext(width=self.options.width, links=LinkList())
        text = self._convert_text(html_text.strip(TRIM_CHARS), context)

        return text + context.links.render()

    def _convert_text(self, text: str, context: _ConversionContext) -> str:
        """Run the conversion passes over ``text``.

        Args:
            text: HTML to convert.
            context: State of the current conversion.

        Returns:
            Converted text, without the link section.
        """
        # Quoted regions are converted first so that the outer passes only see
        # their finished text.
        text = self._convert_blockquotes(text, context)

        # Protect literal whitespace of preformatted blocks.
        text = self._convert_pre(text, context)

        text = apply_rules(text, RULES, self._callback(context))
        text = self.strip_tags(text)

        # Decode entities, keeping "&amp;" out of reach of the unknown-entity pass.
        text = apply_rules(text, ENTITY_RULES)
        text = decode_entities(text)
        text = UNKNOWN_ENTITY.sub("", text)
        text = text.replace(AMPERSAND_MARKER, "&")

        # Normalize empty lines.
        text = BLANK_LINE.sub("\n\n", text)
        text = EXCESS_NEWLINES.sub("\n\n", text)

        # Remove leading empty lines (produced by a leading paragraph, for example).
        text = text.lstrip("\n")

        if context.width > 0:
            text = wordwrap(text, context.width)

        return text.replace(SPACE_MARKER, " ")

    def _callback(self, context: _ConversionContext):
        return lambda match: self._element_callback(match, context)

    def _element_callback(self, match, context: _ConversionContext) -> str:
        """Route a callback rule match to the handler for its element.

        Args:
            match: Match with an ``element`` group.
            context: State of the current conversion.

        Returns:
            Replacement text for the match.
        """
        element = match.group("element").lower()

        if HEADING_ELEMENT.fullmatch(element):
            return self.convert_heading(match.group("value"), element)

        handler = self._handlers.get(element)
        if handler is not None:
            return handler(match, context)

        return self.convert_element(match.group("value"), element)

    def _render_paragraph(self, match, context: _ConversionContext) -> str:
        para = match.group("value").replace("\n", " ").strip(TRIM_CHARS)
        return f"\n{para}\n"

    def _render_break(self, match, context: _ConversionContext) -> str:
        return "\n"

    def _render_anchor(self, match, context: _ConversionContext) -> str:
        override = LINK_OVERRIDE.search(match.group("attrs"))
        # Spaces are never meaningful in an href.
        url = match.group("url").replace(" ", "")

        return render_link(
            url,
            match.group("value"),
            self.options.link_mode,
            self.base_url,
            context.links,
            override.group(1) if override else None,
        )

    def convert_heading(self, value: str, element: str) -> str:
        """Render a heading element on its own paragraph.

        The configured case is applied first and the first character is then
        uppercased.

        Args:
            value: Heading contents.
            element: Heading tag name.

        Returns:
            The heading surrounded by blank lines.
        """
        value = self.convert_element(value, element)
        return f"\n\n{value[:1].upper()}{value[1:]}\n\n"

    def convert_element(self, value: str, element: str) -> str:
        """Apply the configured rule for ``element`` to its contents.

        Only text outside nested tags is case-folded; nested tags are left for
        later passes.

        Args:
            value: Element contents, possibly containing markup.
            element: Tag name.

        Returns:
            The decorated contents, or the contents unchanged when the element
            has no rule.
        """
        rule = self.options.element_rules.get(element.lower())
        if rule is None:
            return value

        if rule.case is not CaseMode.NONE:
            fold = str.upper if rule.case is CaseMode.UPPER else str.lower
            chunks = [chunk for chunk in NESTED_TAG.split(value) if chunk]
            for i, chunk in enumerate(chunks):
                if not chunk.startswith("<"):
                    chunks[i] = decode_entities(html.escape(fold(chunk), quote=False))
            value = "".join(chunks).strip(TRIM_CHARS)

        if rule.prepend:
            value = rule.prepend + value
        if rule.append:
            value = value + rule.append

        return value

    def _convert_pre(self, text: str, context: _ConversionContext) -> str:
        """Convert every <pre> block so its whitespace survives later passes.

        Args:
            text: HTML being converted.
            context: State of the current conversion.

        Returns:
            Text with each <pre> block replaced by an encoded <div>.
        """
        callback = self._callback(context)

        while match := PRE_BLOCK.search(text):
            # Turn <br> into newlines before the callback rules can eat whitespace.
            content = PRE_BREAK.sub("\n", match.group(1))
            content = apply_rules(content, CALLBACK_RULES, callback)
            content = apply_rules(content, PRE_RULES)

            logger.debug("Converted <pre> block of %d characters", len(match.group(1)))
            text = f"{text[: match.start()]}<div><br>{content}<br></div>{text[match.end():]}"

        return text

    def _convert_blockquotes(self, text: str, context: _ConversionContext) -> str:
        """Replace each outermost <blockquote> with its quoted text.

        The body is converted by a nested run of the whole pipeline. Inner
        blockquotes are left in the body for that nested run.

        Args:
            text: HTML being converted.
            context: State of the current conversion.

        Returns:
            Text with quoted regions wrapped in <pre> blocks.
        """
        matches = list(BLOCKQUOTE_TAG.finditer(text))
        if not matches:
            return text

        start = 0
        tag_length = 0
        depth = 0
        offset = 0  # Length change from regions replaced so far.

        for match in matches:
            tag = match.group(0)

            if not tag.startswith("</"):
                if depth == 0:
                    start = match.start()
                    tag_length = len(tag)
                depth += 1
                continue

            depth -= 1
            if depth < 0:
                # Malformed HTML: stray closing tag.
                depth = 0
                continue
            if depth > 0:
                continue

            end = match.start()
            body_start = start + tag_length - offset
            body = text[body_start : end - offset]
            logger.debug("Converting blockquote at %d-%d", start, match.end())

            quoted = self._quote(body, context)
            text = text[: start - offset] + quoted + text[match.end() - offset :]
            offset += match.end() - start - len(quoted)

        return text

    def _quote(self, body: str, context: _ConversionContext) -> str:
        # Leave room for the "> " prefix.
        width = context.width - 2 if context.width > 0 else context.width
        inner = dataclasses.replace(context, width=width)

        body = self._convert_text(body.strip(TRIM_CHARS), inner)
        body = QUOTE_PREFIX.sub(r"\1> ", body.strip(TRIM_CHARS))

        return f"<pre>{html.escape(body, quote=False)}</pre>"

    @staticmethod
    def strip_tags(text: str) -> str:
        """Remove comments and any remaining tags."""
        text = COMMENT.sub("", text)
        return TAG.sub("", text)


def decode_entities(text: str) -> str:
    """Decode complete entity references in ``text``.

    Only ``&name;`` with a known name and numeric references are decoded.
    Unknown names and references without a closing semicolon are left as they
    are.
    """
    return ENTITY.sub(_decode_entity, text)


def _decode_entity(match) -> str:
    entity = match.group(0)
    if entity.startswith("&#"):
        return html.unescape(entity)
    return html5.get(entity[1:], entity)


def wordwrap(text: str, width: int) -> str:
    """Wrap ``text`` at ``width`` columns.

    Only plain spaces are turned into line breaks, so words longer than
    ``width`` stay on one line. Existing newlines start a new line.

    Args:
        text: Text to wrap.
        width: Maximum line width.

    Returns:
        The wrapped text, with the same length as ``text``.
    """
    chars = list(text)
    line_start = last_space = 0

    for current, char in enumerate(text):
        if char == "\n":
            line_start = last_space = current + 1
        elif char == " ":
            if current - line_start >= width:
                chars[current] = "\n"
                line_start = current + 1
            last_space = current
        elif current - line_start >= width and line_start != last_space:
            chars[last_space] = "\n"
            line_start = last_space + 1

    return "".join(chars)


def html_to_text(html_text: str, options: ConversionOptions | None = None, base_url: str = "") -> str:
    """Convert HTML to plain text with a one-off converter."""
    return HtmlConverter(options, base_url).convert(html_text)
