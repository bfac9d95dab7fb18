"""HTML to plain text converter package."""

from html2plain.converter import CaseMode, ConversionOptions, ElementRule, HtmlConverter, html_to_text
from html2plain.links import LinkMode

__all__ = ["HtmlConverter", "ConversionOptions", "ElementRule", "CaseMode", "LinkMode", "html_to_text"]
__version__ = "0.1.0"
