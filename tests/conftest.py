"""Pytest configuration and shared fixtures."""

import pathlib
import tempfile

import pytest

from html2plain import ConversionOptions, HtmlConverter, LinkMode

SAMPLE_HTML = """
<html>
<head><title>Hidden</title></head>
<body>
<h1>Release notes</h1>
<p>Version <b>2.0</b> is out. See the <a href="/changes">full list</a>.</p>
<ul>
<li>Faster</li>
<li>Smaller</li>
</ul>
</body>
</html>
"""


@pytest.fixture
def default_converter():
    """Return an HtmlConverter with default options."""
    return HtmlConverter()


@pytest.fixture
def unwrapped_converter():
    """Return an HtmlConverter that does not wrap lines."""
    return HtmlConverter(ConversionOptions(width=0))


@pytest.fixture
def table_converter():
    """Return an HtmlConverter listing links after the text."""
    return HtmlConverter(ConversionOptions(link_mode=LinkMode.TABLE), base_url="http://h")


@pytest.fixture
def temp_output_dir():
    """Create a temporary directory for output files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield pathlib.Path(tmpdir)


@pytest.fixture
def sample_html_path(temp_output_dir):
    """Write a small HTML document and return its path."""
    path = temp_output_dir / "sample.html"
    path.write_text(SAMPLE_HTML, encoding="utf-8")
    return path
