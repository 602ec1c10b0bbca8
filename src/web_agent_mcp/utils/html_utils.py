"""HTML cleaning for page content returned to the client."""

from bs4 import BeautifulSoup, Comment


NOISE_TAGS = ["script", "style", "meta", "link", "noscript", "template"]
AGGRESSIVE_TAGS = ["svg", "canvas", "iframe", "object", "embed"]


def clean_html(html_content: str, aggressive: bool = False) -> str:
    """
    Strip non-content markup from ``html_content``.

    Always drops scripts, styles and head metadata. ``aggressive`` also drops
    embedded graphics and frames, HTML comments and hidden inputs.
    """
    soup = BeautifulSoup(html_content, "html.parser")

    removals = list(NOISE_TAGS)
    if aggressive:
        removals.extend(AGGRESSIVE_TAGS)
    for tag in soup.find_all(removals):
        tag.decompose()

    if aggressive:
        for comment in soup.find_all(string=lambda text: isinstance(text, Comment)):
            comment.extract()
        for hidden in soup.find_all("input", {"type": "hidden"}):
            hidden.decompose()

    return str(soup)
