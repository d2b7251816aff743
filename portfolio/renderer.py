import re

import markdown
import nh3
from bs4 import BeautifulSoup

from portfolio.errors import HighlightFailure
from portfolio.highlighter import DEFAULT_LANGUAGE, plain_code_block
from portfolio.logger import logger

EXCERPT_LENGTH = 200

# Opening fence may be indented (list items); the closing fence is at least
# as long as the opening one
FENCE_RE = re.compile(
    r'^(?P<indent>[ \t]*)(?P<fence>(?P<char>[`~])(?P=char){2,})[ \t]*(?P<lang>[^\s`]*)[^\n]*\n'
    r'(?P<code>.*?)'
    r'^[ \t]*(?P=fence)(?P=char)*[ \t]*$',
    re.MULTILINE | re.DOTALL,
)
PLACEHOLDER = 'CODEBLOCKPLACEHOLDER{}X'
PLACEHOLDER_RE = re.compile(r'(?:<p>\s*)?CODEBLOCKPLACEHOLDER(\d+)X(?:\s*</p>)?')

ALLOWED_TAGS = {
    'a', 'abbr', 'b', 'blockquote', 'br', 'caption', 'cite', 'code', 'col',
    'colgroup', 'dd', 'del', 'details', 'div', 'dl', 'dt', 'em', 'figcaption',
    'figure', 'h1', 'h2', 'h3', 'h4', 'h5', 'h6', 'hr', 'i', 'img', 'ins',
    'kbd', 'li', 'mark', 'ol', 'p', 'picture', 'pre', 'q', 's', 'samp',
    'small', 'source', 'span', 'strong', 'sub', 'summary', 'sup', 'table',
    'tbody', 'td', 'tfoot', 'th', 'thead', 'tr', 'u', 'ul', 'audio', 'video',
    'track',
}
ALLOWED_ATTRIBUTES = {
    '*': {'id', 'class', 'title', 'lang'},
    'a': {'href', 'name', 'target'},
    'img': {'src', 'alt', 'width', 'height', 'loading'},
    'source': {'src', 'srcset', 'type', 'media'},
    'video': {'src', 'poster', 'controls', 'width', 'height', 'loop', 'muted', 'playsinline'},
    'audio': {'src', 'controls', 'loop', 'muted'},
    'track': {'src', 'kind', 'srclang', 'label'},
    'td': {'colspan', 'rowspan', 'align'},
    'th': {'colspan', 'rowspan', 'align', 'scope'},
    'ol': {'start'},
}
URL_SCHEMES = {'http', 'https', 'mailto'}
BLOCK_TAGS = [
    'p', 'h1', 'h2', 'h3', 'h4', 'h5', 'h6', 'li', 'blockquote', 'div', 'br',
    'tr', 'td', 'th', 'dt', 'dd', 'figcaption', 'caption', 'hr',
]


def sanitize(html):
    """Drop script-executing markup, keep formatting, media and code classes."""
    return nh3.clean(
        html,
        tags=ALLOWED_TAGS,
        attributes=ALLOWED_ATTRIBUTES,
        url_schemes=URL_SCHEMES,
    )


def _dedent(code, width):
    """Drop up to `width` leading blanks from every line of a fenced block."""
    if not width:
        return code
    lines = []
    for line in code.split('\n'):
        blanks = len(line) - len(line.lstrip(' \t'))
        lines.append(line[min(width, blanks):])
    return '\n'.join(lines)


def excerpt(html, length=EXCERPT_LENGTH):
    soup = BeautifulSoup(html or '', 'html.parser')
    for block in soup.find_all('pre'):
        block.decompose()
    # Inline tags join their neighbours, block tags are separated by a space
    for block in soup.find_all(BLOCK_TAGS):
        block.insert_after(' ')
    text = re.sub(r'\s+', ' ', soup.get_text()).strip()
    if len(text) <= length:
        return text
    return text[:length].rstrip() + '...'


class MarkdownRenderer:
    """Markdown body -> sanitized HTML with highlighted code blocks."""

    def __init__(self, highlighter):
        self.highlighter = highlighter
        self.md = markdown.Markdown(extensions=['extra', 'nl2br', 'sane_lists', 'toc'])

    def _extract_code(self, body):
        blocks = []

        def stash(match):
            indent = match.group('indent')
            code = _dedent(match.group('code'), len(indent))
            if code.endswith('\n'):
                code = code[:-1]
            blocks.append((match.group('lang') or DEFAULT_LANGUAGE, code))
            # Same indent keeps the placeholder inside its list item
            return f"\n\n{indent}{PLACEHOLDER.format(len(blocks) - 1)}\n\n"

        return FENCE_RE.sub(stash, body), blocks

    def _highlight_block(self, language, code):
        try:
            return self.highlighter.highlight(code, language)
        except HighlightFailure as e:
            logger.warning(f"⚠️ {e}, using plain code block")
            return plain_code_block(code, language)

    def render(self, body):
        text, blocks = self._extract_code(body or '')

        html = self.md.convert(text)
        self.md.reset()

        highlighted = [self._highlight_block(lang, code) for lang, code in blocks]

        def restore(match):
            index = int(match.group(1))
            return highlighted[index] if index < len(highlighted) else match.group(0)

        html = PLACEHOLDER_RE.sub(restore, html)
        return sanitize(html)
