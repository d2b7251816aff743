import html

from pygments import highlight as pygments_highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound

from portfolio.errors import HighlightFailure
from portfolio.logger import logger

DEFAULT_THEME = 'monokai'
DEFAULT_LANGUAGE = 'text'

# Languages the site styles; anything else falls back to plain <pre><code>
SUPPORTED_LANGUAGES = (
    'text', 'python', 'javascript', 'js', 'typescript', 'ts', 'html', 'markup',
    'xml', 'css', 'json', 'yaml', 'bash', 'shell', 'sh', 'sql', 'r', 'java',
    'c', 'cpp', 'go', 'rust', 'markdown',
)

# Aliases Pygments does not know under the same name
LEXER_ALIASES = {
    'markup': 'html',
    'shell': 'bash',
}


class Highlighter:
    """Syntax highlighter shared by every renderer of a run.

    Construct once per process and pass it to the renderers. The Pygments
    formatter and lexers are created on first use and cached.
    """

    def __init__(self, theme=DEFAULT_THEME, languages=SUPPORTED_LANGUAGES):
        self.theme = theme
        self.languages = frozenset(lang.lower() for lang in languages)
        self._formatter = None
        self._lexers = {}

    @property
    def formatter(self):
        if self._formatter is None:
            logger.debug(f"Loading highlighter theme '{self.theme}'")
            self._formatter = HtmlFormatter(style=self.theme, nowrap=True)
        return self._formatter

    def _lexer(self, language):
        if language not in self._lexers:
            if language not in self.languages:
                raise HighlightFailure(language, "unsupported language")
            try:
                self._lexers[language] = get_lexer_by_name(LEXER_ALIASES.get(language, language))
            except ClassNotFound as e:
                raise HighlightFailure(language, str(e)) from e
        return self._lexers[language]

    def highlight(self, code, language=DEFAULT_LANGUAGE):
        """Return highlighted markup for one code block or raise HighlightFailure."""
        language = (language or DEFAULT_LANGUAGE).lower()
        lexer = self._lexer(language)
        try:
            body = pygments_highlight(code, lexer, self.formatter)
        except Exception as e:
            raise HighlightFailure(language, str(e)) from e

        lang_class = html.escape(language, quote=True)
        return (
            f'<div class="highlight"><pre class="language-{lang_class}">'
            f'<code class="language-{lang_class}">{body.rstrip()}</code></pre></div>'
        )

    def stylesheet(self, selector='.highlight'):
        return self.formatter.get_style_defs(selector)


def plain_code_block(code, language=DEFAULT_LANGUAGE):
    """Unhighlighted fallback for a block the highlighter rejected."""
    lang_class = html.escape(language or DEFAULT_LANGUAGE, quote=True)
    return (
        f'<pre class="language-{lang_class}">'
        f'<code class="language-{lang_class}">{html.escape(code)}</code></pre>'
    )
