import re
from dataclasses import dataclass, field

from portfolio.errors import MalformedFrontmatterError
from portfolio.logger import logger

DELIMITER = '---'
BLOCK_SCALARS = {'>': ' ', '>-': ' ', '>+': ' ', '|': '\n', '|-': '\n', '|+': '\n'}
# Backslash escapes allowed inside double quoted values
ESCAPE_RE = re.compile(r'\\(["\\/nt])')
ESCAPES = {'n': '\n', 't': '\t'}


@dataclass
class Document:
    raw_text: str
    frontmatter: dict = field(default_factory=dict)
    body: str = ''


def _strip_quotes(value):
    """Remove matching outer quotes, undoing YAML quote escaping."""
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ('"', "'"):
        inner = value[1:-1]
        if value[0] == "'":
            return inner.replace("''", "'")
        return ESCAPE_RE.sub(lambda m: ESCAPES.get(m.group(1), m.group(1)), inner)
    return value


class FrontmatterParser:
    """Split a leading `---` block from a markdown document.

    Never raises: anything malformed degrades to "no metadata".
    """

    def parse(self, raw_text):
        if isinstance(raw_text, bytes):
            raw_text = raw_text.decode('utf-8')

        try:
            block, body = self._split(raw_text)
        except MalformedFrontmatterError as e:
            logger.debug(f"Frontmatter ignored: {e}")
            return Document(raw_text=raw_text, frontmatter={}, body=raw_text)

        if block is None:
            return Document(raw_text=raw_text, frontmatter={}, body=raw_text)

        return Document(raw_text=raw_text, frontmatter=self.decode(block), body=body)

    def _split(self, raw_text):
        text = raw_text.lstrip('\ufeff')
        lines = text.splitlines(keepends=True)
        if not lines or lines[0].rstrip('\r\n') != DELIMITER:
            return None, raw_text

        for index in range(1, len(lines)):
            if lines[index].rstrip('\r\n') == DELIMITER:
                block = ''.join(lines[1:index])
                body = ''.join(lines[index + 1:])
                return block, body

        raise MalformedFrontmatterError("opening '---' without a closing marker")

    def decode(self, block):
        """Decode `key: value` lines into a dict of strings."""
        metadata = {}
        pending_key = None
        joiner = ' '
        pending = []

        def flush():
            if pending_key is not None:
                metadata[pending_key] = joiner.join(pending).strip()

        for line in block.splitlines():
            # Indented lines continue a folded (>-) or literal (|) value
            if pending_key is not None:
                if not line.strip() or line[:1] in (' ', '\t'):
                    if line.strip():
                        pending.append(line.strip())
                    continue
                flush()
                pending_key = None
                pending = []

            stripped = line.strip()
            if not stripped or stripped.startswith('#') or ':' not in stripped:
                continue

            key, value = stripped.split(':', 1)
            key = key.strip()
            value = value.strip()
            if not key:
                continue

            if value in BLOCK_SCALARS:
                pending_key = key
                joiner = BLOCK_SCALARS[value]
                continue

            metadata[key] = _strip_quotes(value)

        flush()

        if block.strip() and not metadata:
            logger.debug("Frontmatter block has no parseable lines, treating it as empty")

        return metadata


def parse(raw_text):
    return FrontmatterParser().parse(raw_text)
