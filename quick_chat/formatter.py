"""Markdown-lite to HTML formatting for chat messages."""

from __future__ import annotations

from datetime import UTC, datetime
import html
import re

_NUL = "\x00"

_FENCED_CODE = re.compile(r"```([\s\S]*?)```")
_INLINE_CODE = re.compile(r"`([^`\n]+)`")
_PLACEHOLDER = re.compile(_NUL + r"([CI])(\d+)" + _NUL)

_HEADINGS = (
    (re.compile(r"^### (.+)$", re.MULTILINE), 3),
    (re.compile(r"^## (.+)$", re.MULTILINE), 2),
    (re.compile(r"^# (.+)$", re.MULTILINE), 1),
)
_BOLD = (re.compile(r"\*\*(.+?)\*\*"), re.compile(r"(?<!\w)__(.+?)__(?!\w)"))
_ITALIC = (re.compile(r"\*(.+?)\*"), re.compile(r"(?<!\w)_(.+?)_(?!\w)"))
_STRIKE = re.compile(r"~~(.+?)~~")
_LINK = re.compile(r"\[([^\]]+)\]\(([^)\s]+)\)")
_SAFE_LINK_SCHEMES = ("http://", "https://", "mailto:")
_UNORDERED_ITEM = re.compile(r"^\s*[-*+]\s+(.+)$")
_ORDERED_ITEM = re.compile(r"^\s*\d+\.\s+(.+)$")
# Input is already escaped, so ">" arrives as "&gt;".
_BLOCKQUOTE = re.compile(r"^&gt;\s+(.+)$", re.MULTILINE)
_RULE = re.compile(r"^---+$", re.MULTILINE)
_BLOCK_END = re.compile(
    r'(</h[1-3]>|</ul>|</ol>|</blockquote>|<hr class="message-divider">)\n'
)

_LANGUAGE_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("javascript", re.compile(r"\b(const|let|var|function|console\.log)\b|=>")),
    ("python", re.compile(r"\b(def|import|from|print|class|if __name__)\b")),
    ("java", re.compile(r"\b(public|private|class|void|static|extends)\b")),
    ("cpp", re.compile(r"#include|std::|\b(cout|cin|namespace)\b")),
    ("html", re.compile(r"</?[a-z][\s\S]*>", re.IGNORECASE)),
    ("css", re.compile(r"\{[^}]*:[^}]*\}")),
    ("json", re.compile(r"^\s*[\{\[]")),
    ("bash", re.compile(r"\b(echo|cd|ls|mkdir|rm|sudo)\b")),
    ("sql", re.compile(r"\b(SELECT|INSERT|UPDATE|DELETE|FROM|WHERE)\b", re.IGNORECASE)),
)

_KEYWORDS = (
    "const let var function class if else for while return import from export "
    "async await try catch finally throw new this super extends implements "
    "interface type enum public private protected static readonly def print "
    "True False None select where insert update delete"
).split()

_SYNTAX_TOKEN = re.compile(
    r"(?P<comment>//[^\n]*|/\*[\s\S]*?\*/|#[^\n]*)"
    r"|(?P<string>\"(?:\\.|[^\"\\\n])*\"|'(?:\\.|[^'\\\n])*'|`(?:\\.|[^`\\])*`)"
    r"|(?P<keyword>\b(?:" + "|".join(_KEYWORDS) + r")\b)"
    r"|(?P<number>\b\d+(?:\.\d+)?\b)"
)

_LANGUAGE_NAME = re.compile(r"[^a-z0-9+#._-]")


def escape_html(unsafe: str) -> str:
    """Escape text for safe inclusion in HTML content and attributes."""
    return html.escape(unsafe, quote=True)


class MessageFormatter:
    """Convert assistant/user text into sanitized, styled HTML."""

    def __init__(self) -> None:
        self.code_block_counter = 0

    @staticmethod
    def detect_language(code: str) -> str:
        for language, pattern in _LANGUAGE_PATTERNS:
            if pattern.search(code):
                return language
        return "plaintext"

    @staticmethod
    def highlight_code(code: str) -> str:
        """Escape ``code`` and wrap comments, strings, keywords and numbers."""
        pieces: list[str] = []
        position = 0
        for match in _SYNTAX_TOKEN.finditer(code):
            pieces.append(escape_html(code[position : match.start()]))
            kind = match.lastgroup or "keyword"
            pieces.append(
                f'<span class="syntax-{kind}">{escape_html(match.group(0))}</span>'
            )
            position = match.end()
        pieces.append(escape_html(code[position:]))
        return "".join(pieces)

    def format_code_block(self, body: str) -> str:
        lines = body.split("\n")
        language = "plaintext"
        code = body
        first = lines[0].strip()
        if first and not re.search(r"[<>{}()\[\]]", first) and len(first) < 20:
            language = _LANGUAGE_NAME.sub("", first.lower()) or "plaintext"
            code = "\n".join(lines[1:])
        elif not first:
            code = "\n".join(lines[1:])

        if language == "plaintext":
            language = self.detect_language(code)

        index = self.code_block_counter
        self.code_block_counter += 1
        return (
            f'<div class="raycast-code" data-language="{language}">'
            f'<div class="raycast-code-header">'
            f'<span class="raycast-code-language">{language}</span>'
            f'<button class="raycast-copy-btn" data-code-index="{index}">Copy</button>'
            f"</div>"
            f'<pre><code class="language-{language}">{self.highlight_code(code)}</code></pre>'
            f"</div>"
        )

    @staticmethod
    def format_inline_code(code: str) -> str:
        return f'<code class="inline-code">{escape_html(code)}</code>'

    @staticmethod
    def _format_link(match: re.Match[str]) -> str:
        label, target = match.group(1), match.group(2)
        if not target.lower().startswith(_SAFE_LINK_SCHEMES):
            return label
        return f'<a href="{target}" target="_blank" class="message-link">{label}</a>'

    @staticmethod
    def format_lists(text: str) -> str:
        """Group consecutive list lines into ``<ul>``/``<ol>`` blocks."""
        output: list[str] = []
        open_tag = ""
        for line in text.split("\n"):
            unordered = _UNORDERED_ITEM.match(line)
            ordered = None if unordered else _ORDERED_ITEM.match(line)
            if unordered or ordered:
                tag = "ul" if unordered else "ol"
                if open_tag != tag:
                    if open_tag:
                        output[-1] += f"</{open_tag}>"
                    classes = "message-list" if tag == "ul" else "message-list numbered"
                    output.append(f'<{tag} class="{classes}">')
                    open_tag = tag
                item_class = "list-item" if tag == "ul" else "list-item numbered"
                content = (unordered or ordered).group(1)  # type: ignore[union-attr]
                output[-1] += f'<li class="{item_class}">{content}</li>'
                continue
            if open_tag:
                output[-1] += f"</{open_tag}>"
                open_tag = ""
            output.append(line)
        if open_tag:
            output[-1] += f"</{open_tag}>"
        return "\n".join(output)

    def format(self, text: str) -> str:
        """Format a whole message."""
        if not text:
            return ""

        self.code_block_counter = 0
        text = text.replace(_NUL, "")

        code_blocks: list[str] = []

        def _stash_block(match: re.Match[str]) -> str:
            code_blocks.append(self.format_code_block(match.group(1)))
            return f"{_NUL}C{len(code_blocks) - 1}{_NUL}"

        inline_codes: list[str] = []

        def _stash_inline(match: re.Match[str]) -> str:
            inline_codes.append(self.format_inline_code(match.group(1)))
            return f"{_NUL}I{len(inline_codes) - 1}{_NUL}"

        text = _FENCED_CODE.sub(_stash_block, text)
        text = _INLINE_CODE.sub(_stash_inline, text)
        text = escape_html(text)

        for pattern, level in _HEADINGS:
            text = pattern.sub(
                rf'<h{level} class="message-heading">\1</h{level}>', text
            )
        text = self.format_lists(text)
        for pattern in _BOLD:
            text = pattern.sub(r"<strong>\1</strong>", text)
        for pattern in _ITALIC:
            text = pattern.sub(r"<em>\1</em>", text)
        text = _STRIKE.sub(r"<del>\1</del>", text)
        text = _LINK.sub(self._format_link, text)
        text = _BLOCKQUOTE.sub(r'<blockquote class="message-quote">\1</blockquote>', text)
        text = _RULE.sub('<hr class="message-divider">', text)
        text = _BLOCK_END.sub(r"\1", text)

        text = text.replace("\n\n", '</p><p class="message-paragraph">')
        text = text.replace("\n", "<br>")
        text = f'<p class="message-paragraph">{text}</p>'
        text = text.replace('<p class="message-paragraph"></p>', "")

        def _restore(match: re.Match[str]) -> str:
            store = code_blocks if match.group(1) == "C" else inline_codes
            return store[int(match.group(2))]

        return _PLACEHOLDER.sub(_restore, text)

    @staticmethod
    def format_timestamp(moment: datetime | None, now: datetime | None = None) -> str:
        """Render a timestamp relative to ``now`` ("Just now", "5m ago", ...)."""
        if moment is None:
            return ""
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=UTC)
        current = now or datetime.now(UTC)
        elapsed = (current - moment).total_seconds()
        minutes = int(elapsed // 60)
        hours = int(elapsed // 3600)
        days = int(elapsed // 86400)
        if minutes < 1:
            return "Just now"
        if minutes < 60:
            return f"{minutes}m ago"
        if hours < 24:
            return f"{hours}h ago"
        if days < 7:
            return f"{days}d ago"
        return moment.astimezone().strftime("%Y-%m-%d")
