"""Prompt loader — hot-reload prompt templates from habitflow/prompts/.

Templates are plain markdown. Placeholders use {{name}} so JSON examples
inside a prompt don't need escaping. Edit the files directly — changes
take effect on the next call.
"""

import logging
import re
from pathlib import Path

log = logging.getLogger(__name__)

_PROMPTS_DIR = Path(__file__).resolve().parent / "prompts"
_cache: dict[str, str] = {}

_PLACEHOLDER = re.compile(r"\{\{\s*(\w+)\s*\}\}")


def get_prompt(name: str) -> str:
    """Load a prompt template by name (without .md extension).

    Always reads from disk (hot-reload). Falls back to cache if file missing.
    """
    path = _PROMPTS_DIR / f"{name}.md"
    if path.exists():
        content = path.read_text(encoding="utf-8").strip()
        _cache[name] = content
        return content

    if name in _cache:
        log.warning("Prompt file missing, using cache: %s", name)
        return _cache[name]

    log.error("Prompt not found: %s", name)
    return ""


def render(template: str, **values: str) -> str:
    """Fill {{name}} placeholders. Unknown placeholders are left as-is."""
    def _sub(match: re.Match) -> str:
        key = match.group(1)
        return str(values[key]) if key in values else match.group(0)
    return _PLACEHOLDER.sub(_sub, template)


def render_prompt(name: str, **values: str) -> str:
    """get_prompt() + render() in one step."""
    return render(get_prompt(name), **values)


def list_prompts() -> list[str]:
    """List available prompt template names."""
    if not _PROMPTS_DIR.exists():
        return []
    return sorted(f.stem for f in _PROMPTS_DIR.glob("*.md"))
