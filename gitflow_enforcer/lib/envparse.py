"""
Safe .env file parser.

Parses KEY=value files without shell execution.
Rejects values that look like shell injection attempts.
"""

import re
from pathlib import Path

FORBIDDEN_PATTERNS = [
    r'`',           # backticks
    r'\$\(',        # command substitution
    r'\$\{',        # variable expansion
    r';',           # command chaining
    r'&&',          # AND chaining
    r'\|',          # pipes and OR chaining
]

KEY_PATTERN = re.compile(r'^[A-Z][A-Z0-9_]*$')


def parse_env(text: str) -> dict[str, str]:
    """
    Parse KEY=value lines.

    Blank lines and lines starting with '#' are skipped. Values may be wrapped
    in matching single or double quotes.

    Raises:
        ValueError: on a line without '=', an invalid key, or a forbidden pattern
    """
    result = {}
    for lineno, line in enumerate(text.splitlines(), 1):
        line = line.strip()
        if not line or line.startswith('#'):
            continue

        key, sep, value = line.partition('=')
        if not sep:
            raise ValueError(f"Line {lineno}: Invalid syntax (no '=')")
        key = key.strip()
        value = value.strip()

        if not KEY_PATTERN.match(key):
            raise ValueError(f"Line {lineno}: Invalid key '{key}'")

        if len(value) >= 2 and value[0] == value[-1] and value[0] in ('"', "'"):
            value = value[1:-1]

        for pattern in FORBIDDEN_PATTERNS:
            if re.search(pattern, value):
                raise ValueError(f"Line {lineno}: Forbidden pattern in value of {key}")

        result[key] = value
    return result


def load_env(filepath: Path) -> dict[str, str]:
    """
    Parse env file safely, return dict.

    Raises:
        FileNotFoundError: if file doesn't exist
        ValueError: if syntax invalid or forbidden pattern found
    """
    if not filepath.exists():
        raise FileNotFoundError(f"Env file not found: {filepath}")
    return parse_env(filepath.read_text())
