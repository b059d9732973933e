# provision/templates.py
# -*- coding: utf-8 -*-
"""
Literal placeholder templates for generated configuration files.

Two flavours exist:

- PlaceholderTemplate: text with ``{{field}}`` placeholders and a declared set
  of fields. Unknown or unused placeholders are rejected when the template is
  built, and missing or unknown values are rejected when it is rendered.
- LiteralTokenTemplate: replaces fixed literal tokens in a third-party file
  (e.g. ``database_name_here`` in wp-config-sample.php). Every token must be
  present in the source text.

No expressions, loops or escaping are supported.
"""

import re
from typing import Iterable, Mapping

from provision.exceptions import TemplateError

PLACEHOLDER_RE = re.compile(r"\{\{\s*([A-Za-z_][A-Za-z0-9_]*)\s*\}\}")
ANY_PLACEHOLDER_RE = re.compile(r"\{\{.*?\}\}", re.DOTALL)


class PlaceholderTemplate:
    def __init__(self, name: str, text: str, fields: Iterable[str]):
        self.name = name
        self.text = text
        self.fields = frozenset(fields)

        found = set(PLACEHOLDER_RE.findall(text))
        malformed = [
            token
            for token in ANY_PLACEHOLDER_RE.findall(text)
            if not PLACEHOLDER_RE.fullmatch(token)
        ]
        if malformed:
            raise TemplateError(
                f"Template '{name}' contains malformed placeholders: "
                f"{', '.join(malformed)}"
            )
        unknown = found - self.fields
        if unknown:
            raise TemplateError(
                f"Template '{name}' uses undeclared placeholders: "
                f"{', '.join(sorted(unknown))}"
            )
        unused = self.fields - found
        if unused:
            raise TemplateError(
                f"Template '{name}' declares fields it never uses: "
                f"{', '.join(sorted(unused))}"
            )

    def render(self, values: Mapping[str, object]) -> str:
        missing = self.fields - set(values)
        if missing:
            raise TemplateError(
                f"Template '{self.name}' is missing values for: "
                f"{', '.join(sorted(missing))}"
            )
        unknown = set(values) - self.fields
        if unknown:
            raise TemplateError(
                f"Template '{self.name}' got unknown values: "
                f"{', '.join(sorted(unknown))}"
            )

        rendered = PLACEHOLDER_RE.sub(
            lambda match: str(values[match.group(1)]), self.text
        )
        # A value may itself look like a placeholder; never emit one.
        if ANY_PLACEHOLDER_RE.search(rendered):
            raise TemplateError(
                f"Rendering template '{self.name}' left a placeholder token "
                "in the output"
            )
        return rendered


class LiteralTokenTemplate:
    def __init__(self, name: str, text: str, tokens: Iterable[str]):
        self.name = name
        self.text = text
        self.tokens = tuple(tokens)

        absent = [token for token in self.tokens if token not in text]
        if absent:
            raise TemplateError(
                f"Source for '{name}' does not contain expected tokens: "
                f"{', '.join(absent)}"
            )

    def render(self, values: Mapping[str, str]) -> str:
        missing = [token for token in self.tokens if token not in values]
        if missing:
            raise TemplateError(
                f"Template '{self.name}' is missing values for: "
                f"{', '.join(missing)}"
            )
        unknown = set(values) - set(self.tokens)
        if unknown:
            raise TemplateError(
                f"Template '{self.name}' got unknown tokens: "
                f"{', '.join(sorted(unknown))}"
            )

        # Single pass so a replacement value is never re-scanned for tokens.
        pattern = re.compile(
            "|".join(
                re.escape(token)
                for token in sorted(self.tokens, key=len, reverse=True)
            )
        )
        return pattern.sub(lambda match: values[match.group(0)], self.text)
