"""HTML documentation parser.

Thin layer over BeautifulSoup that knows the handful of shapes documentation
sites use: API sections, fenced code samples and version-to-version
migration headings. ``html.parser`` never raises on truncated or malformed
markup, so every method here degrades to "nothing found" instead of failing.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

# Whole-document fallback is only trusted above this many characters.
MIN_FALLBACK_CONTENT_LENGTH = 50

_LANGUAGE_CLASS_RE = re.compile(r"language-(\w+)|lang-(\w+)|(\w+)-highlight")
_VERSION_RANGE_RE = re.compile(
    r"(?:from\s+)?v?(\d+\.\d+(?:\.\d+)?)\s+(?:to\s+)?v?(\d+\.\d+(?:\.\d+)?)",
    re.IGNORECASE,
)
_CONTENT_TAGS = ["p", "pre", "code", "ul", "ol", "blockquote"]
_CONTAINER_TAGS = frozenset({"pre", "ul", "ol", "blockquote"})


@dataclass(frozen=True)
class ParsedSection:
    title: str
    content: str


@dataclass(frozen=True)
class CodeExample:
    code: str
    language: str | None = None
    description: str | None = None


@dataclass(frozen=True)
class MigrationSection:
    from_version: str
    to_version: str
    changes: tuple[str, ...]


def _classes(tag: Tag | None) -> str:
    if tag is None:
        return ""
    value = tag.get("class") or []
    return " ".join(value) if isinstance(value, list) else str(value)


def _inside_container(tag: Tag, stop: Tag) -> bool:
    """True when *tag* sits inside a pre/list/blockquote below *stop*."""
    parent = tag.parent
    while parent is not None and parent is not stop:
        if parent.name in _CONTAINER_TAGS:
            return True
        parent = parent.parent
    return False


class DocumentationParser:
    def __init__(self, html: str, base_url: str = "") -> None:
        self.soup = BeautifulSoup(html or "", "html.parser")
        self.base_url = base_url
        self.remove("script, style, noscript")

    # ------------------------------------------------------------------
    # Generic helpers
    # ------------------------------------------------------------------

    def select(self, selector: str) -> list[Tag]:
        return self.soup.select(selector)

    def first_text(self, selector: str) -> str:
        element = self.soup.select_one(selector)
        return element.get_text(" ", strip=True) if element else ""

    def remove(self, selector: str) -> None:
        for element in self.soup.select(selector):
            element.decompose()

    def body(self) -> Tag:
        return self.soup.body or self.soup

    def text(self) -> str:
        return self.body().get_text(" ", strip=True)

    def links(self, selector: str) -> list[tuple[str, str]]:
        """Return ``(absolute_href, link_text)`` for every matching anchor."""
        results: list[tuple[str, str]] = []
        for anchor in self.soup.select(selector):
            href = anchor.get("href")
            title = anchor.get_text(" ", strip=True)
            if isinstance(href, str) and href and title:
                results.append((urljoin(self.base_url, href), title))
        return results

    def extract_content(self, element: Tag) -> str:
        """Flatten an element to text, keeping code blocks fenced and list items bulleted."""
        parts: list[str] = []
        for el in element.find_all(_CONTENT_TAGS):
            if _inside_container(el, element):
                continue
            if el.name in ("pre", "code"):
                code = el.get_text().strip()
                if code:
                    parts.append(f"```\n{code}\n```")
            elif el.name in ("ul", "ol"):
                for item in el.find_all("li"):
                    text = item.get_text(" ", strip=True)
                    if text:
                        parts.append(f"- {text}")
            else:
                text = el.get_text(" ", strip=True)
                if text:
                    parts.append(text)
        return "\n\n".join(parts)

    # ------------------------------------------------------------------
    # Documentation shapes
    # ------------------------------------------------------------------

    def parse_api_docs(
        self,
        *,
        title_selector: str = "h1, h2, h3",
        section_selector: str = ".api-section, .method, .function",
    ) -> list[ParsedSection]:
        """Extract one section per structural marker.

        Falls back to the whole document when no markers exist, provided the
        extracted text is longer than ``MIN_FALLBACK_CONTENT_LENGTH``.
        """
        sections = self.soup.select(section_selector)
        if not sections:
            title = self.first_text(title_selector)
            content = self.extract_content(self.body())
            if title and len(content) > MIN_FALLBACK_CONTENT_LENGTH:
                return [ParsedSection(title=title, content=content)]
            return []

        parsed: list[ParsedSection] = []
        for section in sections:
            heading = section.select_one(title_selector)
            title = heading.get_text(" ", strip=True) if heading else ""
            content = self.extract_content(section)
            if title and content:
                parsed.append(ParsedSection(title=title, content=content))
        return parsed

    def parse_code_examples(self) -> list[CodeExample]:
        examples: list[CodeExample] = []
        seen: set[str] = set()

        for element in self.soup.select("pre code, .highlight, .code-example"):
            code = element.get_text().strip()
            if not code or code in seen:
                continue
            seen.add(code)

            hints = f"{_classes(element)} {_classes(element.parent)}"
            match = _LANGUAGE_CLASS_RE.search(hints)
            language = next((g for g in match.groups() if g), None) if match else None

            description = None
            container = element.parent if element.parent is not None else element
            previous = container.find_previous_sibling()
            if previous is not None and previous.name in ("p", "h3", "h4"):
                description = previous.get_text(" ", strip=True) or None

            examples.append(CodeExample(code=code, language=language, description=description))
        return examples

    def parse_migration_guide(self) -> list[MigrationSection]:
        """Collect changes listed under "X to Y" version headings."""
        guides: list[MigrationSection] = []
        for heading in self.soup.find_all(["h2", "h3"]):
            match = _VERSION_RANGE_RE.search(heading.get_text(" ", strip=True))
            if not match:
                continue

            changes: list[str] = []
            for sibling in heading.find_next_siblings():
                if sibling.name in ("h1", "h2", "h3"):
                    break
                if sibling.name in ("ul", "ol"):
                    changes.extend(
                        text
                        for li in sibling.find_all("li")
                        if (text := li.get_text(" ", strip=True))
                    )
                elif sibling.name == "p":
                    text = sibling.get_text(" ", strip=True)
                    if text:
                        changes.append(text)

            if changes:
                guides.append(
                    MigrationSection(
                        from_version=match.group(1),
                        to_version=match.group(2),
                        changes=tuple(changes),
                    )
                )
        return guides
