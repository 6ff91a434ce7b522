"""Parsers turning uploaded files into `Document` objects."""

from __future__ import annotations

import io
import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from PyPDF2 import PdfReader
from PyPDF2.errors import PdfReadError

from ragloop.errors import InputValidationError
from ragloop.types import Document


class Parser(ABC):
    """Base parser interface used by the ingest pipeline."""

    extensions: tuple[str, ...] = ()

    @abstractmethod
    def parse(self, raw: bytes, *, filename: str) -> Document:
        """Decode file content into document text."""


class TextParser(Parser):
    """Parser for plain text and markdown documents."""

    extensions = (".txt", ".log", ".md", ".markdown")

    def parse(self, raw: bytes, *, filename: str) -> Document:
        text = _decode(raw, filename)
        # Normalize line endings so chunk boundaries do not depend on the platform.
        return Document(text="\n".join(text.splitlines()), filename=filename)


class JsonParser(Parser):
    """Parser for JSON documents with deterministic normalization."""

    extensions = (".json",)

    def parse(self, raw: bytes, *, filename: str) -> Document:
        try:
            payload: Any = json.loads(_decode(raw, filename))
        except json.JSONDecodeError as exc:
            raise InputValidationError(f"'{filename}' is not valid JSON: {exc}") from exc
        if isinstance(payload, (dict, list)):
            text = json.dumps(payload, ensure_ascii=False, sort_keys=True, indent=2)
        else:
            text = str(payload)
        return Document(text=text, filename=filename)


class PdfParser(Parser):
    """Extracts page text from PDF files, pages separated by a blank line."""

    extensions = (".pdf",)

    def parse(self, raw: bytes, *, filename: str) -> Document:
        try:
            reader = PdfReader(io.BytesIO(raw))
            pages = [page.extract_text() or "" for page in reader.pages]
        except PdfReadError as exc:
            raise InputValidationError(f"'{filename}' is not a readable PDF: {exc}") from exc
        text = "\n\n".join(page.strip() for page in pages if page.strip())
        return Document(text=text, filename=filename)


class ParserRegistry:
    """Maps file extension to parser implementation.

    Unknown extensions fall back to the plain text parser.
    """

    def __init__(self, parsers: list[Parser] | None = None) -> None:
        self._parsers: dict[str, Parser] = {}
        self._default: Parser = TextParser()
        for parser in parsers or [TextParser(), JsonParser(), PdfParser()]:
            self.register(parser)

    def register(self, parser: Parser) -> None:
        for extension in parser.extensions:
            self._parsers[extension.lower()] = parser

    def parse_bytes(self, raw: bytes, *, filename: str) -> Document:
        parser = self._parsers.get(Path(filename).suffix.lower(), self._default)
        return parser.parse(raw, filename=filename)

    def parse_path(self, path: str | Path) -> Document:
        file_path = Path(path)
        return self.parse_bytes(file_path.read_bytes(), filename=file_path.name)


def _decode(raw: bytes, filename: str) -> str:
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise InputValidationError(f"'{filename}' is not UTF-8 text") from exc
