"""Heading-aware chunking of Markdown documents.

Each heading opens a new chunk holding the text up to the next heading. The
chunk keeps the headings of its ancestors, and the prompt text of every chunk
carries the closing sentences of the chunk before it.
"""

import itertools
import os
import re

from markdown_it import MarkdownIt
from pydantic import BaseModel, ConfigDict

from shared.clients.rag.models.IndexedUnit import IndexedUnit

_SENTENCE_BOUNDARY = re.compile(r"[.!?]\s+")
_LINE_BREAK = re.compile(r"\r\n?")
_SENTENCE_END = (".", "!", "?")
SHORT_SENTENCE_LEN = 20
LINEAGE_SEPARATOR = " > "


class Chunk(BaseModel):
    """One heading-delimited section of a Markdown document."""

    model_config = ConfigDict(frozen=True)

    header: str
    level: int = 0
    content: str = ""
    lineage: tuple[str, ...] = ()


class ChunkIdSequence:
    """Hands out "<doc-id>-chunk-<n>" ids from one counter shared by all documents of a run."""

    def __init__(self, start: int = 1) -> None:
        self._counter = itertools.count(start)

    def next_id(self, doc_id: str) -> str:
        return f"{doc_id}-chunk-{next(self._counter)}"


def doc_id_from_filename(file_path: str) -> str:
    """Return the file name without its ".md" suffix."""
    name = os.path.basename(file_path)
    return name[:-3] if name.lower().endswith(".md") else name


def extract_parent_headers(lineage: str) -> str:
    """Normalise a ">"-separated lineage string.

    Args:
        lineage (str): Ancestor headers separated by ">".

    Returns:
        str: The non-empty, trimmed parts joined by " > ", or "Root" if there are none.
    """
    parts = [part.strip() for part in lineage.split(">")]
    parts = [part for part in parts if part]
    if not parts:
        return "Root"
    return LINEAGE_SEPARATOR.join(parts)


def extract_overlap(text: str) -> str:
    """Return the closing sentence(s) of a text.

    The last sentence is returned on its own unless it is shorter than 20
    characters and the text has more than two sentences, in which case the last
    two are returned. A text without a sentence boundary is returned unchanged.

    Args:
        text (str): The content of the previous chunk.

    Returns:
        str: The overlap text, terminated by a sentence end mark.
    """
    sentences = _SENTENCE_BOUNDARY.split(text.rstrip())
    if len(sentences) <= 1:
        return text
    if len(sentences[-1]) < SHORT_SENTENCE_LEN and len(sentences) > 2:
        overlap = ". ".join(sentences[-2:])
    else:
        overlap = sentences[-1]
    if not overlap.endswith(_SENTENCE_END):
        overlap += "."
    return overlap


class ChunkBuilder:
    """Turns Markdown documents into IndexedUnits ready for embedding."""

    _markdown: MarkdownIt | None = None

    def __init__(self, id_sequence: ChunkIdSequence | None = None, document_prefix: str = "search_document: ") -> None:
        self._id_sequence = id_sequence or ChunkIdSequence()
        self._document_prefix = document_prefix

    @classmethod
    def _markdown_parser(cls) -> MarkdownIt:
        if cls._markdown is None:
            cls._markdown = MarkdownIt("commonmark")
        return cls._markdown

    ##########################################
    ################ PARSING #################
    ##########################################

    def parse_chunks(self, markdown_text: str) -> list[Chunk]:
        """Split a Markdown document at its headings.

        Text before the first heading becomes a chunk with an empty header when it
        is not blank. Headings inside code blocks are not headings.

        Args:
            markdown_text (str): The raw document.

        Returns:
            list[Chunk]: Chunks in document order.
        """
        # token.map counts only \n, \r\n and \r as line breaks
        lines = _LINE_BREAK.sub("\n", markdown_text).split("\n")
        tokens = self._markdown_parser().parse(markdown_text)

        # (level, title, first line, line after heading)
        headings: list[tuple[int, str, int, int]] = []
        for index, token in enumerate(tokens):
            if token.type != "heading_open" or token.map is None:
                continue
            inline = tokens[index + 1] if index + 1 < len(tokens) else None
            title = inline.content.strip() if inline is not None and inline.type == "inline" else ""
            start, end = token.map
            headings.append((int(token.tag[1:]), title, start, end))

        chunks: list[Chunk] = []
        first_heading_line = headings[0][2] if headings else len(lines)
        preamble = "\n".join(lines[:first_heading_line]).strip()
        if preamble:
            chunks.append(Chunk(header="", content=preamble))

        stack: list[tuple[int, str]] = []
        for position, (level, title, _, body_start) in enumerate(headings):
            body_end = headings[position + 1][2] if position + 1 < len(headings) else len(lines)
            while stack and stack[-1][0] >= level:
                stack.pop()
            chunks.append(
                Chunk(
                    header=title,
                    level=level,
                    content="\n".join(lines[body_start:body_end]).strip(),
                    lineage=tuple(header for _, header in stack),
                )
            )
            stack.append((level, title))
        return chunks

    ##########################################
    ############# UNIT BUILDING ##############
    ##########################################

    def build_prompt_text(self, chunk: Chunk, previous: Chunk | None = None) -> str:
        parents = extract_parent_headers(LINEAGE_SEPARATOR.join(chunk.lineage))
        text = f"{self._document_prefix}Section: {chunk.header}\nParent Sections: {parents}\n\n{chunk.content}"
        if previous is not None and previous.content:
            overlap = extract_overlap(previous.content)
            if overlap:
                text = f"{text}\n\nContext from previous section:\n{overlap}"
        return text

    def build_units(self, doc_id: str, markdown_text: str) -> list[IndexedUnit]:
        """Chunk a document and build one IndexedUnit per chunk, without vectors.

        Args:
            doc_id (str): Identifier of the document, used as id prefix.
            markdown_text (str): The raw document.

        Returns:
            list[IndexedUnit]: Units in document order.
        """
        chunks = self.parse_chunks(markdown_text)
        units: list[IndexedUnit] = []
        for position, chunk in enumerate(chunks):
            previous = chunks[position - 1] if position > 0 else None
            units.append(
                IndexedUnit(
                    id=self._id_sequence.next_id(doc_id),
                    doc_id=doc_id,
                    header=chunk.header,
                    prompt_text=self.build_prompt_text(chunk, previous),
                )
            )
        return units
