"""Dataset readers and writers.

Supports tab-separated (``label<TAB>text``, the SMS Spam Collection layout),
CSV (``label,text``) and Weka ARFF files with one nominal class attribute
and one string attribute. The vectorised form of a dataset can be exported
as a sparse ARFF file.
"""

from __future__ import annotations

import csv
import io
import logging
import re
from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import Optional

from .errors import DatasetError, WriteError
from .models import Document
from .vectorizer import Vocabulary, encode

logger = logging.getLogger(__name__)

CLASS_ATTRIBUTE = "@@class@@"
_MISSING = "?"


class DatasetParser(ABC):
    """Abstract base class for dataset parsers.

    All parsers implement ``parse``, which reads a file and returns its
    documents in file order.
    """

    supported_extensions: tuple[str, ...] = ()

    def can_handle(self, path: Path) -> bool:
        """Check if this parser can handle the given file."""
        return path.suffix.lower() in self.supported_extensions

    @abstractmethod
    def parse(self, path: Path) -> list[Document]:
        """Parse a dataset file.

        Raises:
            DatasetError: If the file is missing, unreadable or malformed.
        """
        ...

    def _read(self, path: Path) -> str:
        if not path.exists():
            raise DatasetError(f"File not found: {path}")
        if not self.can_handle(path):
            raise DatasetError(
                f"Unsupported file extension '{path.suffix}' for {self.__class__.__name__}. "
                f"Supported: {self.supported_extensions}"
            )
        try:
            return path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            raise DatasetError(f"Cannot read {path}: {e}") from e


class DelimitedParser(DatasetParser):
    """Parser for ``label<TAB>text`` and ``label,text`` files.

    An empty label marks an unlabelled document. A first row whose label
    column reads ``label`` is treated as a header.
    """

    supported_extensions = (".tsv", ".txt", ".csv")

    def parse(self, path: Path) -> list[Document]:
        text = self._read(path)
        if path.suffix.lower() == ".csv":
            rows = self._csv_rows(text)
        else:
            rows = self._tsv_rows(text, path)

        documents = []
        for line_no, label, body in rows:
            if line_no == 1 and label.strip().lower() == "label":
                continue
            documents.append(Document(text=body, label=label.strip() or None))

        logger.debug("Parsed %d documents from %s", len(documents), path)
        return documents

    @staticmethod
    def _tsv_rows(text: str, path: Path) -> Iterable[tuple[int, str, str]]:
        for line_no, line in enumerate(text.splitlines(), 1):
            if not line.strip():
                continue
            if "\t" not in line:
                raise DatasetError(f"{path}:{line_no}: expected 'label<TAB>text'")
            label, body = line.split("\t", 1)
            yield line_no, label, body

    @staticmethod
    def _csv_rows(text: str) -> Iterable[tuple[int, str, str]]:
        reader = csv.reader(io.StringIO(text, newline=""))
        for row in reader:
            if not row or not any(cell.strip() for cell in row):
                continue
            if len(row) < 2:
                raise DatasetError(f"line {reader.line_num}: expected 'label,text'")
            yield reader.line_num, row[0], ",".join(row[1:])


class ArffParser(DatasetParser):
    """Parser for Weka ARFF text datasets.

    The header must declare one nominal attribute (the class) and one
    ``string`` attribute (the text), in any order. ``?`` in the class column
    marks an unlabelled document.
    """

    supported_extensions = (".arff",)

    _ATTRIBUTE_RE = re.compile(
        r"@attribute\s+('(?:[^'\\]|\\.)*'|\"(?:[^\"\\]|\\.)*\"|\S+)\s+(.+)$",
        re.IGNORECASE,
    )

    def parse(self, path: Path) -> list[Document]:
        text = self._read(path)
        lines = text.splitlines()

        attributes: list[tuple[str, Optional[list[str]]]] = []
        data_start = None
        for line_no, raw in enumerate(lines, 1):
            line = raw.strip()
            if not line or line.startswith("%"):
                continue
            keyword = line.split(None, 1)[0].lower()
            if keyword == "@relation":
                continue
            if keyword == "@attribute":
                attributes.append(self._parse_attribute(line, path, line_no))
            elif keyword == "@data":
                data_start = line_no
                break
            else:
                raise DatasetError(f"{path}:{line_no}: unexpected header line {line!r}")

        if data_start is None:
            raise DatasetError(f"{path}: missing @data section")

        class_cols = [i for i, (_, values) in enumerate(attributes) if values is not None]
        text_cols = [i for i, (kind, values) in enumerate(attributes) if kind == "string"]
        if len(class_cols) != 1 or len(text_cols) != 1:
            raise DatasetError(
                f"{path}: expected one nominal class attribute and one string attribute"
            )
        class_col, text_col = class_cols[0], text_cols[0]
        allowed = set(attributes[class_col][1] or ())

        documents = []
        for line_no in range(data_start + 1, len(lines) + 1):
            line = lines[line_no - 1].strip()
            if not line or line.startswith("%"):
                continue
            values = split_arff_values(line, path, line_no)
            if len(values) != len(attributes):
                raise DatasetError(
                    f"{path}:{line_no}: expected {len(attributes)} values, got {len(values)}"
                )
            label = values[class_col]
            if label == _MISSING:
                label = None
            elif label not in allowed:
                raise DatasetError(f"{path}:{line_no}: unknown class value {label!r}")
            documents.append(Document(text=values[text_col], label=label))

        logger.debug("Parsed %d documents from %s", len(documents), path)
        return documents

    def _parse_attribute(
        self, line: str, path: Path, line_no: int
    ) -> tuple[str, Optional[list[str]]]:
        match = self._ATTRIBUTE_RE.match(line)
        if not match:
            raise DatasetError(f"{path}:{line_no}: malformed @attribute line")
        spec = match.group(2).strip()
        if spec.startswith("{") and spec.endswith("}"):
            values = split_arff_values(spec[1:-1], path, line_no)
            return "nominal", values
        return spec.lower(), None


def split_arff_values(line: str, path: Path | str = "<arff>", line_no: int = 0) -> list[str]:
    """Split a comma-separated ARFF row, honouring quotes and escapes."""
    values: list[str] = []
    i, n = 0, len(line)
    while i <= n:
        while i < n and line[i] in " \t":
            i += 1
        if i < n and line[i] in "'\"":
            quote = line[i]
            i += 1
            chars: list[str] = []
            while True:
                if i >= n:
                    raise DatasetError(f"{path}:{line_no}: unterminated quoted value")
                ch = line[i]
                if ch == "\\" and i + 1 < n:
                    chars.append(_ESCAPES.get(line[i + 1], line[i + 1]))
                    i += 2
                elif ch == quote:
                    i += 1
                    break
                else:
                    chars.append(ch)
                    i += 1
            values.append("".join(chars))
            while i < n and line[i] in " \t":
                i += 1
            if i < n and line[i] != ",":
                raise DatasetError(f"{path}:{line_no}: unexpected text after quoted value")
        else:
            end = line.find(",", i)
            if end == -1:
                end = n
            values.append(line[i:end].strip())
            i = end
        i += 1
    return values


_ESCAPES = {"n": "\n", "t": "\t", "r": "\r"}
_NEEDS_QUOTES_RE = re.compile(r"[\s'\"%,{}\\]")


def _quote(value: str) -> str:
    if value and value != _MISSING and not _NEEDS_QUOTES_RE.search(value):
        return value
    escaped = (
        value.replace("\\", "\\\\")
        .replace("'", "\\'")
        .replace("\n", "\\n")
        .replace("\t", "\\t")
        .replace("\r", "\\r")
    )
    return f"'{escaped}'"


_PARSERS: list[DatasetParser] = [DelimitedParser(), ArffParser()]


def get_parser(path: Path) -> DatasetParser:
    """Return the parser for a dataset file based on its extension.

    Raises:
        DatasetError: If no parser supports the extension.
    """
    for parser in _PARSERS:
        if parser.can_handle(path):
            return parser
    supported = sorted(ext for p in _PARSERS for ext in p.supported_extensions)
    raise DatasetError(f"Unsupported dataset format '{path.suffix}'. Supported: {supported}")


def load_dataset(path: str | Path) -> list[Document]:
    """Load every document from a dataset file."""
    path = Path(path)
    return get_parser(path).parse(path)


def read_text(path: str | Path) -> str:
    """Read a text file to classify, joining its lines with single spaces."""
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8", errors="replace") as f:
            return " ".join(line.rstrip("\r\n") for line in f)
    except OSError as e:
        raise DatasetError(f"Cannot read {path}: {e}") from e


def export_arff(
    documents: Sequence[Document],
    vocabulary: Vocabulary,
    path: str | Path,
    relation: str = "text_bayes_vectors",
) -> None:
    """Write the bag-of-words encoding of ``documents`` as a sparse ARFF file.

    Attribute 0 is the class; attribute ``i + 1`` holds the count of
    vocabulary token ``i``.

    Raises:
        WriteError: If the file cannot be written.
    """
    labels = sorted({doc.label for doc in documents if doc.label is not None})
    lines = [
        f"@relation {_quote(relation)}",
        "",
        f"@attribute {_quote(CLASS_ATTRIBUTE)} {{{','.join(_quote(lb) for lb in labels)}}}",
    ]
    lines.extend(f"@attribute {_quote(token)} numeric" for token in vocabulary)
    lines.extend(["", "@data"])

    for doc in documents:
        label = _quote(doc.label) if doc.label is not None else _MISSING
        cells = [f"0 {label}"]
        cells.extend(
            f"{idx + 1} {count}" for idx, count in sorted(encode(doc, vocabulary).items())
        )
        lines.append("{" + ",".join(cells) + "}")

    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    except OSError as e:
        raise WriteError(f"Cannot write {path}: {e}") from e
    logger.info("Wrote %d vectors over %d attributes to %s", len(documents), len(vocabulary) + 1, path)
