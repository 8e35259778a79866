"""Versioned binary persistence for trained models.

Layout (all integers little-endian; ``uint`` is 32-bit, counts are 64-bit)::

    magic       4 bytes  b"TBNB"
    version     uint
    alpha       float64
    N           uint, then N tokens as (uint length, UTF-8 bytes), index order
    C           uint, then per class (sorted by label):
        label   (uint length, UTF-8 bytes)
        prior   float64
        total   uint64 token count
        M       uint, then M (index: uint, count: uint64) pairs, index order

Loaders reject unknown versions and any structural inconsistency with
``CorruptModelError``.
"""

from __future__ import annotations

import io
import logging
import math
import struct
from pathlib import Path

from .errors import CorruptModelError, UntrainedModelError, WriteError
from .naive_bayes import ClassStatistics, NaiveBayesModel
from .vectorizer import Vocabulary

logger = logging.getLogger(__name__)

MAGIC = b"TBNB"
FORMAT_VERSION = 1

_UINT = struct.Struct("<I")
_COUNT = struct.Struct("<Q")
_FLOAT = struct.Struct("<d")
_ENTRY = struct.Struct("<IQ")

_PRIOR_SUM_TOLERANCE = 1e-9


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------

def _write_str(buf: io.BytesIO, value: str) -> None:
    data = value.encode("utf-8")
    buf.write(_UINT.pack(len(data)))
    buf.write(data)


def dumps(model: NaiveBayesModel) -> bytes:
    """Serialize a trained model (and its vocabulary) to bytes.

    Raises:
        UntrainedModelError: If the model has not been trained.
    """
    if not model.is_trained:
        raise UntrainedModelError("Cannot save an untrained model.")

    buf = io.BytesIO()
    buf.write(MAGIC)
    buf.write(_UINT.pack(FORMAT_VERSION))
    buf.write(_FLOAT.pack(model.alpha))

    buf.write(_UINT.pack(len(model.vocabulary)))
    for token in model.vocabulary:
        _write_str(buf, token)

    priors = model.priors
    buf.write(_UINT.pack(len(priors)))
    for label in model.labels:
        stats = model.statistics(label)
        _write_str(buf, label)
        buf.write(_FLOAT.pack(priors[label]))
        buf.write(_COUNT.pack(stats.token_total))
        entries = sorted((i, c) for i, c in stats.token_counts.items() if c)
        buf.write(_UINT.pack(len(entries)))
        for idx, count in entries:
            buf.write(_ENTRY.pack(idx, count))

    return buf.getvalue()


def save(model: NaiveBayesModel, destination: str | Path) -> None:
    """Write a trained model to ``destination``.

    Raises:
        UntrainedModelError: If the model has not been trained.
        WriteError: If the file cannot be written.
    """
    data = dumps(model)
    path = Path(destination)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
    except OSError as e:
        raise WriteError(f"Cannot write model to {path}: {e}") from e
    logger.info("Saved model to %s (%d bytes)", path, len(data))


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------

class _Reader:
    """Bounds-checked cursor over a byte buffer."""

    def __init__(self, data: bytes) -> None:
        self._data = data
        self._pos = 0

    def take(self, size: int) -> bytes:
        end = self._pos + size
        if end > len(self._data):
            raise CorruptModelError(
                f"Unexpected end of data at offset {self._pos} (needed {size} bytes)"
            )
        chunk = self._data[self._pos:end]
        self._pos = end
        return chunk

    def unpack(self, fmt: struct.Struct) -> tuple:
        return fmt.unpack(self.take(fmt.size))

    def uint(self) -> int:
        return self.unpack(_UINT)[0]

    def string(self) -> str:
        raw = self.take(self.uint())
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise CorruptModelError(f"Invalid UTF-8 string: {e}") from e

    @property
    def exhausted(self) -> bool:
        return self._pos == len(self._data)


def loads(data: bytes) -> NaiveBayesModel:
    """Reconstruct a trained model from bytes produced by ``dumps``.

    Raises:
        CorruptModelError: If the header, version or contents do not validate.
    """
    reader = _Reader(data)

    if reader.take(len(MAGIC)) != MAGIC:
        raise CorruptModelError("Not a text-bayes model file (bad magic bytes)")
    version = reader.uint()
    if version != FORMAT_VERSION:
        raise CorruptModelError(f"Unsupported model format version {version}")

    (alpha,) = reader.unpack(_FLOAT)
    if not (math.isfinite(alpha) and alpha > 0):
        raise CorruptModelError(f"Invalid smoothing constant {alpha}")

    n_tokens = reader.uint()
    tokens = [reader.string() for _ in range(n_tokens)]
    try:
        vocabulary = Vocabulary(tuple(tokens))
    except ValueError as e:
        raise CorruptModelError(str(e)) from e

    n_classes = reader.uint()
    if n_classes == 0:
        raise CorruptModelError("Model contains no classes")

    priors: dict[str, float] = {}
    statistics: dict[str, ClassStatistics] = {}
    for _ in range(n_classes):
        label = reader.string()
        if label in priors:
            raise CorruptModelError(f"Duplicate class label {label!r}")
        (prior,) = reader.unpack(_FLOAT)
        if not (math.isfinite(prior) and 0 < prior <= 1):
            raise CorruptModelError(f"Invalid prior {prior} for class {label!r}")
        (total,) = reader.unpack(_COUNT)

        counts: dict[int, int] = {}
        for _ in range(reader.uint()):
            idx, count = reader.unpack(_ENTRY)
            if idx >= n_tokens:
                raise CorruptModelError(
                    f"Token index {idx} out of range for vocabulary of size {n_tokens}"
                )
            if idx in counts:
                raise CorruptModelError(f"Duplicate token index {idx} for class {label!r}")
            if count == 0:
                raise CorruptModelError(f"Zero count stored for token index {idx}")
            counts[idx] = count

        if sum(counts.values()) != total:
            raise CorruptModelError(
                f"Token total {total} for class {label!r} does not match its entries"
            )
        priors[label] = prior
        statistics[label] = ClassStatistics(token_total=total, token_counts=counts)

    if not reader.exhausted:
        raise CorruptModelError("Trailing bytes after model data")
    if abs(sum(priors.values()) - 1.0) > _PRIOR_SUM_TOLERANCE * max(1, n_classes):
        raise CorruptModelError(f"Class priors sum to {sum(priors.values())}, expected 1")

    return NaiveBayesModel.from_statistics(vocabulary, alpha, priors, statistics)


def load(source: str | Path) -> NaiveBayesModel:
    """Read a trained model from ``source``.

    The returned model carries the vocabulary it was trained with.

    Raises:
        CorruptModelError: If the file cannot be read or does not validate.
    """
    path = Path(source)
    try:
        data = path.read_bytes()
    except OSError as e:
        raise CorruptModelError(f"Cannot read model from {path}: {e}") from e
    model = loads(data)
    logger.info("Loaded model from %s: %r", path, model)
    return model
