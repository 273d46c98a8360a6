import re
from collections import namedtuple

from newsprism.utils.text import split_words

Chunk = namedtuple('Chunk', ['index', 'text', 'word_count'])

DEFAULT_CHUNK_SIZE = 150
DEFAULT_OVERLAP_RATIO = 0.2
SENTENCE_LOOKBACK_CHARS = 100
SENTENCE_END = re.compile(r'[.!?]\s+')


def chunk_text(text, chunk_size=DEFAULT_CHUNK_SIZE, overlap_ratio=DEFAULT_OVERLAP_RATIO):
    """
    Split text into overlapping word windows for embedding.

    Windows hold `chunk_size` words and start `chunk_size - floor(chunk_size * overlap_ratio)`
    words apart. A window that is not the last one is trimmed back to the latest
    sentence end found in its final SENTENCE_LOOKBACK_CHARS characters, unless that
    boundary sits in the first half of the lookback (trimming would cut too much).
    Returns a list of Chunk with dense indices starting at 0.
    """
    if chunk_size < 1:
        raise ValueError('chunk_size must be >= 1')
    overlap = int(chunk_size * overlap_ratio)
    if overlap < 0 or overlap >= chunk_size:
        raise ValueError('overlap_ratio must be in [0, 1)')

    if not text or not text.strip():
        return []

    words = split_words(text)
    total = len(words)
    if total <= chunk_size:
        return [Chunk(0, text.strip(), total)]

    chunks = []
    start = 0
    while start < total:
        end = min(start + chunk_size, total)
        window = ' '.join(words[start:end])
        if end < total:
            window = _trim_to_sentence(window)
        window = window.strip()
        chunks.append(Chunk(len(chunks), window, len(split_words(window))))

        if end >= total:
            break
        start = end - overlap

    return chunks


def _trim_to_sentence(window):
    tail = window[-SENTENCE_LOOKBACK_CHARS:]
    matches = list(SENTENCE_END.finditer(tail))
    if not matches:
        return window
    last = matches[-1]
    if last.start() <= SENTENCE_LOOKBACK_CHARS // 2:
        return window
    cut = len(window) - len(tail) + last.end()
    return window[:cut]
