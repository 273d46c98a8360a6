import re

WORD_SPLIT = re.compile(r'\s+')


def split_words(text):
    """Whitespace-split text, dropping empty tokens."""
    return [w for w in WORD_SPLIT.split(text or '') if w]


def word_count(text):
    return len(split_words(text))


def truncate_chars(text, max_chars):
    text = text or ''
    return text if len(text) <= max_chars else text[:max_chars]


def strip_code_fence(text):
    """Remove a surrounding ``` or ```json fence from an LLM response."""
    text = (text or '').strip()
    if text.startswith('```'):
        text = re.sub(r'^```[a-zA-Z]*\s*', '', text)
        text = re.sub(r'\s*```$', '', text)
    return text.strip()
