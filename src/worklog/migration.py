"""Upgrade-on-read for files written by older versions.

Older releases serialized objects with explicit YAML type tags such as
``--- !ruby/object:DailyLog`` or ``- !ruby/object:Person``. Safe loaders
reject those tags, so the tags are stripped and the file is rewritten once
before it is parsed. Stripping is idempotent.

Tags are found with the YAML scanner, so text inside quoted or block
scalars is never touched. Only the tag and the blanks in front of it are
removed; every other byte of the file is kept.
"""

from __future__ import annotations

from pathlib import Path

import yaml

from .locking import atomic_write

# Primary handle: local application tags like !ruby/object:Person
LOCAL_TAG_HANDLE = "!"


def _local_tag_spans(text: str) -> list[tuple[int, int]]:
    """Character spans of local tags, each widened over the blanks before it."""
    spans = []
    for token in yaml.scan(text, Loader=yaml.SafeLoader):
        if not isinstance(token, yaml.TagToken):
            continue
        handle, _suffix = token.value
        if handle != LOCAL_TAG_HANDLE:
            continue
        start = token.start_mark.index
        while start > 0 and text[start - 1] in " \t":
            start -= 1
        spans.append((start, token.end_mark.index))
    return spans


def strip_type_tags(text: str) -> str:
    """Remove local YAML type tags from ``text``.

    Text the scanner cannot tokenize is returned unchanged; parsing it
    afterwards reports the error.
    """
    try:
        spans = _local_tag_spans(text)
    except yaml.YAMLError:
        return text

    for start, end in reversed(spans):
        text = text[:start] + text[end:]
    return text


def upgrade_file(path: Path, log) -> str:
    """Return the clean text of ``path``, rewriting the file if it had tags.

    Raises:
        FileNotFoundError: If ``path`` does not exist
    """
    text = path.read_text(encoding="utf-8")
    cleaned = strip_type_tags(text)
    if cleaned != text:
        log.debug(f"{path.name} contains deprecated YAML type tags. Migrating now.")
        with atomic_write(path) as f:
            f.write(cleaned)
    return cleaned
