"""Tests for media type helpers."""

import pytest

from synclocal.engines import is_textual, normalize_media_type


@pytest.mark.parametrize("content_type,expected", [
    ("text/plain", "text/plain"),
    ("Text/HTML; charset=UTF-8", "text/html"),
    ("application/ld+json", "application/json"),
    ("application/vnd.api+json; charset=utf-8", "application/json"),
    ("application/something+", ""),
    ("application", ""),
    ("/json", ""),
    ("application/", ""),
    ("a/b/c", ""),
    ("", ""),
])
def test_normalize_media_type(content_type, expected):
    assert normalize_media_type(content_type) == expected


@pytest.mark.parametrize("content_type", [
    "text/plain",
    "text/csv; charset=utf-8",
    "application/json",
    "application/problem+json",
    "application/xml",
    "application/atom+xml",
    "application/yaml",
    "application/x-yaml",
])
def test_textual(content_type):
    assert is_textual(content_type)


@pytest.mark.parametrize("content_type", [
    "application/octet-stream",
    "image/png",
    "application/zip",
    "application/something+",
    "",
])
def test_not_textual(content_type):
    assert not is_textual(content_type)
