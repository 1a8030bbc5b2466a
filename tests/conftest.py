"""Shared fixtures: small inline TTML documents."""
import pytest

NAMESPACES = (
    'xmlns="http://www.w3.org/ns/ttml" '
    'xmlns:tts="http://www.w3.org/ns/ttml#styling" '
    'xmlns:ttp="http://www.w3.org/ns/ttml#parameter"'
)


def build_ttml(body: str, head: str = "", root_attrs: str = 'xml:lang="en"') -> bytes:
    return (
        f'<?xml version="1.0" encoding="UTF-8"?>'
        f'<tt {NAMESPACES} {root_attrs}>'
        f'<head>{head}</head>'
        f'<body>{body}</body>'
        f'</tt>'
    ).encode("utf-8")


REGION_HEAD = (
    '<styling>'
    '<style xml:id="s1" tts:color="#00FF00"/>'
    '</styling>'
    '<layout>'
    '<region xml:id="r1" tts:origin="10% 80%" tts:extent="80% 10%"/>'
    '</layout>'
)


@pytest.fixture
def make_ttml():
    """Returns the document builder so tests can vary body, head and root attributes."""
    return build_ttml


@pytest.fixture
def simple_document():
    """One region, one style, two overlapping paragraphs."""
    return build_ttml(
        '<div region="r1">'
        '<p begin="00:00:00.000" end="00:00:02.000">A</p>'
        '<p begin="00:00:01.000" end="00:00:03.000" style="s1">B</p>'
        '</div>',
        head=REGION_HEAD,
    )


@pytest.fixture
def region_head():
    """Head with style 's1' (green) and region 'r1' at 10%/80%, 80% x 10%."""
    return REGION_HEAD
