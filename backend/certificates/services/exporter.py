"""A4 PDF export of a rendered certificate body.

The renderer produces HTML. BeautifulSoup splits it into blocks (paragraphs,
headings, list items), inline bold/italic/underline is kept as reportlab
paragraph markup, and platypus flows the blocks onto as many pages as needed.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from io import BytesIO
from typing import Dict, Iterable, List, Optional
from xml.sax.saxutils import escape

from bs4 import BeautifulSoup
from bs4.element import Comment, Doctype, NavigableString, Tag
from django.conf import settings
from reportlab.lib.enums import TA_CENTER, TA_JUSTIFY, TA_LEFT, TA_RIGHT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer

logger = logging.getLogger(__name__)

PAGE_MARGIN = 20 * mm
BODY_FONT = 'Helvetica'
BODY_FONT_SIZE = 12
BODY_LEADING = 18
PARAGRAPH_GAP = 8
PX_TO_PT = 0.75

BODY = 'body'
HEADING_STYLES = {f'h{level}': f'Heading{level}' for level in range(1, 7)}
BLOCK_TAGS = ['p', 'div', 'li', 'blockquote'] + list(HEADING_STYLES)
SKIPPED_TAGS = ('script', 'style', 'head', 'title')
INLINE_TAGS = {
    'b': 'b', 'strong': 'b',
    'i': 'i', 'em': 'i',
    'u': 'u',
    'sup': 'super', 'sub': 'sub',
}
ALIGNMENTS = {'left': TA_LEFT, 'center': TA_CENTER, 'right': TA_RIGHT, 'justify': TA_JUSTIFY}

_SPACES_RE = re.compile(r'\s+')
_MARKUP_TAG_RE = re.compile(r'<[^>]+>')
_ALIGN_RE = re.compile(r'text-align\s*:\s*(left|center|right|justify)', re.IGNORECASE)
_MARGIN_TOP_RE = re.compile(r'margin-top\s*:\s*(\d+(?:\.\d+)?)px', re.IGNORECASE)


@dataclass(frozen=True)
class Block:
    """One paragraph of certificate text in reportlab paragraph markup."""
    style: str
    markup: str
    align: Optional[str] = None
    space_before: float = 0


def _inline_markup(nodes: Iterable) -> str:
    parts = []
    for node in nodes:
        if isinstance(node, (Comment, Doctype)):
            continue
        if isinstance(node, NavigableString):
            parts.append(escape(_SPACES_RE.sub(' ', str(node))))
        elif not isinstance(node, Tag) or node.name in SKIPPED_TAGS:
            continue
        elif node.name == 'br':
            parts.append('<br/>')
        elif node.name in INLINE_TAGS:
            tag = INLINE_TAGS[node.name]
            parts.append(f'<{tag}>{_inline_markup(node.children)}</{tag}>')
        else:
            parts.append(_inline_markup(node.children))
    return ''.join(parts)


def _alignment(tag: Optional[Tag]) -> Optional[str]:
    if tag is None:
        return None
    match = _ALIGN_RE.search(tag.get('style', ''))
    if match:
        return match.group(1).lower()
    align = (tag.get('align') or '').lower()
    return align if align in ALIGNMENTS else None


def _space_before(tag: Optional[Tag]) -> float:
    if tag is None:
        return 0
    match = _MARGIN_TOP_RE.search(tag.get('style', ''))
    return float(match.group(1)) * PX_TO_PT if match else 0


def _add_block(blocks: List[Block], nodes, tag: Optional[Tag] = None):
    markup = _inline_markup(nodes).strip()
    if not _MARKUP_TAG_RE.sub('', markup).strip():
        return
    name = tag.name if tag is not None else None
    if name == 'li':
        markup = '• ' + markup
    blocks.append(Block(
        style=HEADING_STYLES.get(name, BODY),
        markup=markup,
        align=_alignment(tag),
        space_before=_space_before(tag),
    ))


def _collect(parent: Tag, blocks: List[Block]):
    loose = []
    for node in parent.children:
        if isinstance(node, Tag) and node.name in SKIPPED_TAGS:
            continue
        if isinstance(node, Tag) and (node.name in BLOCK_TAGS or node.find(BLOCK_TAGS)):
            _add_block(blocks, loose)
            loose = []
            if node.find(BLOCK_TAGS):
                _collect(node, blocks)
            else:
                _add_block(blocks, node.children, node)
        else:
            loose.append(node)
    _add_block(blocks, loose)


def html_to_blocks(body: str) -> List[Block]:
    """Split certificate HTML into paragraph blocks; unknown tags keep only their text."""
    blocks: List[Block] = []
    _collect(BeautifulSoup(body or '', 'html.parser'), blocks)
    return blocks


def _stylesheet() -> Dict[str, ParagraphStyle]:
    sample = getSampleStyleSheet()
    styles = {name: sample[name] for name in HEADING_STYLES.values()}
    styles[BODY] = ParagraphStyle(
        'CertificateBody',
        parent=sample['Normal'],
        fontName=BODY_FONT,
        fontSize=BODY_FONT_SIZE,
        leading=BODY_LEADING,
    )
    styles['institution'] = ParagraphStyle(
        'Institution',
        parent=sample['Title'],
        fontSize=14,
        spaceAfter=12,
    )
    return styles


def _aligned(styles: Dict[str, ParagraphStyle], block: Block) -> ParagraphStyle:
    base = styles[block.style]
    if block.align is None:
        return base
    key = f'{block.style}:{block.align}'
    if key not in styles:
        styles[key] = ParagraphStyle(f'{base.name}-{block.align}', parent=base, alignment=ALIGNMENTS[block.align])
    return styles[key]


def export_pdf(body: str, title: Optional[str] = None) -> bytes:
    """Lay `body` out on as many A4 pages as it needs and return the PDF bytes."""
    blocks = html_to_blocks(body)
    if not blocks:
        raise ValueError('Certificate content is empty, cannot generate PDF.')

    buf = BytesIO()
    doc = SimpleDocTemplate(
        buf,
        pagesize=A4,
        leftMargin=PAGE_MARGIN,
        rightMargin=PAGE_MARGIN,
        topMargin=PAGE_MARGIN,
        bottomMargin=PAGE_MARGIN,
        title=title or '',
    )
    styles = _stylesheet()

    story = []
    header = getattr(settings, 'BONAFIDE_INSTITUTION_NAME', '')
    if header:
        story.append(Paragraph(escape(header), styles['institution']))

    for block in blocks:
        if block.space_before:
            story.append(Spacer(1, block.space_before))
        story.append(Paragraph(block.markup, _aligned(styles, block)))
        story.append(Spacer(1, PARAGRAPH_GAP))

    doc.build(story)
    logger.debug('Exported certificate PDF: pages=%d title=%s', doc.page, title)
    return buf.getvalue()
