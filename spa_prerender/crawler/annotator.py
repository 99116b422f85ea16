"""
DOM annotator for server-side rendering markers.

Labels rendered markup so a client-side runtime can re-attach to
pre-rendered nodes instead of re-creating them:

- ``ssrv`` on every component (element carrying the marker class): a
  counter assigned level by level, siblings before children.
- ``ssrc`` on every element under ``<body>``: ``"<componentId>.<childIdx>"``
  with a trailing ``.`` when no component is nested below the element.
- ``ssr`` on ``<html>``: the render timestamp.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional, Set

from bs4 import BeautifulSoup, FeatureNotFound, Tag

from ..utils.constants import DEFAULT_MARKER_CLASS, DEFAULT_TRANSPARENT_TAG
from ..utils.log import get_logger


SSR_VALUE_ATTR = "ssrv"
SSR_COORDINATE_ATTR = "ssrc"
SSR_TIMESTAMP_ATTR = "ssr"


@dataclass
class AnnotationContext:
    """State of a single annotation run."""

    marker_class: str = DEFAULT_MARKER_CLASS
    transparent_tag: str = DEFAULT_TRANSPARENT_TAG
    counter: int = 0
    # id(tag) -> assigned ssrv
    ids: Dict[int, int] = field(default_factory=dict)

    def is_component(self, node: Tag) -> bool:
        classes = node.get("class") or []
        if isinstance(classes, str):
            classes = classes.split()
        return self.marker_class in classes

    def assign(self, node: Tag) -> int:
        value = self.counter
        self.counter += 1
        self.ids[id(node)] = value
        return value

    def component_id(self, node: Tag) -> Optional[int]:
        return self.ids.get(id(node))


def format_timestamp(moment: Optional[datetime] = None) -> str:
    """
    Format a moment as a sortable UTC timestamp.

    Example: ``2024-05-01T12:30:00.250Z``.
    """
    moment = moment or datetime.now(timezone.utc)
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def element_children(node: Tag) -> List[Tag]:
    """Return the element children of a node, skipping text and comments."""
    return [child for child in node.children if isinstance(child, Tag)]


def child_indices(nodes: List[Tag]) -> Dict[int, int]:
    """
    Map ``id(node)`` to the node's position among its parent's element
    children, for every node in ``nodes``.

    Each parent's children are enumerated once.
    """
    indices: Dict[int, int] = {}
    for node in nodes:
        if id(node) in indices:
            continue
        # Identity, not equality: bs4 compares tags structurally
        for idx, sibling in enumerate(element_children(node.parent)):
            indices[id(sibling)] = idx
    return indices


def closest_component(node: Optional[Tag], ctx: AnnotationContext) -> Optional[Tag]:
    """Nearest component among ``node`` and its ancestors."""
    while isinstance(node, Tag):
        if ctx.is_component(node):
            return node
        node = node.parent
    return None


def nested_components(nodes: List[Tag], ctx: AnnotationContext) -> Set[int]:
    """
    Ids of the nodes in ``nodes`` with a component nested below them.

    ``nodes`` must be in document order. The transparent tag never counts
    as a component itself, but its own children are still scanned.
    """
    nested: Set[int] = set()
    # Children come after their parent in document order
    for node in reversed(nodes):
        for child in element_children(node):
            counts = child.name != ctx.transparent_tag and ctx.is_component(child)
            if counts or id(child) in nested:
                nested.add(id(node))
                break
    return nested


def assign_component_ids(body: Tag, ctx: AnnotationContext) -> None:
    """
    Stamp ``ssrv`` on every component below ``body``.

    Walks level by level so all components of one depth are numbered before
    any component one level deeper. Non-components are descended into.
    """
    level = element_children(body)
    while level:
        next_level: List[Tag] = []
        for node in level:
            if ctx.is_component(node):
                node[SSR_VALUE_ATTR] = str(ctx.assign(node))
            elif SSR_VALUE_ATTR in node.attrs:
                # stale marker from a previous annotation
                del node[SSR_VALUE_ATTR]
            next_level.extend(element_children(node))
        level = next_level


def parent_component_id(node: Tag, ctx: AnnotationContext) -> str:
    """
    Component id a node's coordinate is relative to.

    Prefers the nearest component above the node; a top-level component
    falls back to its own id. Nodes outside every component get ``""``.
    """
    for start in (node.parent, node):
        component = closest_component(start, ctx)
        if component is not None:
            value = ctx.component_id(component)
            if value is not None:
                return str(value)
    return ""


def assign_coordinates(body: Tag, ctx: AnnotationContext) -> None:
    """Stamp ``ssrc`` on every element below ``body``, in document order."""
    nodes = body.find_all(True)
    indices = child_indices(nodes)
    nested = nested_components(nodes, ctx)
    for node in nodes:
        coordinate = f"{parent_component_id(node, ctx)}.{indices[id(node)]}"
        if id(node) not in nested:
            coordinate += "."
        node[SSR_COORDINATE_ATTR] = coordinate


class DomAnnotator:
    """
    Applies server-side rendering attributes to rendered HTML.

    Each call is independent: counters never carry over between pages.
    """

    def __init__(
        self,
        marker_class: str = DEFAULT_MARKER_CLASS,
        transparent_tag: str = DEFAULT_TRANSPARENT_TAG
    ):
        """
        Initialize the annotator.

        Args:
            marker_class: Class that marks a component
            transparent_tag: Tag ignored when looking for nested components
        """
        self.marker_class = marker_class
        self.transparent_tag = transparent_tag
        self.logger = get_logger("annotator")

    def annotate(self, html: str, now: Optional[datetime] = None) -> str:
        """
        Annotate HTML with ``ssrv``, ``ssrc`` and ``ssr`` attributes.

        Args:
            html: Rendered HTML document
            now: Moment stamped on ``<html>`` (default: current time)

        Returns:
            Annotated HTML document
        """
        try:
            soup = BeautifulSoup(html, 'lxml')
        except FeatureNotFound:
            soup = BeautifulSoup(html, 'html.parser')

        ctx = AnnotationContext(
            marker_class=self.marker_class,
            transparent_tag=self.transparent_tag
        )

        body = soup.body
        if body is not None:
            assign_component_ids(body, ctx)
            assign_coordinates(body, ctx)
        else:
            self.logger.debug("No <body> found, skipping component markers")

        root = soup.find('html')
        if root is not None:
            root[SSR_TIMESTAMP_ATTR] = format_timestamp(now)

        self.logger.debug(f"Annotated {ctx.counter} components")
        return str(soup)


def annotate(
    html: str,
    marker_class: str = DEFAULT_MARKER_CLASS,
    transparent_tag: str = DEFAULT_TRANSPARENT_TAG,
    now: Optional[datetime] = None
) -> str:
    """Annotate HTML with a one-off DomAnnotator."""
    return DomAnnotator(marker_class, transparent_tag).annotate(html, now=now)
