"""Rendering of batch results for replies and publish sinks.

Templates live in ``publish/templates/`` and receive the collects grouped by
backend, in the order the backends first appear in the batch:

- ``reply.html``: Telegram (``parse_mode=html``)
- ``reply.md``: GitHub issues
- ``reply.txt``: Mastodon statuses
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

from wayback_relay.core.models import Collect, Slot

logger = logging.getLogger(__name__)

_TEMPLATES_DIR = Path(__file__).parent / "templates"

STYLES: dict[str, str] = {
    "html": "reply.html",
    "markdown": "reply.md",
    "text": "reply.txt",
}


@dataclass
class CollectGroup:
    """Collects of one backend, as passed to the templates."""

    slot: Slot
    name: str
    ext: str
    collects: list[Collect] = field(default_factory=list)


def group_collects(collects: list[Collect]) -> list[CollectGroup]:
    """Group *collects* by slot, keeping first-appearance order."""
    groups: dict[Slot, CollectGroup] = {}
    for collect in collects:
        group = groups.get(collect.slot)
        if group is None:
            group = groups[collect.slot] = CollectGroup(
                slot=collect.slot, name=collect.name, ext=collect.ext
            )
        group.collects.append(collect)
    return list(groups.values())


class Renderer:
    """Renders collects with the Jinja2 template of a given style.

    Args:
        templates_dir: Directory holding the ``reply.*`` templates.
    """

    def __init__(self, templates_dir: Path | None = None) -> None:
        self._env = Environment(
            loader=FileSystemLoader(str(templates_dir or _TEMPLATES_DIR)),
            autoescape=select_autoescape(["html"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def render(self, collects: list[Collect], style: str = "text") -> str:
        """Render *collects* in *style*.

        Args:
            collects: Records of one batch, in any order.
            style: One of :data:`STYLES`.

        Returns:
            The rendered text, stripped of surrounding whitespace.

        Raises:
            ValueError: If *style* is unknown.
        """
        try:
            template_name = STYLES[style]
        except KeyError:
            raise ValueError(f"unknown render style {style!r}; expected one of {sorted(STYLES)}") from None
        template = self._env.get_template(template_name)
        sources = list(dict.fromkeys(c.src for c in collects))
        text = template.render(groups=group_collects(collects), sources=sources)
        return text.strip()
