"""Reference snapshots of the interactive elements on a page.

A snapshot tags every interactive element with a `data-moocs-ref` attribute
and records a short description of it. Callers read the rendered listing,
pick references, and later hand those references back to the submission
pipeline. Once the page navigates the attributes are gone, so references from
an old snapshot no longer resolve.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import yaml
from loguru import logger
from playwright.sync_api import Page

from iniadmoocs.errors import ResolutionError

REF_ATTRIBUTE = "data-moocs-ref"

_INTERACTIVE_SELECTOR = (
    "a[href], button, input, select, textarea, summary, label[for], "
    "[role=button], [role=link], [role=checkbox], [role=radio], [role=tab], "
    "[role=menuitem], [role=textbox], [role=combobox], [contenteditable=true]"
)

_CAPTURE_SCRIPT = """
([prefix, attribute, selector]) => {
  for (const el of document.querySelectorAll(`[${attribute}]`))
    el.removeAttribute(attribute);
  const describe = el => {
    const text = el.getAttribute('aria-label')
      || (el.labels && el.labels.length ? el.labels[0].innerText : '')
      || el.innerText
      || el.getAttribute('value')
      || el.getAttribute('placeholder')
      || el.getAttribute('title')
      || el.getAttribute('name')
      || '';
    return text.replace(/\\s+/g, ' ').trim().slice(0, 80);
  };
  const entries = [];
  let index = 0;
  for (const el of document.querySelectorAll(selector)) {
    index += 1;
    const ref = `${prefix}e${index}`;
    el.setAttribute(attribute, ref);
    const tag = el.tagName.toLowerCase();
    entries.push({
      ref,
      role: el.getAttribute('role') || (tag === 'input' ? `input[${el.type}]` : tag),
      name: describe(el),
    });
  }
  return entries;
}
"""


@dataclass(frozen=True)
class SnapshotEntry:
    ref: str
    role: str
    name: str = ""


class Snapshot:
    """Immutable mapping from reference tokens to the elements they tag."""

    def __init__(self, page: Page, generation: int, entries: list[SnapshotEntry], url: str = "", title: str = ""):
        self._page = page
        self.generation = generation
        self.url = url
        self.title = title
        self._entries = {entry.ref: entry for entry in entries}

    def __contains__(self, ref: object) -> bool:
        return ref in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> tuple[SnapshotEntry, ...]:
        return tuple(self._entries.values())

    def resolve(self, ref: str):
        """Return a locator for the element tagged `ref`.

        Raises:
            ResolutionError: If `ref` was not issued by this snapshot, or the
                element it tagged is no longer on the page.
        """
        if ref not in self._entries:
            raise ResolutionError(f"Reference {ref!r} not found in the current snapshot (generation {self.generation}).")
        locator = self._page.locator(f'[{REF_ATTRIBUTE}="{ref}"]')
        if locator.count() == 0:
            raise ResolutionError(
                f"Reference {ref!r} is stale: the page changed since the snapshot was taken. Capture a new snapshot."
            )
        return locator.first

    def render(self) -> str:
        """YAML listing of the page and its references, for humans and agents."""
        document = {
            "url": self.url,
            "title": self.title,
            "elements": [
                {"ref": entry.ref, "role": entry.role, "name": entry.name} for entry in self._entries.values()
            ],
        }
        return yaml.safe_dump(document, allow_unicode=True, sort_keys=False)


def capture_snapshot(page: Page, generation: int) -> Snapshot:
    """Tag the interactive elements of `page` and return a new snapshot."""
    raw: list[dict[str, Any]] = page.evaluate(
        _CAPTURE_SCRIPT, [f"s{generation}", REF_ATTRIBUTE, _INTERACTIVE_SELECTOR]
    )
    entries = [SnapshotEntry(ref=item["ref"], role=item.get("role", ""), name=item.get("name", "")) for item in raw]
    logger.debug(f"Captured snapshot s{generation} with {len(entries)} elements at {page.url}")
    return Snapshot(page, generation, entries, url=page.url, title=page.title())
