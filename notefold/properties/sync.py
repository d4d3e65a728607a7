"""Write aggregated properties back into one target document's header.

The synchronizer is split the same way as every other write path:
- compute: resolve the target, check opt-outs, diff against its header
- execute: one read-modify-write of the header, guarded against re-entry

A pass that computes zero changes performs zero writes, so a write that
triggers a rescan settles after one extra pass.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Mapping

import yaml
from frontmatter.default_handlers import YAMLHandler

from ..config import NotefoldConfig
from ..errors import DocumentReadError, DocumentWriteError
from ..models import AggregatedEntry, Document, HeaderMap, SyncContext
from ..vault.parser import format_bracket_link, split_header
from ..vault.store import DocumentStore
from .aggregate import Aggregated, aggregate_properties

logger = logging.getLogger(__name__)

_yaml = YAMLHandler()


class GuardState(str, Enum):
    IDLE = "idle"
    IN_FLIGHT = "in_flight"


class SyncGuard:
    """Two-state re-entry guard owned by one synchronizer.

    IDLE -> IN_FLIGHT on a successful `try_acquire()`; IN_FLIGHT -> IDLE on
    `release()`. Acquiring while IN_FLIGHT fails; releasing while IDLE is a bug.
    """

    def __init__(self) -> None:
        self.state = GuardState.IDLE

    @property
    def in_flight(self) -> bool:
        return self.state is GuardState.IN_FLIGHT

    def try_acquire(self) -> bool:
        if self.state is GuardState.IN_FLIGHT:
            return False
        self.state = GuardState.IN_FLIGHT
        return True

    def release(self) -> None:
        if self.state is not GuardState.IN_FLIGHT:
            raise RuntimeError("SyncGuard released while idle")
        self.state = GuardState.IDLE


@dataclass
class SyncPlan:
    """What a sync pass would write. Empty `changes` means nothing to do."""

    target: Document | None
    changes: dict[str, Any] = field(default_factory=dict)
    skipped: str | None = None  # reason the pass was aborted

    def summary(self) -> str:
        if self.target is None:
            return "No sync target resolved"
        if self.skipped:
            return f"Skipped {self.target.path}: {self.skipped}"
        if not self.changes:
            return f"{self.target.path} is up to date"
        return f"{self.target.path}: update {', '.join(self.changes)}"


def resolve_sync_target(store: DocumentStore, context: SyncContext) -> Document | None:
    """Explicit association, else the hosting document, else the focused one."""
    if context.target:
        target = store.resolve_link_target(context.target, context.source_path or "")
        if target is None:
            target = store.get_document(context.target)
        if target is not None:
            return target
        logger.debug(f"Sync target {context.target!r} did not resolve")
    if context.source_path:
        target = store.get_document(context.source_path)
        if target is not None:
            return target
    if context.focused_path:
        return store.get_document(context.focused_path)
    return None


def sync_blocked_reason(document: Document, header: HeaderMap, config: NotefoldConfig) -> str | None:
    """Reason the document must not receive a sync, or None."""
    flag = header.get(config.opt_out_key)
    if flag is True or (isinstance(flag, str) and flag.strip().lower() in ("true", "yes")):
        return f"opted out via {config.opt_out_key}"
    if re.search(config.template_pattern, document.path, re.IGNORECASE):
        return "template document"
    return None


def format_entry(entry: AggregatedEntry) -> str:
    """Header-writable text of one entry: a bracket-link or the plain value."""
    if entry.link_target is None:
        return entry.display_name
    return format_bracket_link(entry.link_target, entry.display_name)


def compute_write_value(entries: Iterable[AggregatedEntry]) -> str | list[str] | None:
    """Single string for one member, list for several, None for none."""
    values: list[str] = []
    seen: set[str] = set()
    for entry in entries:
        if entry.key in seen:
            continue
        seen.add(entry.key)
        values.append(format_entry(entry))
    if not values:
        return None
    if len(values) == 1:
        return values[0]
    return values


def compute_header_changes(aggregated: Aggregated, header: HeaderMap) -> dict[str, Any]:
    """Keys whose computed value differs from the current header value."""
    changes: dict[str, Any] = {}
    for key, entries in aggregated.items():
        value = compute_write_value(entries)
        if value is None:
            continue
        if header.get(key) == value:
            continue
        changes[key] = value
    return changes


def apply_header_changes(text: str, changes: Mapping[str, Any]) -> str:
    """Return `text` with `changes` applied to its header. The body is untouched."""
    header_text, body = split_header(text)
    metadata: dict[str, Any] = {}
    if header_text is not None and header_text.strip():
        loaded = _yaml.load(header_text)
        if loaded is not None:
            if not isinstance(loaded, dict):
                raise ValueError("header is not a mapping")
            metadata = loaded
    metadata.update(changes)
    dumped = _yaml.export(metadata, sort_keys=False)
    return f"---\n{dumped}\n---\n{body}"


class FrontmatterSynchronizer:
    """Syncs aggregated properties into the header of the context's target."""

    def __init__(
        self,
        store: DocumentStore,
        context: SyncContext,
        config: NotefoldConfig | None = None,
        guard: SyncGuard | None = None,
    ):
        self.store = store
        self.context = context
        self.config = config or NotefoldConfig()
        self.guard = guard or SyncGuard()

    def resolve_target(self) -> Document | None:
        return resolve_sync_target(self.store, self.context)

    async def compute_plan(self, aggregated: Aggregated) -> SyncPlan:
        """Diagnostic phase: no side effects."""
        target = self.resolve_target()
        if target is None:
            return SyncPlan(target=None)
        try:
            header = await self.store.get_header(target)
        except DocumentReadError as e:
            logger.warning(f"Cannot sync into {target.path}: {e.reason}")
            return SyncPlan(target=target, skipped="unreadable")
        reason = sync_blocked_reason(target, header, self.config)
        if reason:
            return SyncPlan(target=target, skipped=reason)
        return SyncPlan(target=target, changes=compute_header_changes(aggregated, header))

    async def execute_plan(self, plan: SyncPlan) -> list[str]:
        """Action phase: one guarded read-modify-write. Returns keys written."""
        if plan.target is None or plan.skipped or not plan.changes:
            return []
        if not self.guard.try_acquire():
            logger.debug(f"Sync into {plan.target.path} already in flight")
            return []
        try:
            return await self._write(plan.target, plan.changes)
        finally:
            self.guard.release()

    async def _write(self, target: Document, changes: dict[str, Any]) -> list[str]:
        try:
            text = await self.store.read_fresh(target)
        except DocumentReadError as e:
            logger.warning(f"Cannot sync into {target.path}: {e.reason}")
            return []

        header_text, _body = split_header(text)
        try:
            current = (_yaml.load(header_text) if header_text else None) or {}
        except yaml.YAMLError as e:
            logger.warning(f"Cannot sync into {target.path}: malformed header: {e}")
            return []
        if not isinstance(current, dict):
            logger.warning(f"Cannot sync into {target.path}: header is not a mapping")
            return []

        # The header may have moved on since the plan was computed
        pending = {k: v for k, v in changes.items() if current.get(k) != v}
        if not pending:
            return []

        updated = apply_header_changes(text, pending)
        try:
            await self.store.write_full(target, updated)
        except DocumentWriteError as e:
            logger.error(f"Sync write failed: {e}")
            return []
        logger.info(f"Synced {', '.join(pending)} into {target.path}")
        return list(pending)

    async def sync(self, aggregated: Aggregated) -> list[str]:
        plan = await self.compute_plan(aggregated)
        return await self.execute_plan(plan)


class Rollup:
    """Aggregate the corpus and sync the result into the context's target.

    The target document is left out of its own aggregation, and the opt-out
    key is never aggregated, so written values do not feed the next pass.
    """

    def __init__(
        self,
        store: DocumentStore,
        context: SyncContext,
        config: NotefoldConfig | None = None,
    ):
        self.store = store
        self.config = config or NotefoldConfig()
        self.synchronizer = FrontmatterSynchronizer(store, context, self.config)

    async def aggregate(self) -> Aggregated:
        target = self.synchronizer.resolve_target()
        return await aggregate_properties(
            self.store,
            exclude_keys=(*self.config.exclude_keys, self.config.opt_out_key),
            exclude_paths=[target.path] if target else [],
        )

    async def plan(self) -> SyncPlan:
        return await self.synchronizer.compute_plan(await self.aggregate())

    async def refresh(self) -> list[str]:
        return await self.synchronizer.sync(await self.aggregate())
