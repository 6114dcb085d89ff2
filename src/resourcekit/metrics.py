"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Counter sinks for cache and register instrumentation.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol


class CounterSink(Protocol):
    """Minimal metrics interface used by the cache layer."""

    def incr(
        self, name: str, value: int = 1, *, tags: Mapping[str, str] | None = None
    ) -> None:
        """Increment a counter metric."""


class NoOpCounterSink:
    """Default metrics sink when no metrics backend is provided."""

    def incr(
        self, name: str, value: int = 1, *, tags: Mapping[str, str] | None = None
    ) -> None:
        _ = name
        _ = value
        _ = tags


class InMemoryCounterSink:
    """Process-local counters, handy for tests and debug endpoints."""

    def __init__(self) -> None:
        self.counts: dict[tuple[str, tuple[tuple[str, str], ...]], int] = {}

    def incr(
        self, name: str, value: int = 1, *, tags: Mapping[str, str] | None = None
    ) -> None:
        key = (name, tuple(sorted((tags or {}).items())))
        self.counts[key] = self.counts.get(key, 0) + value

    def total(self, name: str) -> int:
        return sum(count for (metric, _), count in self.counts.items() if metric == name)


class PrometheusCounterSink:
    """
    Export resourcekit counters as Prometheus ``<namespace>_<name>_total``.

    Each counter name is bound to the tag names of its first increment;
    a later increment with different tag names raises ``ValueError``
    because Prometheus fixes label names at registration.

    Requires `prometheus_client` package.
    """

    def __init__(self, *, namespace: str = "resourcekit", registry=None) -> None:
        try:
            from prometheus_client import REGISTRY, Counter
        except ModuleNotFoundError as exc:  # pragma: no cover
            raise RuntimeError(
                "PrometheusCounterSink requires `prometheus_client` to be installed."
            ) from exc

        self._Counter = Counter
        self._namespace = namespace
        self._registry = registry if registry is not None else REGISTRY
        self._counters: dict[str, tuple[tuple[str, ...], Any]] = {}

    def _counter(self, name: str, label_names: tuple[str, ...]) -> Any:
        known = self._counters.get(name)
        if known is not None:
            bound_labels, counter = known
            if bound_labels != label_names:
                raise ValueError(
                    f"Counter {name!r} uses labels {bound_labels}, got {label_names}"
                )
            return counter
        counter = self._Counter(
            name=name,
            documentation=f"resourcekit {name.replace('_', ' ')} count",
            namespace=self._namespace,
            labelnames=label_names,
            registry=self._registry,
        )
        self._counters[name] = (label_names, counter)
        return counter

    def incr(
        self, name: str, value: int = 1, *, tags: Mapping[str, str] | None = None
    ) -> None:
        tags = tags or {}
        label_names = tuple(sorted(tags))
        counter = self._counter(name, label_names)
        if label_names:
            counter.labels(**{label: str(tags[label]) for label in label_names}).inc(value)
        else:
            counter.inc(value)
