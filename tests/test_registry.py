"""Tests for the process-wide decorator registry."""

import threading
import time

import pytest

from atomviz import (
    AtomColor,
    DecoratorRegistry,
    DecoratorSet,
    Flag,
    Orientation,
    default_registry,
)

COMPANY_DECORATORS = DecoratorSet.of(
    Orientation(selector="employees", directions=("below",)),
    Flag(name="hideDisconnected"),
)


class CountingSource:
    """A type decorator source recording how often it runs."""

    def __init__(self, result: DecoratorSet = COMPANY_DECORATORS, delay: float = 0.0) -> None:
        self.result = result
        self.delay = delay
        self.calls = 0
        self._lock = threading.Lock()

    def __call__(self) -> DecoratorSet:
        with self._lock:
            self.calls += 1
        if self.delay:
            time.sleep(self.delay)
        return self.result


class TestRegister:
    def test_register_returns_built_set(self) -> None:
        registry = DecoratorRegistry()
        assert registry.register("Company", CountingSource()) == COMPANY_DECORATORS

    def test_build_fn_runs_once(self) -> None:
        registry = DecoratorRegistry()
        source = CountingSource()

        results = [registry.register("Company", source) for _ in range(3)]

        assert source.calls == 1
        assert results[0] is results[1] is results[2]

    def test_later_build_fn_is_ignored(self) -> None:
        registry = DecoratorRegistry()
        registry.register("Company", CountingSource())
        other = CountingSource(result=DecoratorSet.of(AtomColor(selector="name", value="red")))

        assert registry.register("Company", other) == COMPANY_DECORATORS
        assert other.calls == 0

    def test_build_fn_may_return_iterable(self) -> None:
        registry = DecoratorRegistry()
        flag = Flag(name="f")
        result = registry.register("T", lambda: [flag])
        assert result == DecoratorSet.of(flag)

    def test_failing_build_fn_leaves_entry_unregistered(self) -> None:
        registry = DecoratorRegistry()

        def broken() -> DecoratorSet:
            msg = "boom"
            raise RuntimeError(msg)

        with pytest.raises(RuntimeError, match="boom"):
            registry.register("Company", broken)
        assert registry.lookup("Company") is None

        assert registry.register("Company", CountingSource()) == COMPANY_DECORATORS

    def test_names_are_independent(self) -> None:
        registry = DecoratorRegistry()
        registry.register("Company", CountingSource())
        registry.register("Person", lambda: DecoratorSet())

        assert registry.lookup("Company") == COMPANY_DECORATORS
        assert registry.lookup("Person") == DecoratorSet()
        assert registry.type_names() == ["Company", "Person"]


class TestConcurrentRegister:
    def test_racing_threads_build_once(self) -> None:
        registry = DecoratorRegistry()
        source = CountingSource(delay=0.02)
        n_threads = 8
        barrier = threading.Barrier(n_threads)
        results: list[DecoratorSet] = []
        results_lock = threading.Lock()

        def worker() -> None:
            barrier.wait()
            result = registry.register("Company", source)
            with results_lock:
                results.append(result)

        threads = [threading.Thread(target=worker) for _ in range(n_threads)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert source.calls == 1
        assert len(results) == n_threads
        assert all(result is results[0] for result in results)

    def test_racing_threads_on_different_names(self) -> None:
        registry = DecoratorRegistry()
        sources = {f"T{i}": CountingSource(delay=0.005) for i in range(4)}
        barrier = threading.Barrier(len(sources) * 2)

        def worker(name: str) -> None:
            barrier.wait()
            registry.register(name, sources[name])

        threads = [threading.Thread(target=worker, args=(name,)) for name in sources for _ in range(2)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert all(source.calls == 1 for source in sources.values())
        assert len(registry) == len(sources)


class TestLookup:
    def test_lookup_unregistered(self) -> None:
        registry = DecoratorRegistry()
        assert registry.lookup("Company") is None
        assert "Company" not in registry
        assert len(registry) == 0

    def test_entry_reflects_state(self) -> None:
        registry = DecoratorRegistry()
        assert registry.entry("Company") is None

        registry.register("Company", CountingSource())
        entry = registry.entry("Company")
        assert entry is not None
        assert entry.type_name == "Company"
        assert entry.registered is True
        assert entry.decorator_set == COMPANY_DECORATORS

    def test_contains_and_len(self) -> None:
        registry = DecoratorRegistry()
        registry.register("Company", CountingSource())
        assert "Company" in registry
        assert 42 not in registry
        assert len(registry) == 1

    def test_clear(self) -> None:
        registry = DecoratorRegistry()
        registry.register("Company", CountingSource())
        registry.clear()
        assert registry.lookup("Company") is None


def test_default_registry_is_a_registry() -> None:
    assert isinstance(default_registry, DecoratorRegistry)
