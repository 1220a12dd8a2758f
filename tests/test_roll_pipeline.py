"""
Tests for the roll pipeline and store/reuse coordination.

Covers:
- Draw, filter, fetch and nested resolution of a single table
- Weighted-range tables rolled with 2d6
- Shared draws between store and reuse tables
- Cache cleanup ordering
- Error propagation and unbounded self-reference
"""

import pytest

from rolltables.observability.run_log import get_run_log
from rolltables.tables import (
    InvalidReferenceError,
    RollResult,
    TableNotFoundError,
    draw_table,
    evaluate,
    roll_table,
)


def fixed_roller(*faces):
    """A roller that always returns the same dice."""
    return lambda data: list(faces)


class TestRollTable:
    """Tests for evaluating a single table."""

    def test_roller_selects_row(self, registry, ctx):
        registry.register("Weather", ["Rain", "Fog", "Clear"], roller=fixed_roller(2))
        assert roll_table("Weather", ctx) == "Fog"

    def test_default_table_returns_an_entry(self, registry, ctx):
        entries = ("Rain", "Fog", "Clear")
        registry.register("Weather", entries)
        for _ in range(50):
            assert roll_table("Weather", ctx) in entries

    def test_definition_reference(self, registry, ctx):
        registry.register("Weather", ["Rain"])
        assert roll_table(registry.lookup("Weather"), ctx) == "Rain"

    def test_integer_reference_is_literal(self, ctx):
        assert roll_table(7, ctx) == "7"

    def test_nested_entries_are_resolved(self, registry, ctx):
        registry.register("Colour", ["grey"])
        registry.register("Sky", ["A ${Colour} sky with ${3d1} clouds and ${no such table}"])
        assert roll_table("Sky", ctx) == "A grey sky with 3 clouds and no such table"

    def test_empty_selector_skips_fetch(self, registry, ctx):
        calls = []

        def fetcher(data, selector):
            calls.append(selector)
            return "never"

        registry.register("Quiet", ["a"], filter=lambda raw: None, fetcher=fetcher)
        assert roll_table("Quiet", ctx) == ""
        assert calls == []

    def test_fetcher_miss_is_empty_string(self, registry, ctx):
        registry.register("Short", ["only"], roller=fixed_roller(5))
        assert roll_table("Short", ctx) == ""

    def test_empty_table(self, registry, ctx):
        registry.register("Nothing", [])
        assert roll_table("Nothing", ctx) == ""

    def test_custom_fetcher_non_string_entry(self, registry, ctx):
        registry.register("Count", ["x"], fetcher=lambda data, selector: selector.as_int() * 10)
        assert roll_table("Count", ctx) == "10"

    def test_filter_receives_roll_result(self, registry, ctx):
        seen = []

        def record(raw):
            seen.append(raw)
            return raw.values[-1]

        registry.register("Last", ["a", "b", "c"], roller=fixed_roller(3, 1), filter=record)
        assert roll_table("Last", ctx) == "a"
        assert seen == [RollResult.sequence([3, 1])]

    def test_lookup_is_logged(self, registry, ctx, reset_logs):
        registry.register("Weather", ["Rain", "Fog"], roller=fixed_roller(2))
        roll_table("Weather", ctx)

        lookups = get_run_log().get_table_lookups()
        assert len(lookups) == 1
        assert lookups[0].table_name == "Weather"
        assert lookups[0].raw_rolls == [2]
        assert lookups[0].selector == 2
        assert lookups[0].result_text == "Fog"


class TestWeightedRanges:
    """A 2d6 table keyed by explicit values."""

    @pytest.fixture
    def weighted(self, registry):
        def register(faces):
            registry.register(
                "Reaction",
                [([2], "A"), ([3, 4, 5], "B")],
                roller=fixed_roller(*faces),
            )

        return register

    @pytest.mark.parametrize(
        "faces, expected",
        [
            ((1, 1), "A"),
            ((1, 2), "B"),
            ((2, 2), "B"),
            ((4, 1), "B"),
            ((3, 3), ""),
            ((6, 6), ""),
        ],
    )
    def test_sum_maps_to_entry(self, weighted, ctx, faces, expected):
        weighted(faces)
        assert roll_table("Reaction", ctx) == expected

    def test_real_dice_stay_in_table(self, registry, ctx):
        from rolltables.tables import dice_roller

        registry.register("Reaction", [([2], "A"), ([3, 4, 5], "B")], roller=dice_roller("2d6"))
        results = {roll_table("Reaction", ctx) for _ in range(1000)}
        assert results == {"A", "B", ""}

    def test_list_pairs_match_tuple_pairs(self, registry, ctx):
        """Pairs written as lists, as they come out of JSON, are ranges too."""
        registry.register("Reaction", [[[2], "A"], [[3, 4, 5], "B"]], roller=fixed_roller(1, 1))
        assert roll_table("Reaction", ctx) == "A"


class TestStoreAndReuse:
    """Tests for tables sharing one raw draw."""

    @pytest.fixture
    def shared(self, registry):
        """X stores a counted 2d6 draw; Y and Z reuse it with their own behaviour."""
        state = {"draws": 0, "seen": []}

        def counted_roller(data):
            state["draws"] += 1
            return [state["draws"] + 1, 4]

        def record(label, result):
            def filter_fn(raw):
                state["seen"].append((label, raw.values))
                return result(raw)
            return filter_fn

        registry.register("X", ["unused"], roller=counted_roller, store=True, private=True)
        registry.register(
            "Y",
            ["no", "yes"],
            reuse="X",
            filter=record("Y", lambda raw: 1 + raw.total() % 2),
        )
        registry.register(
            "Z",
            [(range(1, 7), "calm"), (range(7, 13), "twist")],
            reuse="X",
            filter=record("Z", lambda raw: raw.total()),
        )
        return state

    def test_reuse_tables_share_one_draw(self, ctx, shared):
        result = evaluate("${Y}${Z}", ctx)

        assert shared["draws"] == 1
        assert shared["seen"] == [("Y", (2, 4)), ("Z", (2, 4))]
        assert result == "no" + "calm"

    def test_cache_is_empty_after_evaluation(self, ctx, shared):
        evaluate("${Y} ${Z}", ctx)
        assert len(ctx.cache) == 0

    def test_separate_evaluations_draw_again(self, ctx, shared):
        evaluate("${Y}", ctx)
        evaluate("${Z}", ctx)
        assert shared["draws"] == 2
        assert shared["seen"] == [("Y", (2, 4)), ("Z", (3, 4))]

    def test_cleanup_releases_only_evaluated_table(self, ctx, shared):
        roll_table("Y", ctx)
        assert "X" in ctx.cache
        assert "Y" not in ctx.cache

        roll_table("Z", ctx)
        assert shared["draws"] == 1

        roll_table("X", ctx)
        assert "X" not in ctx.cache
        assert shared["draws"] == 2

    def test_store_table_releases_its_own_slot(self, ctx, shared):
        """Evaluating the store table first frees its slot, so a later reuse draws afresh."""
        evaluate("${X}${Y}", ctx)
        assert shared["draws"] == 2
        assert shared["seen"] == [("Y", (3, 4))]

    def test_draw_table_stores(self, registry, ctx):
        registry.register("X", ["a"], roller=fixed_roller(5), store=True)
        raw = draw_table(registry.lookup("X"), ctx)
        assert raw == RollResult.sequence([5])
        assert ctx.cache.get("X") == raw

    def test_reuse_of_non_store_table_populates_cache(self, registry, ctx):
        draws = []

        def roller(data):
            draws.append(1)
            return [1]

        registry.register("Source", ["a"], roller=roller)
        registry.register("P", ["p"], reuse="Source")
        registry.register("Q", ["q"], reuse="Source")

        assert evaluate("${P}${Q}", ctx) == "pq"
        assert len(draws) == 1

    def test_reuse_chain(self, registry, ctx):
        registry.register("Root", ["a"], roller=fixed_roller(2), store=True)
        registry.register("Middle", ["a"], reuse="Root", store=True)
        registry.register("Leaf", ["first", "second"], reuse="Middle")

        assert roll_table("Leaf", ctx) == "second"
        assert ctx.cache.get("Middle") == RollResult.sequence([2])

    def test_reuse_of_cached_value(self, registry, ctx):
        registry.register("Source", ["a"], roller=fixed_roller(99), store=True)
        registry.register("Reader", ["a", "b", "c"], reuse="Source")
        ctx.cache.put("Source", RollResult.sequence([3]))

        assert roll_table("Reader", ctx) == "c"


class TestFailures:
    """Tests for error propagation."""

    def test_missing_table_raises(self, ctx):
        with pytest.raises(TableNotFoundError):
            roll_table("Nowhere", ctx)

    def test_invalid_reference_raises(self, ctx):
        with pytest.raises(InvalidReferenceError):
            roll_table(2.5, ctx)

    def test_missing_reuse_source_aborts_evaluation(self, registry, ctx):
        registry.register("Orphan", ["a"], reuse="Ghost")
        with pytest.raises(TableNotFoundError):
            evaluate("Before ${Orphan} after", ctx)

    def test_filter_error_propagates_and_releases_slot(self, registry, ctx):
        def broken(raw):
            raise ValueError("bad filter")

        registry.register("Broken", ["a"], store=True, filter=broken)
        with pytest.raises(ValueError, match="bad filter"):
            roll_table("Broken", ctx)
        assert "Broken" not in ctx.cache

    def test_nested_error_propagates(self, registry, ctx):
        registry.register("Orphan", ["a"], reuse="Ghost")
        registry.register("Outer", ["${Orphan}"])
        with pytest.raises(TableNotFoundError):
            evaluate("Outer", ctx)

    def test_self_reference_fails(self, registry, ctx, shallow_recursion):
        registry.register("Loop", ["again ${Loop}"])
        with pytest.raises(RecursionError):
            evaluate("Loop", ctx)

    def test_mutual_reference_fails(self, registry, ctx, shallow_recursion):
        registry.register("Ping", ["${Pong}"])
        registry.register("Pong", ["${Ping}"])
        with pytest.raises(RecursionError):
            evaluate("${Ping}", ctx)
        assert len(ctx.cache) == 0
