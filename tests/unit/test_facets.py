"""Tests del compilador de facetas y de los predicados."""

import itertools

import pytest

from conftest import make_franchise, make_idea, sort_rows
from vitrina.catalog import FacetCompiler, Predicate, SortSpec
from vitrina.catalog.predicates import APPROVED_ONLY, NOT_DELETED
from vitrina.models import FacetSelection


@pytest.fixture
def compiler() -> FacetCompiler:
    return FacetCompiler(default_page_size=50)


def _columns(compiled) -> list[str]:
    return [p.column for p in compiled.predicates]


# ---------------------------------------------------------------------------
# Predicate
# ---------------------------------------------------------------------------


class TestPredicate:
    def test_eq(self) -> None:
        assert Predicate("risk_level", "eq", "low").matches({"risk_level": "low"})
        assert not Predicate("risk_level", "eq", "low").matches({"risk_level": "high"})

    def test_gte_and_lte(self) -> None:
        assert Predicate("monthly_income_min", "gte", 100).matches({"monthly_income_min": 100})
        assert not Predicate("monthly_income_min", "gte", 100).matches({"monthly_income_min": 99})
        assert Predicate("investment_min", "lte", 500).matches({"investment_min": 500})

    def test_null_never_matches_comparisons(self) -> None:
        assert not Predicate("monthly_income_min", "gte", 0).matches({"monthly_income_min": None})
        assert not Predicate("investment_min", "lte", 10).matches({})

    def test_is_null(self) -> None:
        assert NOT_DELETED.matches({"deleted_at": None})
        assert not NOT_DELETED.matches({"deleted_at": "2026-01-01T00:00:00+00:00"})

    def test_ilike_is_case_insensitive_substring(self) -> None:
        p = Predicate("title", "ilike", "FLEET")
        assert p.matches({"title": "EV Fleet Charging"})
        assert not p.matches({"title": "Cloud Kitchen"})


class TestPredicateApply:
    """Traducción al query builder de Supabase."""

    class _Recorder:
        def __init__(self):
            self.calls = []

        def __getattr__(self, name):
            def method(*args, **kwargs):
                self.calls.append((name, args, kwargs))
                return self

            return method

    def test_operators_map_to_builder_methods(self) -> None:
        query = self._Recorder()
        Predicate("is_approved", "eq", True).apply(query)
        Predicate("monthly_income_min", "gte", 10).apply(query)
        Predicate("investment_min", "lte", 20).apply(query)
        Predicate("title", "ilike", "tea").apply(query)
        NOT_DELETED.apply(query)

        assert [c[0] for c in query.calls] == ["eq", "gte", "lte", "ilike", "is_"]
        assert query.calls[3][1] == ("title", "%tea%")
        assert query.calls[4][1] == ("deleted_at", "null")

    def test_like_wildcards_are_escaped(self) -> None:
        query = self._Recorder()
        Predicate("title", "ilike", "50%_off").apply(query)

        assert query.calls == [("ilike", ("title", "%50\\%\\_off%"), {})]

    def test_backslash_is_escaped(self) -> None:
        query = self._Recorder()
        Predicate("title", "ilike", "a\\b").apply(query)
        assert query.calls[0][1] == ("title", "%a\\\\b%")

    def test_wildcards_match_literally_in_memory(self) -> None:
        predicate = Predicate("title", "ilike", "50%_off")
        assert predicate.matches({"title": "Combo 50%_OFF"})
        assert not predicate.matches({"title": "50 percent off"})

    def test_sort_spec_puts_nulls_last(self) -> None:
        query = self._Recorder()
        SortSpec("monthly_income_min").apply(query)
        name, args, kwargs = query.calls[0]
        assert name == "order"
        assert kwargs == {"desc": True, "nullsfirst": False}


# ---------------------------------------------------------------------------
# FacetCompiler
# ---------------------------------------------------------------------------


class TestFacetCompiler:
    def test_always_injects_visibility(self, compiler: FacetCompiler) -> None:
        compiled = compiler.compile(FacetSelection())
        assert APPROVED_ONLY in compiled.predicates
        assert NOT_DELETED in compiled.predicates

    def test_all_sentinel_adds_no_predicate(self, compiler: FacetCompiler) -> None:
        compiled = compiler.compile(FacetSelection())
        assert _columns(compiled) == ["is_approved", "deleted_at", "kind"]

    def test_optional_equality_filters(self, compiler: FacetCompiler) -> None:
        compiled = compiler.compile(
            FacetSelection(category="digital", risk="LOW", effort="passive")
        )
        assert Predicate("category", "eq", "digital") in compiled.predicates
        assert Predicate("risk_level", "eq", "low") in compiled.predicates
        assert Predicate("effort_level", "eq", "passive") in compiled.predicates

    def test_numeric_filters_are_independent(self, compiler: FacetCompiler) -> None:
        compiled = compiler.compile(FacetSelection(min_income=20_000, max_investment=500_000))
        assert Predicate("monthly_income_min", "gte", 20_000) in compiled.predicates
        assert Predicate("investment_min", "lte", 500_000) in compiled.predicates

    def test_zero_min_income_is_no_filter(self, compiler: FacetCompiler) -> None:
        compiled = compiler.compile(FacetSelection(min_income=0))
        assert "monthly_income_min" not in _columns(compiled)

    def test_text_search_targets_title_only(self, compiler: FacetCompiler) -> None:
        compiled = compiler.compile(FacetSelection(query="  kitchen "))
        text = [p for p in compiled.predicates if p.op == "ilike"]
        assert text == [Predicate("title", "ilike", "kitchen")]

    def test_blank_query_is_ignored(self, compiler: FacetCompiler) -> None:
        compiled = compiler.compile(FacetSelection(query="   "))
        assert all(p.op != "ilike" for p in compiled.predicates)

    @pytest.mark.parametrize(
        "sort,column",
        [("newest", "created_at"), ("popularity", "upvotes_count"), ("income", "monthly_income_min")],
    )
    def test_featured_sort_is_prepended(self, compiler, sort, column) -> None:
        compiled = compiler.compile(FacetSelection(sort=sort))
        assert compiled.sort == (SortSpec("is_featured"), SortSpec(column))

    def test_limit_defaults_to_page_size(self, compiler: FacetCompiler) -> None:
        assert compiler.compile(FacetSelection()).limit == 50
        assert compiler.compile(FacetSelection(limit=10)).limit == 10


# ---------------------------------------------------------------------------
# Propiedades
# ---------------------------------------------------------------------------


def _catalog_rows() -> list[dict]:
    listings = [
        make_idea(title="EV Fleet Charging", risk_level="low", monthly_income_min=40_000),
        make_idea(title="Cloud Kitchen", risk_level="high", investment_min=900_000, investment_max=1_000_000),
        make_idea(title="Fleet Cleaning", risk_level="low", monthly_income_min=5_000),
        make_idea(title="Fleet Hidden", risk_level="low", is_approved=False),
        make_idea(title="Fleet Deleted", risk_level="low", deleted_at="2026-02-01T00:00:00+00:00"),
        make_idea(title="Tutoring", category="education", risk_level="low"),
        make_franchise(title="Fleet Burgers"),
    ]
    return [{**l.to_db_dict(), "id": str(i)} for i, l in enumerate(listings)]


class TestCompilerProperties:
    def test_predicates_commute(self, compiler: FacetCompiler) -> None:
        selection = FacetSelection(
            query="fleet", risk="low", min_income=1_000, max_investment=800_000
        )
        predicates = compiler.compile(selection).predicates
        rows = _catalog_rows()

        expected = None
        for order in itertools.permutations(predicates):
            remaining = rows
            for predicate in order:
                remaining = [r for r in remaining if predicate.matches(r)]
            ids = {r["id"] for r in remaining}
            if expected is None:
                expected = ids
            assert ids == expected
        assert expected == {"0", "2"}

    @pytest.mark.parametrize(
        "selection",
        [
            FacetSelection(),
            FacetSelection(query="fleet"),
            FacetSelection(risk="low"),
            FacetSelection(category="digital", sort="income"),
            FacetSelection(kind="franchise"),
            FacetSelection(min_income=1, sort="popularity"),
        ],
    )
    def test_hidden_listings_never_match(self, compiler, selection) -> None:
        compiled = compiler.compile(selection)
        visible = [r for r in _catalog_rows() if compiled.matches(r)]
        assert all(r["is_approved"] and r["deleted_at"] is None for r in visible)
        titles = {r["title"] for r in visible}
        assert "Fleet Hidden" not in titles
        assert "Fleet Deleted" not in titles

    def test_featured_first_then_caller_key(self, compiler: FacetCompiler) -> None:
        rows = [
            {**make_idea(title="old-featured", is_featured=True, created_at="2026-01-01").to_db_dict(), "id": "a"},
            {**make_idea(title="new", created_at="2026-03-01").to_db_dict(), "id": "b"},
            {**make_idea(title="newer-featured", is_featured=True, created_at="2026-02-01").to_db_dict(), "id": "c"},
            {**make_idea(title="older", created_at="2026-01-15").to_db_dict(), "id": "d"},
        ]
        ordered = sort_rows(rows, compiler.compile(FacetSelection()).sort)
        assert [r["id"] for r in ordered] == ["c", "a", "b", "d"]
