"""
Test cases for the SQL built by the product repository.

The route tests run on SQLite, so the PostgreSQL text-search clauses are
checked here by compiling them against the PostgreSQL dialect.
"""
from sqlalchemy.dialects import postgresql, sqlite

from storeapi.products.models import SEARCH_INDEX_EXPRESSION, search_document
from storeapi.products.query import ProductFilter
from storeapi.products.repository import _search_clause, build_conditions


def compile_sql(clause, dialect=None):
    compiled = clause.compile(
        dialect=dialect or postgresql.dialect(),
        compile_kwargs={"literal_binds": True},
    )
    return " ".join(str(compiled).split())


def test_postgres_search_matches_any_word():
    conditions = build_conditions(ProductFilter(search="levi's t-shirt"), "postgresql")

    sql = compile_sql(conditions[-1])

    assert sql.startswith("to_tsvector('english'::regconfig, coalesce(products.name, '')")
    assert "@@ to_tsquery('english'::regconfig, 'levi | s | t | shirt')" in sql


def test_postgres_search_without_words_adds_no_clause():
    predicate = ProductFilter(search="!!! --")

    assert _search_clause(predicate, "postgresql") is None
    conditions = build_conditions(predicate, "postgresql")
    assert len(conditions) == 1
    assert "to_tsquery" not in compile_sql(conditions[0])


def test_other_dialects_use_substring_search():
    conditions = build_conditions(ProductFilter(search="tee"), "sqlite")

    sql = compile_sql(conditions[-1], sqlite.dialect())

    assert "to_tsquery" not in sql
    assert sql.count("LIKE") == 3


def test_search_document_matches_index_expression():
    compiled = search_document().compile(dialect=postgresql.dialect())

    # No bound parameters, otherwise the planner cannot use the GIN index
    assert compiled.params == {}
    assert " ".join(str(compiled).split()).replace("products.", "") == SEARCH_INDEX_EXPRESSION


def test_filters_combine():
    predicate = ProductFilter(category="Men", brand="gen", min_price=10.5, max_price=20.5)

    sql = " AND ".join(compile_sql(c) for c in build_conditions(predicate, "postgresql"))

    assert "products.is_active IS true" in sql
    assert "products.category = 'Men'" in sql
    assert "products.price >= 10.5" in sql
    assert "products.price <= 20.5" in sql
