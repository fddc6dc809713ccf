from types import SimpleNamespace

import pytest
from pydantic import ValidationError

from sweetshop.core.errors import FieldValidationError
from sweetshop.models.user import Role
from sweetshop.services import catalog
from sweetshop.services.search import SearchFilters, matches, parse_search_filters, search_sweets


@pytest.fixture
def catalog_rows(make_user, make_category, make_sweet):
    admin = make_user(role=Role.ADMIN)
    chocolates = make_category(name='Chocolates')
    gums = make_category(name='Gums')
    return {
        'chocolates': chocolates,
        'gums': gums,
        'sweets': [
            make_sweet(admin, chocolates, name='Dark Chocolate', price=3.0),
            make_sweet(admin, chocolates, name='Milk Chocolate', price=2.0),
            make_sweet(admin, gums, name='Bubble Gum', price=0.5),
            make_sweet(admin, gums, name='100% Mint', price=1.5),
        ],
    }


def test_parse_search_filters_treats_blank_values_as_absent() -> None:
    filters = parse_search_filters(name='  ', category_id='', price_min='', price_max=' ')

    assert filters == SearchFilters()
    assert filters.is_empty()


def test_parse_search_filters_coerces_values() -> None:
    filters = parse_search_filters(name=' choc ', category_id='3', price_min='1.5', price_max='2.5')

    assert filters == SearchFilters(name='choc', category_id=3, price_min=1.5, price_max=2.5)


def test_parse_search_filters_accepts_equal_bounds() -> None:
    filters = parse_search_filters(price_min='2', price_max='2')

    assert filters.price_min == filters.price_max == 2.0


@pytest.mark.parametrize('name', [None, 'gum'])
def test_parse_search_filters_rejects_inverted_price_range(name) -> None:
    with pytest.raises(FieldValidationError) as exception_info:
        parse_search_filters(name=name, category_id='1', price_min='5', price_max='1')

    assert exception_info.value.status_code == 400
    assert exception_info.value.errors == {'priceMin': ['Minimum price must be <= Maximum price']}


@pytest.mark.parametrize(
    ('kwargs', 'field'),
    [
        ({'price_min': 'cheap'}, 'priceMin'),
        ({'price_max': '-1'}, 'priceMax'),
        ({'price_min': 'nan'}, 'priceMin'),
        ({'category_id': 'abc'}, 'categoryId'),
        ({'category_id': str(2**70)}, 'categoryId'),
    ],
)
def test_parse_search_filters_rejects_bad_values(kwargs: dict, field: str) -> None:
    with pytest.raises(FieldValidationError) as exception_info:
        parse_search_filters(**kwargs)

    assert field in exception_info.value.errors


def test_search_filters_are_immutable() -> None:
    filters = SearchFilters(name='gum')

    with pytest.raises(ValidationError):
        filters.name = 'toffee'

    assert filters.name == 'gum'


def test_matches_is_conjunction_of_filters() -> None:
    sweet = SimpleNamespace(name='Dark Chocolate', category_id=1, price=3.0)

    assert matches(sweet, SearchFilters())
    assert matches(sweet, SearchFilters(name='CHOC', category_id=1, price_min=3.0, price_max=3.0))
    assert not matches(sweet, SearchFilters(name='choc', category_id=2))
    assert not matches(sweet, SearchFilters(price_max=2.99))
    assert not matches(sweet, SearchFilters(price_min=3.01))


def test_search_without_filters_equals_list(db, catalog_rows) -> None:
    found = search_sweets(db, SearchFilters())

    assert [sweet.id for sweet in found] == [sweet.id for sweet in catalog.list_sweets(db)]


def test_search_by_name_is_case_insensitive_substring(db, catalog_rows) -> None:
    found = search_sweets(db, parse_search_filters(name='CHOCOLATE'))

    assert {sweet.name for sweet in found} == {'Dark Chocolate', 'Milk Chocolate'}


def test_search_by_name_treats_wildcards_literally(db, catalog_rows) -> None:
    found = search_sweets(db, parse_search_filters(name='%'))

    assert [sweet.name for sweet in found] == ['100% Mint']


def test_search_by_category(db, catalog_rows) -> None:
    gums = catalog_rows['gums']

    found = search_sweets(db, parse_search_filters(category_id=str(gums.id)))

    assert {sweet.name for sweet in found} == {'Bubble Gum', '100% Mint'}


def test_search_by_inclusive_price_range(db, catalog_rows) -> None:
    found = search_sweets(db, parse_search_filters(price_min='1.5', price_max='2.0'))

    assert {sweet.name for sweet in found} == {'Milk Chocolate', '100% Mint'}


def test_search_combines_filters(db, catalog_rows) -> None:
    chocolates = catalog_rows['chocolates']

    found = search_sweets(
        db,
        parse_search_filters(name='chocolate', category_id=str(chocolates.id), price_min='2.5'),
    )

    assert [sweet.name for sweet in found] == ['Dark Chocolate']


def test_search_results_agree_with_in_memory_predicate(db, catalog_rows) -> None:
    filters = parse_search_filters(name='m', price_max='2')

    found = {sweet.id for sweet in search_sweets(db, filters)}
    expected = {sweet.id for sweet in catalog.list_sweets(db) if matches(sweet, filters)}

    assert found == expected
