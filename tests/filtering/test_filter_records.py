from __future__ import annotations

from dataclasses import dataclass

from resourcekit import FilterSpec, filter_records, matches

RECORDS = [
    {"name": "Jane Doe", "email": "jane@x.com", "tier": "ENTERPRISE"},
    {"name": "Bob", "email": "bob@x.com", "tier": "SMB"},
]


def test_search_text_matches_any_string_field():
    assert filter_records(RECORDS, FilterSpec(search_text="jane")) == [RECORDS[0]]
    assert filter_records(RECORDS, FilterSpec(search_text="  X.COM ")) == RECORDS


def test_field_filters_are_case_insensitive():
    assert filter_records(RECORDS, FilterSpec(field_filters={"tier": "smb"})) == [RECORDS[1]]


def test_empty_spec_returns_everything_in_order():
    assert filter_records(RECORDS, FilterSpec()) == RECORDS
    assert filter_records(RECORDS) == RECORDS
    assert filter_records(reversed(RECORDS), FilterSpec()) == RECORDS[::-1]


def test_all_and_blank_filter_values_are_unconstrained():
    spec = FilterSpec(field_filters={"tier": "All", "status": "", "role": None})
    assert filter_records(RECORDS, spec) == RECORDS


def test_constraints_are_anded():
    spec = FilterSpec(search_text="x.com", field_filters={"tier": "enterprise"})
    assert filter_records(RECORDS, spec) == [RECORDS[0]]
    spec = FilterSpec(search_text="bob", field_filters={"tier": "enterprise"})
    assert filter_records(RECORDS, spec) == []


def test_missing_fields_never_match_equality_and_never_error():
    records = [{"name": "Ann"}, {"name": "Ben", "tier": None}, {"name": "Cy", "tier": "smb"}]
    spec = FilterSpec(field_filters={"tier": "SMB"}, search_fields=("email", "name"))
    assert filter_records(records, spec) == [records[2]]
    assert filter_records(records, FilterSpec(search_text="a", search_fields=("email",))) == []


def test_search_fields_limit_where_text_is_searched():
    spec = FilterSpec(search_text="bob", search_fields=("name",))
    assert filter_records(RECORDS, spec) == [RECORDS[1]]
    spec = FilterSpec(search_text="x.com", search_fields=("name",))
    assert filter_records(RECORDS, spec) == []


def test_callable_accessors_and_unicode_casefolding():
    records = [{"first": "Jürgen", "last": "Straße"}, {"first": "Ana", "last": "Lima"}]
    spec = FilterSpec(
        search_text="STRASSE",
        search_fields=(lambda r: f"{r['first']} {r['last']}",),
    )
    assert filter_records(records, spec) == [records[0]]


def test_non_string_values_compare_by_equality():
    records = [{"name": "A", "seats": 5}, {"name": "B", "seats": 10}]
    assert filter_records(records, FilterSpec(field_filters={"seats": 10})) == [records[1]]


@dataclass
class _Member:
    name: str
    email: str
    role: str | None = None


@dataclass(slots=True)
class _SlottedClient:
    name: str
    company: str


def test_object_records_are_supported():
    team = [_Member("Jane", "jane@x.com", "OWNER"), _Member("Bob", "bob@x.com")]
    assert filter_records(team, FilterSpec(field_filters={"role": "owner"})) == [team[0]]
    assert filter_records(team, FilterSpec(search_text="BOB@")) == [team[1]]

    clients = [_SlottedClient("Acme", "Acme Corp"), _SlottedClient("Zeta", "Zeta Ltd")]
    assert matches(clients[1], FilterSpec(search_text="ltd"))
    assert not matches(clients[0], FilterSpec(search_text="ltd"))
