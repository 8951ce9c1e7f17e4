from __future__ import annotations

import pytest

from petrolmate.services.fuel.address import (
    IntersectionMode,
    normalize_address,
    normalize_full_address,
    resolve_intersection,
    title_case,
)


def test_positional_layout_splits_suburb_and_postcode_on_one_line():
    address = normalize_address(["Exampletown, 5000"], "12 Main St")

    assert address.street_address == "12 Main St"
    assert address.suburb == "Exampletown"
    assert address.postcode == "5000"
    assert address.full_address == "12 Main St, Exampletown, 5000"


def test_positional_layout_reads_postcode_from_following_line():
    address = normalize_address(["Exampletown", "5000"], "12 Main St")

    assert address.suburb == "Exampletown"
    assert address.postcode == "5000"


def test_marked_layout_takes_postcode_after_tagged_suburb():
    address = normalize_address(["Port Example, 5015"], "1 Dock Rd", suburb_text="Port Example")

    assert address.suburb == "Port Example"
    assert address.postcode == "5015"
    assert address.full_address == "1 Dock Rd, Port Example, 5015"


def test_missing_suburb_lines_leave_empty_fields():
    address = normalize_address([], "12 Main St")

    assert address.suburb == ""
    assert address.postcode == ""
    assert address.full_address == "12 Main St"


def test_full_address_drops_parentheses_and_title_cases():
    address = normalize_address(["EXAMPLETOWN, 5000"], "12 MAIN ST (REAR ENTRY)")

    assert address.street_address == "12 MAIN ST (REAR ENTRY)"
    assert address.full_address == "12 Main St, Exampletown, 5000"


def test_full_address_collapses_whitespace_and_empty_segments():
    assert normalize_full_address("12  main   st ,, exampletown ,5000") == "12 Main St, Exampletown, 5000"


@pytest.mark.parametrize(
    "raw",
    [
        "12  main st (rear) , exampletown,,5000",
        "Cnr Main St & Smith Rd, Exampletown, 5000",
        "123 main st cnr smith rd, exampletown, 5000",
        "Shop 2, Cnr Main St & Smith Rd, Exampletown, 5000",
        "Cnr Corner Inlet, 5000",
    ],
)
@pytest.mark.parametrize("mode", [IntersectionMode.KEEP, IntersectionMode.TRUNCATE])
def test_normalize_full_address_is_idempotent(raw, mode):
    once = normalize_full_address(raw, mode)

    assert normalize_full_address(once, mode) == once


def test_keep_mode_preserves_intersection_text():
    address = normalize_address(["Exampletown, 5000"], "Cnr Main St & Smith Rd", mode=IntersectionMode.KEEP)

    assert address.full_address == "Cnr Main St & Smith Rd, Exampletown, 5000"


def test_truncate_mode_cuts_street_at_corner_marker():
    address = normalize_address(["Exampletown, 5000"], "123 Main St Cnr Smith Rd", mode=IntersectionMode.TRUNCATE)

    assert address.full_address == "123 Main St, Exampletown, 5000"


def test_truncate_mode_applies_to_street_containing_comma():
    address = normalize_address(["Exampletown, 5000"], "Shop 2, Cnr Main St & Smith Rd", mode=IntersectionMode.TRUNCATE)

    assert address.street_address == "Shop 2, Cnr Main St & Smith Rd"
    assert address.full_address == "Shop 2, Main St, Exampletown, 5000"


def test_truncate_mode_never_touches_suburb():
    address = normalize_address(["Cnr Corner Inlet, 5000"], "(rear)", mode=IntersectionMode.TRUNCATE)

    assert address.suburb == "Cnr Corner Inlet"
    assert address.full_address == "Cnr Corner Inlet, 5000"


def test_full_address_truncates_street_segments_only():
    assert normalize_full_address("Shop 2, Cnr Main St & Smith Rd, Exampletown, 5000", IntersectionMode.TRUNCATE) == (
        "Shop 2, Main St, Exampletown, 5000"
    )
    assert normalize_full_address("1 Main St, Cnr Corner Inlet, 5000", IntersectionMode.TRUNCATE) == (
        "1 Main St, Cnr Corner Inlet, 5000"
    )


def test_full_address_stable_when_renormalized_with_same_mode():
    address = normalize_address(["Exampletown, 5000"], "Shop 2, Cnr Main St & Smith Rd", mode=IntersectionMode.TRUNCATE)

    assert normalize_full_address(address.full_address, IntersectionMode.TRUNCATE) == address.full_address


def test_truncate_mode_keeps_first_road_when_marker_leads():
    assert resolve_intersection("Cnr Main St & Smith Rd", IntersectionMode.TRUNCATE) == "Main St"
    assert resolve_intersection("Corner Main St and Smith Rd", IntersectionMode.TRUNCATE) == "Main St"


def test_truncate_mode_leaves_plain_street_alone():
    assert resolve_intersection("12 Main St", IntersectionMode.TRUNCATE) == "12 Main St"


def test_intersection_mode_accepts_config_strings():
    assert resolve_intersection("1 Main St Cnr King Rd", "truncate") == "1 Main St"


def test_title_case_lowers_the_rest_of_each_word():
    assert title_case("PORT  adelaide") == "Port Adelaide"
