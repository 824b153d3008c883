import pytest

from itinerary_planner.agents.budget_planner import allocate_budget, daily_budget


def test_allocation_uses_fixed_shares():
    breakdown = allocate_budget(20000)
    assert breakdown.model_dump() == {
        "accommodation": 7000,
        "transport": 5000,
        "food": 4000,
        "activities": 3000,
        "miscellaneous": 1000,
    }


def test_remainder_from_flooring_goes_to_miscellaneous():
    breakdown = allocate_budget(1999)
    assert breakdown.accommodation == 699
    assert breakdown.transport == 499
    assert breakdown.food == 399
    assert breakdown.activities == 299
    assert breakdown.miscellaneous == 103
    assert breakdown.total == 1999


def test_buckets_always_sum_to_total():
    for total in list(range(1000, 3000)) + [15000, 99999, 1234567]:
        breakdown = allocate_budget(total)
        values = breakdown.model_dump().values()
        assert all(isinstance(v, int) and v >= 0 for v in values)
        assert sum(values) == total


def test_camel_case_dump_matches_wire_shape():
    dumped = allocate_budget(15000).model_dump(by_alias=True)
    assert set(dumped) == {"accommodation", "transport", "food", "activities", "miscellaneous"}


def test_negative_total_rejected():
    with pytest.raises(ValueError):
        allocate_budget(-1)


def test_daily_budget_floors():
    assert daily_budget(15000, 3) == 5000
    assert daily_budget(10000, 3) == 3333
