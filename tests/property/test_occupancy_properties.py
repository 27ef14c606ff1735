"""
Property-based tests for occupancy invariants using Hypothesis.

Random stay snapshots are pushed through the engine and checked against a
brute-force interval count and the invariant gates.
"""

from datetime import date, timedelta

from hypothesis import given, settings
from hypothesis import strategies as st

from facility.occupancy import (
    CapacityPolicy,
    CapacityStatus,
    Stay,
    classify_status,
    compute_occupancy_by_date,
    days_remaining,
    validate_stay_assignment,
)
from facility.occupancy.dates import to_date_key
from facility.occupancy.invariants import enforce_invariants

BASE = date(2025, 1, 20)

# ============================================================================
# Strategies
# ============================================================================


@st.composite
def stays(draw, max_size=12):
    n = draw(st.integers(min_value=0, max_value=max_size))
    result = []
    for i in range(n):
        arrival = BASE + timedelta(days=draw(st.integers(min_value=-20, max_value=40)))
        length = draw(st.integers(min_value=1, max_value=30))
        discharged_on = None
        if draw(st.booleans()):
            discharged_on = arrival + timedelta(days=draw(st.integers(min_value=0, max_value=length + 5)))
        result.append(
            Stay(
                patient_id=f"p-{i}",
                first_name="P",
                last_name=str(i),
                arrival_date=arrival,
                number_of_days=length,
                discharged_on=discharged_on,
            )
        )
    return result


windows = st.tuples(
    st.integers(min_value=-10, max_value=30),
    st.integers(min_value=0, max_value=45),
).map(lambda t: (BASE + timedelta(days=t[0]), BASE + timedelta(days=t[0] + t[1])))

policies = st.integers(min_value=1, max_value=8).flatmap(
    lambda cap: st.integers(min_value=1, max_value=cap).map(lambda lim: CapacityPolicy(capacity=cap, limited_at=lim))
)


# ============================================================================
# Occupancy Properties
# ============================================================================


@given(stays(), windows, policies)
@settings(max_examples=200)
def test_counts_equal_brute_force(snapshot, window, policy):
    """Every day's count is the number of stays covering it."""
    start, end = window
    result = compute_occupancy_by_date(snapshot, start, end, policy)
    for day in result.values():
        assert day.occupant_count == sum(1 for s in snapshot if s.arrival_date <= day.date <= s.occupied_through)


@given(stays(), windows, policies)
def test_invariant_gates_pass(snapshot, window, policy):
    start, end = window
    result = compute_occupancy_by_date(snapshot, start, end, policy)
    assert enforce_invariants(result, snapshot, start, end, policy) == []


@given(stays(), windows)
def test_one_entry_per_day(snapshot, window):
    start, end = window
    result = compute_occupancy_by_date(snapshot, start, end)
    assert len(result) == (end - start).days + 1
    assert list(result) == sorted(result)


@given(stays(), windows)
def test_order_of_stays_irrelevant(snapshot, window):
    start, end = window
    forward = compute_occupancy_by_date(snapshot, start, end)
    backward = compute_occupancy_by_date(list(reversed(snapshot)), start, end)
    assert {k: d.occupant_count for k, d in forward.items()} == {k: d.occupant_count for k, d in backward.items()}


@given(stays(), windows, windows)
def test_overlapping_windows_agree(snapshot, a, b):
    """A day's count does not depend on which window it was queried in."""
    ra = compute_occupancy_by_date(snapshot, *a)
    rb = compute_occupancy_by_date(snapshot, *b)
    for key in set(ra) & set(rb):
        assert ra[key].occupant_count == rb[key].occupant_count
        assert ra[key].status is rb[key].status


# ============================================================================
# Status Properties
# ============================================================================


@given(policies, st.integers(min_value=0, max_value=20))
def test_status_monotone(policy, n):
    assert policy.classify(n).severity <= policy.classify(n + 1).severity


@given(st.integers(min_value=1, max_value=20), st.integers(min_value=0, max_value=30))
def test_full_iff_at_capacity(capacity, n):
    assert (classify_status(n, capacity=capacity) is CapacityStatus.FULL) == (n >= capacity)


# ============================================================================
# Assignment Properties
# ============================================================================


@given(
    stays(),
    st.integers(min_value=-10, max_value=40),
    st.integers(min_value=1, max_value=21),
    st.integers(min_value=1, max_value=6),
)
def test_assignment_matches_per_day_counts(snapshot, offset, length, capacity):
    """A stay fits iff no day of it is already at capacity."""
    arrival = BASE + timedelta(days=offset)
    last = arrival + timedelta(days=length - 1)
    check = validate_stay_assignment(snapshot, arrival, length, capacity=capacity)
    occupancy = compute_occupancy_by_date(snapshot, arrival, last, CapacityPolicy(capacity=capacity))

    expected = [k for k, d in occupancy.items() if d.occupant_count >= capacity]
    assert list(check.conflicting_dates) == expected
    assert check.ok == (not expected)


@given(
    stays(),
    st.integers(min_value=-10, max_value=40),
    st.integers(min_value=1, max_value=21),
    st.integers(min_value=1, max_value=6),
)
def test_accepting_a_stay_never_overfills(snapshot, offset, length, capacity):
    arrival = BASE + timedelta(days=offset)
    check = validate_stay_assignment(snapshot, arrival, length, capacity=capacity)
    if not check.ok:
        return
    new = Stay(patient_id="new", first_name="N", last_name="N", arrival_date=arrival, number_of_days=length)
    before = compute_occupancy_by_date(snapshot, arrival, new.last_day)
    after = compute_occupancy_by_date(snapshot + [new], arrival, new.last_day)
    for key, day in after.items():
        assert day.occupant_count == before[key].occupant_count + 1
        assert day.occupant_count <= capacity


# ============================================================================
# Days Remaining
# ============================================================================


@given(
    st.integers(min_value=1, max_value=60),
    st.integers(min_value=0, max_value=90),
)
def test_days_remaining_bounds(length, offset):
    as_of = BASE + timedelta(days=offset)
    remaining = days_remaining(BASE, length, as_of)
    assert 0 <= remaining <= length - 1
    if offset < length:
        assert remaining == length - 1 - offset


@given(st.integers(min_value=-3650, max_value=3650))
def test_date_key_sorts_like_dates(offset):
    d = BASE + timedelta(days=offset)
    assert (to_date_key(d) < to_date_key(BASE)) == (d < BASE)
