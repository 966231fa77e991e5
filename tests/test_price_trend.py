import asyncio
from datetime import timedelta

import pytest

from farescope.services.price_trend import PriceTrendAggregator, round_price
from farescope.services.providers.base import RequestError
from tests.helpers import FakeProvider, day, make_offer, price


def scenario_offers():
    return [
        make_offer("1", 100, departure="2024-06-01T08:00:00"),
        make_offer("2", 200, departure="2024-06-01T19:30:00"),
        make_offer("3", 150, departure="2024-06-03T12:00:00"),
    ]


def as_tuples(points):
    return [(p.date.isoformat(), p.price, p.sample_count) for p in points]


def test_local_series_without_context(fake_sleep):
    aggregator = PriceTrendAggregator(FakeProvider(), sleep=fake_sleep)
    points = asyncio.run(aggregator.aggregate(scenario_offers()))

    assert as_tuples(points) == [
        ("2024-06-01", 150, 2),
        ("2024-06-02", None, 0),
        ("2024-06-03", 150, 1),
        ("2024-06-04", None, 0),
        ("2024-06-05", None, 0),
        ("2024-06-06", None, 0),
        ("2024-06-07", None, 0),
        ("2024-06-08", None, 0),
    ]


def test_empty_offers_skip_fetching(context, fake_sleep):
    provider = FakeProvider()
    aggregator = PriceTrendAggregator(provider, sleep=fake_sleep)

    assert asyncio.run(aggregator.aggregate([], context)) == []
    assert provider.price_requests == []
    assert fake_sleep.calls == []


def test_no_context_means_no_fetch(fake_sleep):
    provider = FakeProvider(prices={day("2024-06-02"): price(99)})
    aggregator = PriceTrendAggregator(provider, sleep=fake_sleep)

    points = asyncio.run(aggregator.aggregate(scenario_offers(), None))

    assert provider.price_requests == []
    assert points[1].price is None


@pytest.mark.parametrize("departures", [
    ["2024-06-01T10:00:00"],
    ["2024-06-01T10:00:00", "2024-06-01T22:00:00"],
    ["2024-05-30T10:00:00", "2024-06-04T06:00:00", "2024-06-02T10:00:00"],
    ["2024-12-30T10:00:00", "2025-01-02T10:00:00"],
])
def test_series_is_contiguous(departures):
    offers = [make_offer(str(i), 100, departure=dep) for i, dep in enumerate(departures)]
    points = PriceTrendAggregator().build_series(offers)

    dates = [offer.departure_date for offer in offers]
    assert len(points) == (max(dates) - min(dates)).days + 6
    assert points[0].date == min(dates)
    for previous, current in zip(points, points[1:]):
        assert current.date - previous.date == timedelta(days=1)


def test_local_price_is_rounded_average():
    offers = [
        make_offer("1", "100.25", departure="2024-06-01T10:00:00"),
        make_offer("2", "100.75", departure="2024-06-01T11:00:00"),
        make_offer("3", "101", departure="2024-06-01T12:00:00"),
        make_offer("4", "99.99", departure="2024-06-02T12:00:00"),
        make_offer("5", "120.00", departure="2024-06-03T12:00:00"),
        make_offer("6", "121.00", departure="2024-06-03T13:00:00"),
    ]
    averages = PriceTrendAggregator().local_averages(offers)

    assert averages[day("2024-06-01")] == (101, 3)
    assert averages[day("2024-06-02")] == (100, 1)
    # 120.5 rounds half up
    assert averages[day("2024-06-03")] == (121, 2)


def test_round_price():
    assert round_price(price("0.5")) == 1
    assert round_price(price("2.5")) == 3
    assert round_price(price("2.49")) == 2


def test_gap_fill_uses_fetched_minimum(context, fake_sleep):
    provider = FakeProvider(prices={
        day("2024-06-02"): price("119.6"),
        day("2024-06-04"): None,
    })
    aggregator = PriceTrendAggregator(provider, sleep=fake_sleep)

    points = asyncio.run(aggregator.aggregate(scenario_offers(), context))
    by_date = {p.date.isoformat(): (p.price, p.sample_count) for p in points}

    assert by_date["2024-06-01"] == (150, 2)
    assert by_date["2024-06-02"] == (120, 1)
    assert by_date["2024-06-03"] == (150, 1)
    assert by_date["2024-06-04"] == (None, 0)
    assert sorted(provider.price_requests) == [
        day("2024-06-02"), day("2024-06-04"), day("2024-06-05"),
        day("2024-06-06"), day("2024-06-07"), day("2024-06-08"),
    ]


def test_gap_fill_failure_does_not_affect_other_dates(context, fake_sleep):
    provider = FakeProvider(prices={
        day("2024-06-02"): RequestError("fake", "boom"),
        day("2024-06-04"): RuntimeError("network down"),
        day("2024-06-05"): price(80),
    })
    aggregator = PriceTrendAggregator(provider, sleep=fake_sleep)

    points = asyncio.run(aggregator.aggregate(scenario_offers(), context))
    by_date = {p.date.isoformat(): (p.price, p.sample_count) for p in points}

    assert by_date["2024-06-02"] == (None, 0)
    assert by_date["2024-06-04"] == (None, 0)
    assert by_date["2024-06-05"] == (80, 1)


def test_gap_fill_runs_in_throttled_batches(context, fake_sleep):
    in_flight = 0
    peak = 0
    batches = []

    class CountingProvider(FakeProvider):
        async def min_price_for_date(self, origin, destination, departure_date, passengers=1):
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0)
            in_flight -= 1
            return await super().min_price_for_date(origin, destination, departure_date, passengers)

    async def recording_sleep(delay):
        batches.append(len(provider.price_requests))
        await fake_sleep(delay)

    provider = CountingProvider()
    # One offer on 06-01 and one on 06-08 leave 11 unknown dates
    offers = [
        make_offer("1", 100, departure="2024-06-01T10:00:00"),
        make_offer("2", 100, departure="2024-06-08T10:00:00"),
    ]
    aggregator = PriceTrendAggregator(provider, batch_size=5, inter_batch_delay=0.2, sleep=recording_sleep)

    asyncio.run(aggregator.aggregate(offers, context))

    assert len(provider.price_requests) == 11
    assert peak <= 5
    # Pauses only between batches: after 5 and after 10 requests
    assert fake_sleep.calls == [0.2, 0.2]
    assert batches == [5, 10]


def test_aggregate_does_not_mutate_inputs(context, fake_sleep):
    offers = scenario_offers()
    before = list(offers)
    provider = FakeProvider(prices={day("2024-06-02"): price(90)})

    asyncio.run(PriceTrendAggregator(provider, sleep=fake_sleep).aggregate(offers, context))

    assert offers == before


def test_aggregate_is_idempotent(context, fake_sleep):
    provider = FakeProvider(prices={day("2024-06-02"): price(120), day("2024-06-06"): price("88.4")})
    aggregator = PriceTrendAggregator(provider, sleep=fake_sleep)

    first = asyncio.run(aggregator.aggregate(scenario_offers(), context))
    second = asyncio.run(aggregator.aggregate(scenario_offers(), context))

    assert first == second
    assert [p.model_dump_json() for p in first] == [p.model_dump_json() for p in second]


def test_passes_context_to_provider(context, fake_sleep):
    calls = []

    class RecordingProvider(FakeProvider):
        async def min_price_for_date(self, origin, destination, departure_date, passengers=1):
            calls.append((origin, destination, passengers))
            return None

    offers = [make_offer("1", 100, departure="2024-06-01T10:00:00")]
    asyncio.run(PriceTrendAggregator(RecordingProvider(), sleep=fake_sleep).aggregate(offers, context))

    assert calls == [("JFK", "LAX", 2)] * 5


def test_explicit_throttle_settings_are_kept():
    aggregator = PriceTrendAggregator(batch_size=1, inter_batch_delay=0, trailing_days=0)

    assert aggregator.batch_size == 1
    assert aggregator.inter_batch_delay == 0
    assert aggregator.trailing_days == 0


@pytest.mark.parametrize("kwargs", [
    {"batch_size": 0},
    {"batch_size": -2},
    {"inter_batch_delay": -0.1},
])
def test_invalid_throttle_settings_rejected(kwargs):
    with pytest.raises(ValueError):
        PriceTrendAggregator(**kwargs)
