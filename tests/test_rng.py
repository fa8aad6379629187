import random

from tcpkit.rng import get_random_engine


def test_draws_cover_range():
    engine = get_random_engine()
    draws = [engine.getrandbits(32) for _ in range(1000)]
    assert all(0 <= x < 2**32 for x in draws)
    assert len(set(draws)) > 990


def test_engines_are_independent():
    first = get_random_engine()
    second = get_random_engine()
    a = [first.getrandbits(64) for _ in range(8)]
    b = [second.getrandbits(64) for _ in range(8)]
    assert all(0 <= x < 2**64 for x in a + b)
    assert a != b


def test_usable_for_shuffle():
    engine = get_random_engine()
    items = list(range(50))
    shuffled = items[:]
    engine.shuffle(shuffled)
    assert sorted(shuffled) == items
    assert isinstance(engine, random.Random)