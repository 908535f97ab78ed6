import random

from tcpwire.random_engine import get_random_engine


def test_values_in_range():
    engine = get_random_engine()
    draws = [engine.getrandbits(32) for _ in range(100)]
    assert all(0 <= d < 2**32 for d in draws)
    assert isinstance(engine, random.Random)


def test_engines_are_seeded_differently():
    first = get_random_engine()
    second = get_random_engine()
    assert [first.getrandbits(64) for _ in range(8)] != [second.getrandbits(64) for _ in range(8)]


def test_engine_is_reproducible_from_its_state():
    engine = get_random_engine()
    state = engine.getstate()
    expected = [engine.random() for _ in range(5)]
    engine.setstate(state)
    assert [engine.random() for _ in range(5)] == expected