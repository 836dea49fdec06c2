import json

import pytest

from geocoin.sim.caches import Cache, CacheStore, Coin, decode_memento, encode_memento
from geocoin.sim.hash import store_hash


def _pinned_luck(values: dict[str, float], default: float = 0.99):
    def luck(key: str) -> float:
        return values.get(key, default)

    return luck


def _store_with_three_coins() -> CacheStore:
    return CacheStore(spawn_probability=0.1, luck=_pinned_luck({"5,7": 0.05, "5,7,iniValue": 0.035}))


def test_cache_spawns_when_luck_is_below_threshold() -> None:
    store = CacheStore(spawn_probability=0.1, luck=_pinned_luck({"5,7": 0.05, "5,7,iniValue": 0.425}))

    assert store.has_cache(5, 7)
    assert not store.has_cache(5, 8)

    cache = store.materialize(5, 7)
    assert len(cache.coins) == 42
    assert cache.coins[0] == Coin(i=5, j=7, serial=0)
    assert [coin.serial for coin in cache.coins] == list(range(42))


def test_initial_count_stays_below_one_hundred() -> None:
    store = CacheStore(luck=_pinned_luck({"0,0,iniValue": 0.9999999}))

    assert store.initial_coin_count(0, 0) == 99


def test_materialize_twice_before_mutation_yields_equal_coins() -> None:
    store = CacheStore()

    first = store.materialize(3, -2)
    second = store.materialize(3, -2)

    assert first.coins == second.coins


def test_collect_twice_then_deposit_once_prepends_to_cache() -> None:
    store = _store_with_three_coins()
    cache = store.materialize(5, 7)
    inventory: list[Coin] = []

    store.collect(cache, inventory)
    store.collect(cache, inventory)
    assert [coin.serial for coin in inventory] == [0, 1]
    assert [coin.serial for coin in cache.coins] == [2]

    deposited = store.deposit(cache, inventory)
    assert deposited == Coin(5, 7, 1)
    assert [coin.serial for coin in inventory] == [0]
    assert [coin.serial for coin in cache.coins] == [1, 2]


def test_collect_and_deposit_on_empty_sequences_are_no_ops() -> None:
    store = CacheStore(luck=_pinned_luck({"1,1,iniValue": 0.0}))
    cache = store.materialize(1, 1)
    inventory: list[Coin] = []

    assert store.collect(cache, inventory) is None
    assert store.deposit(cache, inventory) is None
    assert cache.coins == []
    assert inventory == []
    assert store.memento_for(1, 1) is None


def test_mutations_commit_and_survive_rematerialization() -> None:
    store = _store_with_three_coins()
    inventory: list[Coin] = []
    store.collect(store.materialize(5, 7), inventory)

    store.release_all()
    restored = store.materialize(5, 7)

    assert [coin.serial for coin in restored.coins] == [1, 2]


def test_commit_snapshot_load_round_trip_into_fresh_store() -> None:
    store = _store_with_three_coins()
    cache = store.materialize(5, 7)
    cache.coins.append(Coin(9, 9, 4))
    store.commit(cache)

    fresh = _store_with_three_coins()
    fresh.load(store.snapshot())

    assert fresh.snapshot() == store.snapshot()
    assert fresh.materialize(5, 7).coins == cache.coins
    assert store_hash(fresh) == store_hash(store)


def test_reset_restores_original_spawn_state() -> None:
    store = _store_with_three_coins()
    inventory: list[Coin] = []
    store.collect(store.materialize(5, 7), inventory)
    assert len(store) == 1

    store.reset()

    assert len(store) == 0
    assert store.visible == []
    assert [coin.serial for coin in store.materialize(5, 7).coins] == [0, 1, 2]


def test_commit_overwrites_previous_memento() -> None:
    store = _store_with_three_coins()
    cache = store.materialize(5, 7)
    store.commit(cache)
    cache.coins.clear()
    store.commit(cache)

    assert len(store) == 1
    assert decode_memento(store.memento_for(5, 7)) == []


def test_memento_is_versioned_and_round_trips() -> None:
    coins = [Coin(1, 2, 0), Coin(-3, 4, 7), Coin(1, 2, 1)]

    memento = encode_memento(coins)

    assert json.loads(memento) == {
        "version": 1,
        "coins": [
            {"i": 1, "j": 2, "serial": 0},
            {"i": -3, "j": 4, "serial": 7},
            {"i": 1, "j": 2, "serial": 1},
        ],
    }
    cache = Cache(i=0, j=0)
    cache.from_memento(memento)
    assert cache.coins == coins


@pytest.mark.parametrize(
    "memento, message",
    [
        ("not json", "not valid JSON"),
        ('{"version": 2, "coins": []}', "unsupported memento version"),
        ('{"version": 1, "coins": {}}', "must be a list"),
        ('{"version": 1, "coins": [{"i": 1, "j": 2}]}', "missing fields"),
    ],
)
def test_decode_memento_rejects_malformed_payloads(memento: str, message: str) -> None:
    with pytest.raises(ValueError, match=message):
        decode_memento(memento)


def test_load_rejects_bad_keys_and_mementos() -> None:
    store = CacheStore()

    with pytest.raises(ValueError, match="not canonical"):
        store.load([("01,2", encode_memento([]))])
    with pytest.raises(ValueError):
        store.load([("1,2", "garbage")])


def test_coin_label_names_origin_and_serial() -> None:
    assert Coin(i=369894, j=-1220628, serial=3).label == "369894:-1220628#3"
