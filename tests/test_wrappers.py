import orjson
import pytest

from corpusgen.binding import StaticField
from corpusgen.config import Config
from corpusgen.errors import MalformedPayloadError
from corpusgen.fields import Field
from corpusgen.generator import JsonGenerator
from corpusgen.providers import ValueProviders
from corpusgen.state import GenState
from corpusgen.wrappers import DynamicField, cardinality_target


def _values(gen: JsonGenerator, name: str, count: int) -> list:
    state = GenState()
    out = []
    for _ in range(count):
        sink = bytearray()
        gen.emit(state, sink)
        out.append(orjson.loads(sink)[name])
    return out


@pytest.mark.parametrize(("cardinality", "target"), [(1, 1000), (10, 100), (3, 334), (1000, 1)])
def test_cardinality_target(cardinality, target):
    assert cardinality_target(cardinality) == target


def test_cardinality_bounds_and_cycles_distinct_values():
    cfg = Config.from_entries([{"name": "dst.port", "range": 65535, "cardinality": 100}])
    gen = JsonGenerator(cfg, [Field("dst.port", "long")], ValueProviders(seed=3))
    values = _values(gen, "dst.port", 250)
    target = cardinality_target(100)
    assert len(set(values)) <= target
    assert set(values[target:]) <= set(values[:target])
    for i in range(target, len(values)):
        assert values[i] == values[i % target]


def test_cardinality_accepts_duplicates_when_values_run_out():
    cfg = Config.from_entries([{"name": "host", "cardinality": 50}])
    providers = ValueProviders(seed=4, word_pool_size=3)
    gen = JsonGenerator(cfg, [Field("host", "keyword")], providers)
    values = _values(gen, "host", 60)
    assert set(values) <= set(providers.words_pool)
    assert len(values) == 60


def test_cardinality_on_wildcard_uses_root_key():
    cfg = Config.from_entries([{"name": "labels.*", "cardinality": 500}])
    fields = [Field("labels.*", "object", object_type="keyword")]
    gen = JsonGenerator(cfg, fields, ValueProviders(seed=5, word_pool_size=20))
    values = _values(gen, "labels", 10)
    assert len(set(values)) <= 2


def test_dynamic_field_renames_key_under_root():
    providers = ValueProviders(seed=6, word_pool_size=50)
    gen = JsonGenerator(Config(), [Field("labels.*", "object", object_type="long")], providers)
    state = GenState()
    fired = 0
    for _ in range(200):
        sink = bytearray()
        gen.emit(state, sink)
        doc = orjson.loads(sink)
        if doc:
            fired += 1
            key, value = next(iter(doc.items()))
            root, _, token = key.partition(".")
            assert root == "labels"
            assert token in providers.words_pool
            assert isinstance(value, int)
        else:
            assert bytes(sink) == b"{}"
    assert 0 < fired < 200


def test_dynamic_keys_are_unique_within_a_record():
    providers = ValueProviders(seed=7, word_pool_size=1)
    fields = [
        Field("labels.*", "object", object_type="keyword"),
        Field("tags.*", "keyword"),
        Field("attrs.*", "object", object_type="ip"),
    ]
    gen = JsonGenerator(Config(), fields, providers)
    state = GenState()
    collided = 0
    for _ in range(200):
        sink = bytearray()
        gen.emit(state, sink)
        tokens = [key.split(".", 1)[1] for key in orjson.loads(sink)]
        assert len(tokens) == len(set(tokens))
        if len(tokens) > 1:
            collided += 1
            assert sum(len(t) == 32 for t in tokens) == len(tokens) - 1
    assert collided > 0


def test_pick_key_falls_back_to_unique_token():
    providers = ValueProviders(seed=8, word_pool_size=1)
    stub = DynamicField("labels.*", "labels", StaticField("labels.*", b'"labels.*":1'), providers)
    dupes = {providers.words_pool[0]}
    token = stub.pick_key(dupes)
    assert token not in providers.words_pool
    assert len(token) == 32
    assert token in dupes


def test_dynamic_field_rejects_payload_without_expected_key():
    providers = ValueProviders(seed=9, word_pool_size=5)
    stub = DynamicField("labels.*", "labels", StaticField("other", b'"other":1'), providers)
    state = GenState()
    with pytest.raises(MalformedPayloadError):
        for _ in range(100):
            stub.emit(state, set(), bytearray())


def test_dynamic_field_skips_when_inner_writes_nothing():
    providers = ValueProviders(seed=10, word_pool_size=5)
    stub = DynamicField("labels.*", "labels", StaticField("labels.*", b""), providers)
    state = GenState()
    sink = bytearray()
    for _ in range(50):
        stub.emit(state, set(), sink)
    assert sink == b""


def test_dynamic_field_rejects_long_payload_with_wrong_key():
    providers = ValueProviders(seed=11, word_pool_size=5)
    inner = StaticField("other", b'"other.much.longer.key":12345')
    stub = DynamicField("labels.*", "labels", inner, providers)
    state = GenState()
    with pytest.raises(MalformedPayloadError):
        for _ in range(100):
            stub.emit(state, set(), bytearray())


def test_dynamic_field_skips_key_without_value():
    providers = ValueProviders(seed=12, word_pool_size=5)
    stub = DynamicField("labels.*", "labels", StaticField("labels.*", b'"labels.*":'), providers)
    state = GenState()
    sink = bytearray()
    for _ in range(50):
        stub.emit(state, set(), sink)
    assert sink == b""
