import pytest

from corpusgen.config import Config, load_config_from_yaml
from corpusgen.errors import TemplateError
from corpusgen.fields import Field
from corpusgen.generator import iter_records
from corpusgen.providers import ValueProviders
from corpusgen.state import GenState
from corpusgen.template.custom import CustomTemplateGenerator
from corpusgen.wrappers import cardinality_target


def _providers(seed: int = 21) -> ValueProviders:
    return ValueProviders(seed=seed, word_pool_size=50)


def _emit(gen: CustomTemplateGenerator, state: GenState | None = None) -> bytes:
    sink = bytearray()
    gen.emit(state or GenState(), sink)
    return bytes(sink)


def test_literals_interleave_with_field_values():
    cfg = Config.from_entries([{"name": "X", "value": 1}, {"name": "Y", "value": "2"}])
    fields = [Field("X", "long"), Field("Y", "keyword")]
    gen = CustomTemplateGenerator(b"A{{.X}}B{{.Y}}C", cfg, fields, _providers())
    assert _emit(gen) == b"A1B2C"


def test_template_without_placeholders_is_emitted_unchanged():
    template = b"static line with {braces}"
    gen = CustomTemplateGenerator(template, Config(), [Field("X", "long")], _providers())
    assert _emit(gen) == template


def test_repeated_placeholder_reuses_first_prefix():
    cfg = Config.from_entries([{"name": "X", "value": "a"}])
    gen = CustomTemplateGenerator(b"<{{.X}}|{{.X}}>", cfg, [Field("X", "keyword")], _providers())
    assert _emit(gen) == b"<a<a>"
    assert [prefix for prefix, _emitter in gen.emitters] == [b"<", b"<"]


def test_unknown_placeholder_fails_construction():
    with pytest.raises(TemplateError):
        CustomTemplateGenerator(b"{{.Missing}}", Config(), [Field("X", "long")], _providers())


def test_values_are_bare_not_json():
    providers = _providers()
    fields = [Field("host", "keyword"), Field("ip", "ip"), Field("unused", "date")]
    gen = CustomTemplateGenerator(b"{{.host}} {{.ip}}", Config(), fields, providers)
    host, ip = _emit(gen).decode().split(" ")
    assert host in providers.words_pool
    assert len(ip.split(".")) == 4


def test_flow_log_template_with_cardinality():
    cfg = load_config_from_yaml(
        """
- name: Version
  value: 2
- name: SrcAddr
  cardinality: 100
- name: Action
  enum: ["ACCEPT", "REJECT"]
"""
    )
    fields = [
        Field("Version", "long"),
        Field("InterfaceID", "keyword", example="eni-1235b8ca123456789"),
        Field("SrcAddr", "ip"),
        Field("Action", "keyword"),
    ]
    gen = CustomTemplateGenerator(
        b"{{.Version}} {{.InterfaceID}} {{.SrcAddr}} {{.Action}}", cfg, fields, _providers()
    )
    state = GenState()
    lines = [r.decode().split(" ") for r in iter_records(gen, state, 50)]
    assert state.counter == 50
    assert {line[0] for line in lines} == {"2"}
    assert all(line[1].count("-") == 1 for line in lines)
    assert len({line[2] for line in lines}) <= cardinality_target(100)
    assert {line[3] for line in lines} == {"ACCEPT"}
