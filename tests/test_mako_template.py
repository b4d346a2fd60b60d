import pytest

from corpusgen.config import Config
from corpusgen.errors import TemplateError
from corpusgen.fields import Field
from corpusgen.providers import ValueProviders
from corpusgen.state import GenState
from corpusgen.template.mako_engine import MakoGenerator


def _providers() -> ValueProviders:
    return ValueProviders(seed=37, word_pool_size=20)


def _emit(gen: MakoGenerator, state: GenState | None = None) -> bytes:
    sink = bytearray()
    gen.emit(state or GenState(), sink)
    return bytes(sink)


def test_generate_returns_bare_field_value():
    cfg = Config.from_entries([{"name": "Version", "value": 2}])
    fields = [Field("Version", "long")]
    gen = MakoGenerator('v=${generate("Version")}\n', cfg, fields, _providers())
    assert _emit(gen) == b"v=2\n"


def test_control_flow_is_delegated_to_mako():
    cfg = Config.from_entries([{"name": "Packets", "value": 0}, {"name": "Status", "value": "OK"}])
    fields = [Field("Packets", "long"), Field("Status", "keyword")]
    template = (
        '<% packets = int(generate("Packets")) %>'
        '${"NODATA" if packets == 0 else generate("Status")} ${packets * 15}'
    )
    gen = MakoGenerator(template, cfg, fields, _providers())
    assert _emit(gen) == b"NODATA 0"


def test_unknown_field_fails_on_emit():
    gen = MakoGenerator('${generate("Nope")}', Config(), [Field("X", "long")], _providers())
    with pytest.raises(TemplateError):
        _emit(gen)


def test_syntax_error_is_a_template_error():
    with pytest.raises(TemplateError, match="Invalid Mako template"):
        MakoGenerator("% if True:\nx\n", Config(), [Field("X", "long")], _providers())


def test_counter_advances_per_record():
    gen = MakoGenerator('${generate("n")}', Config(), [Field("n", "long")], _providers())
    state = GenState()
    for _ in range(5):
        assert 0 <= int(_emit(gen, state)) < 10
    assert state.counter == 5
